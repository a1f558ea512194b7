"""
Core primitives shared by the workflow engine and the CLI.

Modules
-------
enums       Provider kinds, operations, statuses, access point/artefact types
errors      RegistryError hierarchy
logging     structlog configuration and helpers
settings    pydantic-settings configuration
temporal    Currently-valid / draft / historical row helpers
orm         SQLAlchemy tables, sessions and query helpers
"""
