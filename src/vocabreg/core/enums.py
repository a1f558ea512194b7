"""
Shared registry enums.

Enums in this module are used by the ORM tables, the workflow model and
the providers. Values are the strings stored in the database and in
serialized task parameters, so they must not change.

STDLIB ONLY - NO PYDANTIC.
"""

from enum import Enum


class ProviderKind(str, Enum):
    """
    Category of a workflow provider.

    The value doubles as the name of the module that holds the
    providers of this kind (``vocabreg.workflow.providers.<value>``).
    Note that IMPORT is spelled ``importer``, since ``import`` is a
    reserved word.
    """

    HARVEST = "harvest"
    IMPORT = "importer"
    TRANSFORM = "transform"
    PUBLISH = "publish"
    BACKUP = "backup"

    @property
    def kind_title(self) -> str:
        """Capitalized value, as used in provider class names."""
        return self.value.capitalize()


class SubtaskOperation(str, Enum):
    """What a subtask asks its provider to do."""

    INSERT = "INSERT"
    DELETE = "DELETE"
    PERFORM = "PERFORM"


class SubtaskStatus(str, Enum):
    """Execution state of one subtask."""

    NOT_RUN = "NOT_RUN"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    EXCEPTION = "EXCEPTION"

    @property
    def failed(self) -> bool:
        return self in (SubtaskStatus.ERROR, SubtaskStatus.EXCEPTION)


class TaskStatus(str, Enum):
    """Aggregate state of a task."""

    NEW = "NEW"
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    ERROR = "ERROR"


class AccessPointType(str, Enum):
    """Variants of access point."""

    API_SPARQL = "apiSparql"
    FILE = "file"
    SESAME_DOWNLOAD = "sesameDownload"
    SISSVOC = "sissvoc"
    WEB_PAGE = "webPage"


class ApSource(str, Enum):
    """Who created an access point."""

    USER = "USER"
    SYSTEM = "SYSTEM"


class VersionArtefactType(str, Enum):
    """Kinds of derived content recorded against a version."""

    CONCEPT_LIST = "CONCEPT_LIST"
    CONCEPT_TREE = "CONCEPT_TREE"
    HARVEST_POOLPARTY = "HARVEST_POOLPARTY"
    RESOURCE_DOCS = "RESOURCE_DOCS"


class VersionArtefactStatus(str, Enum):
    CURRENT = "CURRENT"
    PENDING = "PENDING"
