"""SQLAlchemy 2.0 ORM layer for the vocabulary registry.

Modules
-------
base        RegistryBase (declarative base) + TemporalMixin
session     Engine factory, RegistrySession, registry_session_factory
tables      Vocabulary, Version, AccessPoint, VersionArtefact and Task tables
dao         Query helpers for current rows and tasks

Tags:
    vocabreg, orm, sqlalchemy, declarative

Doc-Types:
    package-overview, module-index
"""

from __future__ import annotations

from vocabreg.core.orm.base import RegistryBase, TemporalMixin
from vocabreg.core.orm.session import (
    RegistrySession,
    create_registry_engine,
    registry_session_factory,
)
from vocabreg.core.orm.tables import (
    AccessPointTable,
    TaskTable,
    VersionArtefactTable,
    VersionTable,
    VocabularyTable,
)

__all__ = [
    "RegistryBase",
    "TemporalMixin",
    "RegistrySession",
    "create_registry_engine",
    "registry_session_factory",
    "AccessPointTable",
    "TaskTable",
    "VersionArtefactTable",
    "VersionTable",
    "VocabularyTable",
]
