"""Mapped tables of the registry.

Each temporal table has a surrogate row ``id`` plus an entity id
(``vocabulary_id``, ``version_id``, ...). Several rows share an entity id
over time: at most one of them is currently valid, at most one is a
draft, and the rest are historical.

Enum-valued columns hold the enum's ``.value``.
"""

from __future__ import annotations

import datetime

from sqlalchemy import JSON, DateTime, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from vocabreg.core.orm.base import RegistryBase, TemporalMixin

_NOW = text("(CURRENT_TIMESTAMP)")


class VocabularyTable(TemporalMixin, RegistryBase):
    __tablename__ = "vocabularies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    vocabulary_id: Mapped[int | None] = mapped_column(Integer, index=True)
    owner: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, default="PUBLISHED", nullable=False)
    data: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    @property
    def title(self) -> str:
        return (self.data or {}).get("title", "")


class VersionTable(TemporalMixin, RegistryBase):
    __tablename__ = "versions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    version_id: Mapped[int | None] = mapped_column(Integer, index=True)
    vocabulary_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    slug: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, default="CURRENT", nullable=False)
    release_date: Mapped[str | None] = mapped_column(Text)
    data: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    @property
    def title(self) -> str:
        return (self.data or {}).get("title", "")


class AccessPointTable(TemporalMixin, RegistryBase):
    __tablename__ = "access_points"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    access_point_id: Mapped[int | None] = mapped_column(Integer, index=True)
    version_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)


class VersionArtefactTable(TemporalMixin, RegistryBase):
    __tablename__ = "version_artefacts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    version_artefact_id: Mapped[int | None] = mapped_column(Integer, index=True)
    version_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, default="CURRENT", nullable=False)
    data: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)


class TaskTable(RegistryBase):
    """A persisted task.

    ``params`` holds the serialized subtask list and ``response`` the
    JSON-encoded results map; both are opaque text to the database.
    """

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    vocabulary_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    version_id: Mapped[int | None] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(Text, default="NEW", nullable=False)
    params: Mapped[str] = mapped_column(Text, default="[]", nullable=False)
    response: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, server_default=_NOW
    )
