"""Declarative base, mixins and type-map for all registry ORM models.

Uses SQLAlchemy 2.0 ``DeclarativeBase`` with a ``type_annotation_map``
that maps Python built-in types to portable SA column types.

Mixins
------
* **TemporalMixin** - ``start_date`` / ``end_date`` / ``modified_by`` for
  rows that are versioned in time (see ``vocabreg.core.temporal``).
"""

from __future__ import annotations

import datetime

from sqlalchemy import JSON, DateTime, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class RegistryBase(DeclarativeBase):
    """Shared declarative base for every registry table.

    * ``str``   → ``Text``
    * ``int``   → ``Integer``
    * ``bool``  → ``Integer``  (SQLite has no native BOOLEAN)
    * ``datetime.datetime`` → ``DateTime``
    * ``dict``  → ``JSON``
    * ``list``  → ``JSON``

    JSON columns are not mutation-tracked: assign a new dict rather than
    updating one in place.
    """

    type_annotation_map = {
        str: Text,
        int: Integer,
        bool: Integer,
        datetime.datetime: DateTime,
        dict: JSON,
        list: JSON,
    }


class TemporalMixin:
    """Validity interval plus the user who last touched the row."""

    start_date: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False)
    modified_by: Mapped[str | None] = mapped_column(Text)
