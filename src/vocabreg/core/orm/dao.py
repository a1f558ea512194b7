"""Query helpers over the registry tables.

"Current" means currently valid: drafts and historical rows are
excluded. All helpers take the caller's session and never commit.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from vocabreg.core.enums import AccessPointType, VersionArtefactType
from vocabreg.core.orm.tables import (
    AccessPointTable,
    TaskTable,
    VersionArtefactTable,
    VersionTable,
    VocabularyTable,
)
from vocabreg.core.temporal import CURRENTLY_VALID_END_DATE

Row = TypeVar("Row", VocabularyTable, VersionTable, AccessPointTable, VersionArtefactTable)

_ENTITY_ID_COLUMN = {
    VocabularyTable: "vocabulary_id",
    VersionTable: "version_id",
    AccessPointTable: "access_point_id",
    VersionArtefactTable: "version_artefact_id",
}


def _current(model):
    return model.end_date == CURRENTLY_VALID_END_DATE


def add_entity(session: Session, row: Row) -> Row:
    """Add *row*, allocating its entity id if it doesn't have one yet."""
    column_name = _ENTITY_ID_COLUMN[type(row)]
    if getattr(row, column_name) is None:
        column = getattr(type(row), column_name)
        highest = session.scalar(select(func.max(column)))
        setattr(row, column_name, (highest or 0) + 1)
    session.add(row)
    session.flush()
    return row


def get_current_vocabulary(session: Session, vocabulary_id: int) -> VocabularyTable | None:
    return session.scalars(
        select(VocabularyTable).where(
            VocabularyTable.vocabulary_id == vocabulary_id, _current(VocabularyTable)
        )
    ).first()


def get_current_version(session: Session, version_id: int) -> VersionTable | None:
    return session.scalars(
        select(VersionTable).where(VersionTable.version_id == version_id, _current(VersionTable))
    ).first()


def get_current_access_points(
    session: Session, version_id: int, ap_type: AccessPointType
) -> Sequence[AccessPointTable]:
    """Currently-valid access points of one type for a version."""
    return session.scalars(
        select(AccessPointTable)
        .where(
            AccessPointTable.version_id == version_id,
            AccessPointTable.type == ap_type.value,
            _current(AccessPointTable),
        )
        .order_by(AccessPointTable.access_point_id)
    ).all()


def get_current_version_artefacts(
    session: Session, version_id: int, va_type: VersionArtefactType
) -> Sequence[VersionArtefactTable]:
    """Currently-valid version artefacts of one type for a version."""
    return session.scalars(
        select(VersionArtefactTable)
        .where(
            VersionArtefactTable.version_id == version_id,
            VersionArtefactTable.type == va_type.value,
            _current(VersionArtefactTable),
        )
        .order_by(VersionArtefactTable.version_artefact_id)
    ).all()


def get_task(session: Session, task_id: int) -> TaskTable | None:
    return session.get(TaskTable, task_id)


def get_current_access_point(session: Session, access_point_id: int) -> AccessPointTable | None:
    return session.scalars(
        select(AccessPointTable).where(
            AccessPointTable.access_point_id == access_point_id, _current(AccessPointTable)
        )
    ).first()
