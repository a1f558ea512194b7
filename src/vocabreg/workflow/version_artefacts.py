"""Version artefact helpers used by providers."""

from __future__ import annotations

from typing import Any

from vocabreg.core.enums import VersionArtefactStatus, VersionArtefactType
from vocabreg.core.orm import dao
from vocabreg.core.orm.tables import VersionArtefactTable
from vocabreg.core.temporal import make_currently_valid, make_historical
from vocabreg.workflow.task_info import TaskInfo


def create_version_artefact(
    task_info: TaskInfo,
    va_type: VersionArtefactType,
    data: dict[str, Any],
    *,
    only_one: bool = True,
) -> VersionArtefactTable:
    """Record a generated artefact for the task's version.

    A current artefact of the same type with the same ``path`` is kept
    as-is. Otherwise, when ``only_one``, the other current artefacts of
    the type are made historical before the new one is added.
    """
    session = task_info.session
    current = dao.get_current_version_artefacts(session, task_info.version_id, va_type)
    for existing in current:
        if existing.data.get("path") == data.get("path"):
            if existing.data != data:
                existing.data = dict(data)
                existing.modified_by = task_info.modified_by
                session.flush()
            return existing
    if only_one:
        for existing in current:
            make_historical(existing, task_info.now_time)
            existing.modified_by = task_info.modified_by
    va = VersionArtefactTable(
        version_id=task_info.version_id,
        type=va_type.value,
        status=VersionArtefactStatus.CURRENT.value,
        data=dict(data),
        modified_by=task_info.modified_by,
    )
    make_currently_valid(va, task_info.now_time)
    return dao.add_entity(session, va)


def retire_version_artefacts(task_info: TaskInfo, va_type: VersionArtefactType) -> list[VersionArtefactTable]:
    """Make every current artefact of *va_type* historical; returns them."""
    retired = list(dao.get_current_version_artefacts(task_info.session, task_info.version_id, va_type))
    for va in retired:
        make_historical(va, task_info.now_time)
        va.modified_by = task_info.modified_by
    task_info.session.flush()
    return retired
