"""Access point helpers used by providers and workflow methods.

System-created access points are currently valid from the task's
``now_time`` and are attributed to the task's acting user.
"""

from __future__ import annotations

from typing import Any

from vocabreg.core.enums import AccessPointType, ApSource
from vocabreg.core.orm import dao
from vocabreg.core.orm.tables import AccessPointTable
from vocabreg.core.settings import get_settings
from vocabreg.core.temporal import make_currently_valid, make_historical
from vocabreg.workflow.task_info import TaskInfo


def download_url_for_file(access_point_id: int, base_filename: str) -> str:
    return f"{get_settings().download_prefix}{access_point_id}/{base_filename}"


def create_system_access_point(
    task_info: TaskInfo, ap_type: AccessPointType, data: dict[str, Any]
) -> AccessPointTable:
    """Create a SYSTEM access point, or return an identical current one."""
    for existing in dao.get_current_access_points(task_info.session, task_info.version_id, ap_type):
        if existing.source == ApSource.SYSTEM.value and existing.data == data:
            return existing
    ap = AccessPointTable(
        version_id=task_info.version_id,
        type=ap_type.value,
        source=ApSource.SYSTEM.value,
        data=dict(data),
        modified_by=task_info.modified_by,
    )
    make_currently_valid(ap, task_info.now_time)
    return dao.add_entity(task_info.session, ap)


def retire_system_access_points(task_info: TaskInfo, ap_type: AccessPointType) -> list[AccessPointTable]:
    """Make the current SYSTEM access points of *ap_type* historical."""
    retired = []
    for ap in dao.get_current_access_points(task_info.session, task_info.version_id, ap_type):
        if ap.source == ApSource.SYSTEM.value:
            make_historical(ap, task_info.now_time)
            ap.modified_by = task_info.modified_by
            retired.append(ap)
    task_info.session.flush()
    return retired
