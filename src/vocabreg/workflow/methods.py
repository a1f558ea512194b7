"""
Workflow Methods - translate registry mutations into work.

Manifesto:
Changing an access point or a version artefact either completes
immediately (a metadata-only row change) or needs providers to run. The
functions here make that call for each variant and, where work is
needed, return the subtasks to schedule, each with its priority already
determined. They never run anything themselves.

ARCHITECTURE
────────────
::

    insert_access_point(...)      → (row | None, [Subtask])
        API_SPARQL, SISSVOC, WEB_PAGE    persisted now, no subtasks
        FILE                             persisted now, HARVEST/File INSERT
        SESAME_DOWNLOAD (USER)           UnsupportedVariantError

    delete_access_point(ap)       → [Subtask] | None
        API_SPARQL, SESAME_DOWNLOAD      SYSTEM: IMPORT/Sesame DELETE
        SISSVOC                          SYSTEM: PUBLISH/SISSVoc DELETE
        FILE                             files deleted now, None
        WEB_PAGE, USER-sourced           None

    delete_version_artefact(va)   → [Subtask]
        CONCEPT_LIST / CONCEPT_TREE /    TRANSFORM/<name> DELETE
        RESOURCE_DOCS
        HARVEST_POOLPARTY                HARVEST/PoolParty DELETE

Both API_SPARQL and SESAME_DOWNLOAD system access points come from one
import, so their DELETE subtasks are identical and a task holding both
keeps only one.

Types outside these tables raise ``UnknownKindError``.

Tags:
    workflow, access-points, version-artefacts, orchestration, vocabreg

Doc-Types:
    api-reference
"""

from __future__ import annotations

import datetime
import shutil
from pathlib import Path
from typing import Any

from sqlalchemy.orm import Session

from vocabreg.core.enums import (
    AccessPointType,
    ApSource,
    ProviderKind,
    SubtaskOperation,
    VersionArtefactType,
)
from vocabreg.core.errors import FilesystemError, UnknownKindError, UnsupportedVariantError
from vocabreg.core.logging import get_logger
from vocabreg.core.orm import dao
from vocabreg.core.orm.tables import AccessPointTable, VersionArtefactTable
from vocabreg.core.temporal import make_currently_valid, make_draft, utcnow
from vocabreg.workflow.access_points import download_url_for_file
from vocabreg.workflow.subtask import Subtask
from vocabreg.workflow.task_info import SYSTEM_USER, TaskInfo

log = get_logger(__name__)

DRAFT_CREATED_DATE = "draft_created_date"
DRAFT_MODIFIED_DATE = "draft_modified_date"
UPLOAD_PATH = "upload_path"

_ARTEFACT_DELETE_PROVIDERS = {
    VersionArtefactType.CONCEPT_LIST: (ProviderKind.TRANSFORM, "JsonList"),
    VersionArtefactType.CONCEPT_TREE: (ProviderKind.TRANSFORM, "JsonTree"),
    VersionArtefactType.RESOURCE_DOCS: (ProviderKind.TRANSFORM, "ResourceDocs"),
    VersionArtefactType.HARVEST_POOLPARTY: (ProviderKind.HARVEST, "PoolParty"),
}


def _access_point_type(value: AccessPointType | str) -> AccessPointType:
    try:
        return AccessPointType(value)
    except ValueError as e:
        raise UnknownKindError(f"Unknown access point type: {value!r}", cause=e) from e


def _version_artefact_type(value: VersionArtefactType | str) -> VersionArtefactType:
    try:
        return VersionArtefactType(value)
    except ValueError as e:
        raise UnknownKindError(f"Unknown version artefact type: {value!r}", cause=e) from e


# === INSERT ===


def insert_access_point(
    session: Session,
    task_info: TaskInfo,
    existing_draft: AccessPointTable | None,
    as_draft: bool,
    modified_by: str,
    now: datetime.datetime | None,
    ap_type: AccessPointType | str,
    source: ApSource | str,
    data: dict[str, Any],
) -> tuple[AccessPointTable, list[Subtask]]:
    """
    Persist a new access point for the task's version.

    Args:
        session: Caller's session; the row is flushed, not committed
        task_info: Identifies the version the access point belongs to
        existing_draft: A draft row to update (and, unless ``as_draft``,
            publish) in place instead of adding a new row
        as_draft: Keep the access point as a draft
        modified_by: Acting user
        now: Time of the change; defaults to the current time
        ap_type: Access point variant
        source: USER for user-supplied access points, SYSTEM for generated ones
        data: Variant-specific data; FILE requires ``upload_path``

    Returns:
        The access point row and the subtasks still needed to complete it

    Raises:
        UnsupportedVariantError: For a user-supplied SESAME_DOWNLOAD, or a
            FILE without an upload
        UnknownKindError: For an access point type outside the known set
    """
    ap_type = _access_point_type(ap_type)
    source = ApSource(source)
    now = now or utcnow()

    if ap_type is AccessPointType.SESAME_DOWNLOAD and source is ApSource.USER:
        log.warning("methods.unsupported_variant", ap_type=ap_type.value, source=source.value)
        raise UnsupportedVariantError(
            "Sesame download access points can't be supplied by users"
        ).with_context(version_id=task_info.version_id)
    if ap_type is AccessPointType.FILE and not data.get(UPLOAD_PATH):
        raise UnsupportedVariantError("File access points need an upload_path").with_context(
            version_id=task_info.version_id
        )

    ap = _save_access_point(
        session, task_info, existing_draft, as_draft, modified_by, now, ap_type, source, data
    )

    if ap_type is AccessPointType.FILE:
        upload = Path(data[UPLOAD_PATH])
        ap.data = {**ap.data, "url": download_url_for_file(ap.access_point_id, upload.name)}
        session.flush()
        if not as_draft:
            subtask = Subtask.create(
                ProviderKind.HARVEST,
                "File",
                SubtaskOperation.INSERT,
                {"access_point_id": ap.access_point_id, UPLOAD_PATH: str(upload)},
            )
            return ap, [subtask]
        return ap, []

    # API_SPARQL, SISSVOC and WEB_PAGE carry metadata only; so does a
    # SYSTEM SESAME_DOWNLOAD.
    return ap, []


def _save_access_point(
    session: Session,
    task_info: TaskInfo,
    existing_draft: AccessPointTable | None,
    as_draft: bool,
    modified_by: str,
    now: datetime.datetime,
    ap_type: AccessPointType,
    source: ApSource,
    data: dict[str, Any],
) -> AccessPointTable:
    new_data = dict(data)
    if as_draft:
        created = (existing_draft.data or {}).get(DRAFT_CREATED_DATE) if existing_draft else None
        new_data[DRAFT_CREATED_DATE] = created or now.isoformat()
        new_data[DRAFT_MODIFIED_DATE] = now.isoformat()
    else:
        new_data.pop(DRAFT_CREATED_DATE, None)
        new_data.pop(DRAFT_MODIFIED_DATE, None)

    ap = existing_draft or AccessPointTable(version_id=task_info.version_id)
    ap.type = ap_type.value
    ap.source = source.value
    ap.data = new_data
    ap.modified_by = modified_by or SYSTEM_USER
    if as_draft:
        make_draft(ap)
    else:
        make_currently_valid(ap, now)
    dao.add_entity(session, ap)
    log.info(
        "methods.access_point_saved",
        access_point_id=ap.access_point_id,
        ap_type=ap_type.value,
        draft=as_draft,
    )
    return ap


# === DELETE ===


def delete_access_point(ap: AccessPointTable) -> list[Subtask] | None:
    """
    Work needed to delete *ap*, or None when there is nothing further to do.

    FILE access points have their files deleted right away; a failure is
    logged and otherwise ignored.

    Raises:
        UnknownKindError: For an access point type outside the known set
    """
    ap_type = _access_point_type(ap.type)
    source = ApSource(ap.source)

    if ap_type is AccessPointType.FILE:
        _delete_files(ap)
        return None
    if ap_type is AccessPointType.WEB_PAGE or source is ApSource.USER:
        return None
    if ap_type in (AccessPointType.API_SPARQL, AccessPointType.SESAME_DOWNLOAD):
        return [Subtask.create(ProviderKind.IMPORT, "Sesame", SubtaskOperation.DELETE)]
    if ap_type is AccessPointType.SISSVOC:
        return [Subtask.create(ProviderKind.PUBLISH, "SISSVoc", SubtaskOperation.DELETE)]
    raise UnknownKindError(f"No deletion rule for access point type {ap_type.value}")


def _delete_files(ap: AccessPointTable) -> None:
    path = (ap.data or {}).get("path")
    if not path:
        return
    target = Path(path)
    try:
        if target.is_dir():
            shutil.rmtree(target)
        elif target.exists():
            target.unlink()
    except OSError as e:
        error = FilesystemError(
            f"Unable to delete files of access point {ap.access_point_id}", path=path, cause=e
        )
        log.error("methods.file_delete_failed", **error.to_dict())
        return
    log.info("methods.files_deleted", access_point_id=ap.access_point_id, path=path)


def delete_version_artefact(va: VersionArtefactTable) -> list[Subtask]:
    """
    The subtask that removes *va* and its generated content.

    Raises:
        UnknownKindError: For an artefact type without a provider
    """
    va_type = _version_artefact_type(va.type)
    kind, name = _ARTEFACT_DELETE_PROVIDERS[va_type]
    return [Subtask.create(kind, name, SubtaskOperation.DELETE)]
