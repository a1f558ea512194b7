"""Helpers for building task infos and for provider file and repository naming.

Layout of the data directory::

    <data_files_path>/<slug(owner)>/<vocabulary id>/<version id>/
        harvest_data/              harvested content
        files/<access point id>/   uploaded files of FILE access points
        <sanitized now time>/      output of one task run
"""

from __future__ import annotations

import datetime
import re
import unicodedata
from pathlib import Path

from sqlalchemy.orm import Session

from vocabreg.core.enums import AccessPointType, VersionArtefactType
from vocabreg.core.errors import TaskNotFoundError, TaskValidationError
from vocabreg.core.orm import dao
from vocabreg.core.settings import get_settings
from vocabreg.core.temporal import utcnow
from vocabreg.workflow.task import Task, deserialize_results, deserialize_subtasks
from vocabreg.workflow.task_info import SYSTEM_USER, TaskInfo

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_UNSAFE_PATH_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def slugify(text: str) -> str:
    """Lowercase ASCII tokens joined by hyphens: ``"ANDS Test Owner"`` → ``"ands-test-owner"``."""
    ascii_text = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    return _NON_ALNUM.sub("-", ascii_text.lower()).strip("-")


def sanitize_timestamp(moment: datetime.datetime) -> str:
    """Filesystem-safe rendering of a timestamp."""
    return _UNSAFE_PATH_CHARS.sub("-", moment.strftime("%Y-%m-%dT%H:%M:%S.%f"))


def version_path(task_info: TaskInfo) -> Path:
    settings = get_settings()
    return (
        Path(settings.data_files_path)
        / slugify(task_info.vocabulary.owner)
        / str(task_info.vocabulary_id)
        / str(task_info.version_id)
    )


def task_output_path(task_info: TaskInfo, filename: str | None = None) -> Path:
    """Directory (or a file within it) for the output of this run; created on demand."""
    path = version_path(task_info) / sanitize_timestamp(task_info.now_time)
    path.mkdir(parents=True, exist_ok=True)
    return path / filename if filename else path


def harvest_output_path(task_info: TaskInfo) -> Path:
    return version_path(task_info) / get_settings().harvest_data_path


def file_store_path(task_info: TaskInfo, access_point_id: int) -> Path:
    """Served location of the files of one FILE access point."""
    return version_path(task_info) / "files" / str(access_point_id)


def backup_path(project_id: str) -> Path:
    return Path(get_settings().backup_files_path) / slugify(project_id)


def sesame_repository_id(task_info: TaskInfo) -> str:
    return "_".join(
        [slugify(task_info.vocabulary.owner), task_info.vocabulary.slug, task_info.version.slug]
    )


def sissvoc_repository_path(task_info: TaskInfo) -> str:
    return "/".join(
        [slugify(task_info.vocabulary.owner), task_info.vocabulary.slug, task_info.version.slug]
    )


def _files_under(path: Path) -> list[Path]:
    if path.is_dir():
        return sorted(p for p in path.rglob("*") if p.is_file())
    if path.is_file():
        return [path]
    return []


def paths_to_process(task_info: TaskInfo) -> list[Path]:
    """Content files of the version: uploaded FILE access points, then PoolParty harvests."""
    session = task_info.session
    version_id = task_info.version_id
    paths: list[Path] = []
    for ap in dao.get_current_access_points(session, version_id, AccessPointType.FILE):
        if ap.data.get("path"):
            paths.extend(_files_under(Path(ap.data["path"])))
    for va in dao.get_current_version_artefacts(session, version_id, VersionArtefactType.HARVEST_POOLPARTY):
        if va.data.get("path"):
            paths.extend(_files_under(Path(va.data["path"])))
    return paths


def task_from_row(row) -> Task:
    """Rebuild a Task from its database row."""
    task = Task(vocabulary_id=row.vocabulary_id, version_id=row.version_id, status=row.status)
    task.add_subtasks(deserialize_subtasks(row.params))
    task.results = deserialize_results(row.response)
    return task


def get_task_info(
    session: Session,
    task_id: int,
    modified_by: str = SYSTEM_USER,
    now: datetime.datetime | None = None,
) -> TaskInfo:
    """Load a persisted task and everything needed to run it.

    Raises:
        TaskNotFoundError: No such task
        TaskValidationError: The task's vocabulary/version are missing or inconsistent
    """
    row = dao.get_task(session, task_id)
    if row is None:
        raise TaskNotFoundError(task_id)
    try:
        task = task_from_row(row)
    except ValueError as e:
        raise TaskValidationError(
            f"Task {task_id} has malformed params", cause=e
        ).with_context(task_id=task_id)

    vocabulary = dao.get_current_vocabulary(session, task.vocabulary_id)
    if vocabulary is None:
        raise TaskValidationError(f"No current vocabulary with id {task.vocabulary_id}").with_context(
            task_id=task_id, vocabulary_id=task.vocabulary_id
        )
    if not vocabulary.owner or not vocabulary.slug:
        raise TaskValidationError("Vocabulary owner and slug must be non-empty").with_context(
            task_id=task_id, vocabulary_id=task.vocabulary_id
        )

    version = None
    if task.version_id is not None:
        version = dao.get_current_version(session, task.version_id)
        if version is None:
            raise TaskValidationError(f"No current version with id {task.version_id}").with_context(
                task_id=task_id, version_id=task.version_id
            )
        if version.vocabulary_id != task.vocabulary_id:
            raise TaskValidationError(
                f"Version {task.version_id} does not belong to vocabulary {task.vocabulary_id}"
            ).with_context(task_id=task_id, vocabulary_id=task.vocabulary_id, version_id=task.version_id)
        if not version.slug:
            raise TaskValidationError("Version slug must be non-empty").with_context(
                task_id=task_id, version_id=task.version_id
            )

    return TaskInfo(
        task=task,
        vocabulary=vocabulary,
        version=version,
        session=session,
        modified_by=modified_by,
        now_time=now or utcnow(),
        db_task=row,
    )
