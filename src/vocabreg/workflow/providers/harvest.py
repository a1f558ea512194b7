"""Harvest providers: bring vocabulary content into the version's harvest directory.

- ``PoolPartyHarvestProvider`` exports a PoolParty project over HTTP.
- ``FileHarvestProvider`` moves an uploaded file for a FILE access point
  into its served location.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import httpx

from vocabreg.core.enums import ProviderKind, VersionArtefactType
from vocabreg.core.orm import dao
from vocabreg.core.settings import get_settings
from vocabreg.workflow.http import extension_for_format, http_client, join_url
from vocabreg.workflow.providers.base import WorkflowProvider
from vocabreg.workflow.registry import register_provider
from vocabreg.workflow.subtask import Subtask
from vocabreg.workflow.task_info import TaskInfo
from vocabreg.workflow.task_utils import file_store_path, harvest_output_path
from vocabreg.workflow.version_artefacts import create_version_artefact, retire_version_artefacts

PROJECT_ID = "project_id"
POOLPARTY_URL = "poolparty_url"
POOLPARTY_PROJECT_ID = "poolparty_project_id"

NO_PROJECT_ID = "No PoolParty id specified. Nothing to do."


def poolparty_auth() -> httpx.BasicAuth:
    settings = get_settings()
    return httpx.BasicAuth(settings.poolparty_username, settings.poolparty_password.get_secret_value())


def poolparty_export_url(project_id: str) -> str:
    return join_url(get_settings().poolparty_remote_url, "api", "projects", project_id, "export")


def download_poolparty_export(
    client: httpx.Client, project_id: str, rdf_format: str, export_module: str
) -> httpx.Response:
    """GET one export module of a project; raises nothing on HTTP error statuses."""
    return client.get(
        poolparty_export_url(project_id),
        params={"format": rdf_format, "exportModules": export_module},
    )


@register_provider
class PoolPartyHarvestProvider(WorkflowProvider):
    """Export a PoolParty project into ``harvest_output_path``."""

    provider_kind = ProviderKind.HARVEST

    def insert(self, task_info: TaskInfo, subtask: Subtask) -> None:
        project_id = subtask.get_property(PROJECT_ID)
        if not project_id:
            self.fail(subtask, NO_PROJECT_ID)
            return

        settings = get_settings()
        rdf_format = settings.poolparty_format
        export_module = settings.poolparty_export_module
        output_dir = harvest_output_path(task_info)

        with http_client(auth=poolparty_auth()) as client:
            response = download_poolparty_export(client, project_id, rdf_format, export_module)
        if response.status_code >= 400:
            self.fail(
                subtask,
                "PoolPartyHarvestProvider got an error from PoolParty; "
                f"response code = {response.status_code}",
                url=str(response.request.url),
            )
            return

        target = output_dir / f"{export_module}{extension_for_format(rdf_format)}"
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            for stale in output_dir.glob(f"{export_module}.*"):
                stale.unlink()
            target.write_bytes(response.content)
        except OSError as e:
            self.fail(subtask, f"Unable to save PoolParty export: {e}", path=str(output_dir))
            return
        self.log.info("harvest.poolparty.saved", project_id=project_id, path=str(target))

        subtask.add_result(POOLPARTY_URL, settings.poolparty_remote_url)
        subtask.add_result(POOLPARTY_PROJECT_ID, project_id)
        subtask.add_result(export_module, str(target))
        create_version_artefact(task_info, VersionArtefactType.HARVEST_POOLPARTY, {"path": str(output_dir)})
        self.succeed(subtask)

    def delete(self, task_info: TaskInfo, subtask: Subtask) -> None:
        retired = retire_version_artefacts(task_info, VersionArtefactType.HARVEST_POOLPARTY)
        output_dir = harvest_output_path(task_info)
        try:
            if output_dir.exists():
                shutil.rmtree(output_dir)
        except OSError as e:
            self.fail(subtask, f"Unable to delete harvest directory: {e}", path=str(output_dir))
            return
        self.log.info("harvest.poolparty.unharvested", artefacts=len(retired), path=str(output_dir))
        self.succeed(subtask)


@register_provider
class FileHarvestProvider(WorkflowProvider):
    """Move an uploaded file into the served location of its FILE access point."""

    provider_kind = ProviderKind.HARVEST

    def insert(self, task_info: TaskInfo, subtask: Subtask) -> None:
        ap_id = subtask.get_property("access_point_id")
        upload = subtask.get_property("upload_path")
        if ap_id is None or not upload:
            self.fail(subtask, "FileHarvestProvider needs access_point_id and upload_path")
            return

        ap = dao.get_current_access_point(task_info.session, int(ap_id))
        if ap is None:
            self.fail(subtask, f"No access point with id {ap_id}")
            return

        source = Path(upload)
        target_dir = file_store_path(task_info, ap.access_point_id)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            target = Path(shutil.move(source, target_dir / source.name))
        except OSError as e:
            self.fail(subtask, f"Unable to move uploaded file: {e}", path=str(source))
            return

        ap.data = {**ap.data, "path": str(target_dir)}
        ap.modified_by = task_info.modified_by
        task_info.session.flush()
        subtask.add_result("path", str(target))
        self.succeed(subtask)

