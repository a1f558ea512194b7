"""Backup providers: copy vocabulary sources out of external editors.

Backup subtasks are unranked, so they run after every ranked subtask of
their task.
"""

from __future__ import annotations

import httpx

from vocabreg.core.enums import ProviderKind
from vocabreg.core.settings import get_settings
from vocabreg.workflow.http import extension_for_format, http_client, join_url
from vocabreg.workflow.providers.base import WorkflowProvider
from vocabreg.workflow.providers.harvest import PROJECT_ID, download_poolparty_export, poolparty_auth
from vocabreg.workflow.registry import register_provider
from vocabreg.workflow.subtask import Subtask
from vocabreg.workflow.task_info import TaskInfo
from vocabreg.workflow.task_utils import backup_path


def list_poolparty_projects(client: httpx.Client) -> list[str]:
    """Ids of every project visible to the configured PoolParty user."""
    response = client.get(join_url(get_settings().poolparty_remote_url, "api", "projects"))
    response.raise_for_status()
    return [str(project["id"]) for project in response.json() if project.get("id")]


@register_provider
class PoolPartyBackupProvider(WorkflowProvider):
    """Export one PoolParty project, or all of them, into ``backup_path``."""

    provider_kind = ProviderKind.BACKUP

    def insert(self, task_info: TaskInfo, subtask: Subtask) -> None:
        settings = get_settings()
        rdf_format = settings.poolparty_format
        export_module = settings.poolparty_export_module
        extension = extension_for_format(rdf_format)

        with http_client(auth=poolparty_auth()) as client:
            project_id = subtask.get_property(PROJECT_ID)
            try:
                project_ids = [str(project_id)] if project_id else list_poolparty_projects(client)
            except (httpx.HTTPError, ValueError) as e:
                self.fail(subtask, f"Unable to list PoolParty projects: {e}")
                return

            for pp_id in project_ids:
                response = download_poolparty_export(client, pp_id, rdf_format, export_module)
                if response.status_code >= 400:
                    subtask.add_result(pp_id, f"Error: response code = {response.status_code}")
                    self.fail(subtask, f"Backup of PoolParty project {pp_id} failed", project_id=pp_id)
                    continue
                target_dir = backup_path(pp_id)
                target = target_dir / f"{export_module}{extension}"
                try:
                    target_dir.mkdir(parents=True, exist_ok=True)
                    target.write_bytes(response.content)
                except OSError as e:
                    subtask.add_result(pp_id, f"Error: {e}")
                    self.fail(subtask, f"Backup of PoolParty project {pp_id} failed", path=str(target_dir))
                    continue
                subtask.add_result(pp_id, str(target))
                self.log.info("backup.poolparty.saved", project_id=pp_id, path=str(target))

        if not subtask.status.failed:
            self.succeed(subtask)
