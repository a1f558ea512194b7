"""Publish providers: expose an imported version through an external service.

``SISSVocPublishProvider`` writes a SISSVoc (linked-data API) spec file
for the version's triple store repository. The spec is generated from a
template with ``${VAR}`` placeholders; values come from settings and the
vocabulary, and subtask properties can override them::

    Subtask.create(ProviderKind.PUBLISH, "SISSVoc", SubtaskOperation.INSERT,
                   {"spec_settings": ["SERVICE_TITLE"], "SERVICE_TITLE": "My LDA"})
"""

from __future__ import annotations

from pathlib import Path
from string import Template

from vocabreg.core.enums import AccessPointType, ApSource, ProviderKind
from vocabreg.core.orm import dao
from vocabreg.core.settings import get_settings
from vocabreg.workflow.access_points import create_system_access_point, retire_system_access_points
from vocabreg.workflow.providers.base import WorkflowProvider
from vocabreg.workflow.registry import register_provider
from vocabreg.workflow.subtask import Subtask
from vocabreg.workflow.task_info import TaskInfo
from vocabreg.workflow.task_utils import sesame_repository_id, sissvoc_repository_path

SPEC_SETTINGS = "spec_settings"
SISSVOC_ENDPOINT = "sissvoc_endpoint"

TEMPLATE_FAILED = "SISSVoc writeSpecFile: can't open template file"
WRITE_FAILED = "SISSVoc writeSpecFile: can't write spec file"
TRUNCATE_FAILED = "SISSVoc truncateSpecFileIfExists: failed"


def spec_file_path(repository_id: str) -> Path:
    return Path(get_settings().sissvoc_spec_output_path) / f"{repository_id}.ttl"


def spec_properties(task_info: TaskInfo, subtask: Subtask) -> dict[str, str]:
    """Template variables for the spec file of this version."""
    settings = get_settings()
    repository_id = sesame_repository_id(task_info)
    title = task_info.vocabulary.title
    properties = {
        "DEPLOYPATH": settings.sissvoc_deploy_path,
        "SERVICE_TITLE": settings.sissvoc_service_title,
        "SERVICE_AUTHOR": settings.sissvoc_service_author,
        "SERVICE_AUTHOR_EMAIL": settings.sissvoc_service_author_email,
        "SERVICE_HOMEPAGE": settings.sissvoc_service_homepage,
        "SERVICE_LABEL": title,
        "SPARQL_ENDPOINT": settings.sissvoc_sparql_endpoint_prefix + repository_id,
        "SVC_ID": repository_id,
        "SVC_PREFIX": "/" + sissvoc_repository_path(task_info),
        "HTML_STYLESHEET": settings.sissvoc_html_stylesheet,
        "NAMESPACES": "",
        "ANDS_VOCABNAME": title,
        "ANDS_VOCABMORE": "",
        "ANDS_VOCABAPIDOCO": "",
    }
    for name in subtask.get_property(SPEC_SETTINGS) or ():
        if name in subtask.properties:
            properties[name] = str(subtask.properties[name])
    return properties


@register_provider
class SISSVocPublishProvider(WorkflowProvider):
    provider_kind = ProviderKind.PUBLISH

    def insert(self, task_info: TaskInfo, subtask: Subtask) -> None:
        settings = get_settings()
        repository_id = sesame_repository_id(task_info)
        try:
            template = Template(Path(settings.sissvoc_spec_template).read_text(encoding="utf-8"))
        except OSError as e:
            self.fail(subtask, TEMPLATE_FAILED, path=str(settings.sissvoc_spec_template), error_detail=str(e))
            return

        spec = template.safe_substitute(spec_properties(task_info, subtask))
        output = spec_file_path(repository_id)
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(spec, encoding="utf-8")
        except OSError as e:
            self.fail(subtask, WRITE_FAILED, path=str(output), error_detail=str(e))
            return

        endpoint = settings.sissvoc_endpoints_prefix + sissvoc_repository_path(task_info)
        create_system_access_point(task_info, AccessPointType.SISSVOC, {"path": str(output), "url": endpoint})
        subtask.add_result(SISSVOC_ENDPOINT, endpoint)
        self.log.info("publish.sissvoc.written", path=str(output))
        self.succeed(subtask)

    def delete(self, task_info: TaskInfo, subtask: Subtask) -> None:
        current = dao.get_current_access_points(
            task_info.session, task_info.version_id, AccessPointType.SISSVOC
        )
        paths = {
            ap.data["path"]
            for ap in current
            if ap.source == ApSource.SYSTEM.value and ap.data.get("path")
        }
        if not paths:
            paths.add(str(spec_file_path(sesame_repository_id(task_info))))
        retire_system_access_points(task_info, AccessPointType.SISSVOC)

        for path in sorted(paths):
            try:
                # truncate, never delete
                if Path(path).exists():
                    Path(path).write_bytes(b"")
            except OSError as e:
                self.fail(subtask, TRUNCATE_FAILED, path=path, error_detail=str(e))
        if not subtask.status.failed:
            self.succeed(subtask)
