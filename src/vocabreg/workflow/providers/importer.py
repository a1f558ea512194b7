"""Importer providers: load version content into a triple store.

``SesameImporterProvider`` talks to an RDF4J (formerly Sesame) server
through its REST API:

    GET    /repositories/{id}/size          existence check (404 = missing)
    PUT    /repositories/{id}               create, body is a Turtle config
    DELETE /repositories/{id}/statements    clear
    POST   /repositories/{id}/statements    upload one file
    DELETE /repositories/{id}               drop

Each version gets its own repository, named by ``sesame_repository_id``.
A successful import exposes two SYSTEM access points: a SPARQL endpoint
and a download from the repository.
"""

from __future__ import annotations

from pathlib import Path
from string import Template

import httpx

from vocabreg.core.enums import AccessPointType, ProviderKind
from vocabreg.core.settings import get_settings
from vocabreg.workflow.access_points import create_system_access_point, retire_system_access_points
from vocabreg.workflow.http import RDF_CONTENT_TYPES, http_client, join_url
from vocabreg.workflow.providers.base import WorkflowProvider
from vocabreg.workflow.registry import register_provider
from vocabreg.workflow.subtask import Subtask
from vocabreg.workflow.task_info import TaskInfo
from vocabreg.workflow.task_utils import paths_to_process, sesame_repository_id

REPOSITORY_ID = "repository_id"
SPARQL_ENDPOINT = "sparql_endpoint"

CREATE_FAILED = "Exception in Sesame createRepository()"
UPLOAD_FAILED = "Exception in Sesame uploadRDF"
UNIMPORT_FAILED = "Exception in Sesame unimport"

REPOSITORY_CONFIG = Template(
    """\
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
@prefix rep: <http://www.openrdf.org/config/repository#> .
@prefix sr: <http://www.openrdf.org/config/repository/sail#> .
@prefix sail: <http://www.openrdf.org/config/sail#> .
@prefix ns: <http://www.openrdf.org/config/sail/native#> .

[] a rep:Repository ;
   rep:repositoryID "$repository_id" ;
   rdfs:label "$label" ;
   rep:repositoryImpl [
      rep:repositoryType "openrdf:SailRepository" ;
      sr:sailImpl [
         sail:sailType "openrdf:NativeStore" ;
         ns:tripleIndexes "spoc,posc"
      ]
   ] .
"""
)


def repository_url(repository_id: str) -> str:
    return join_url(get_settings().sesame_server_url, "repositories", repository_id)


def _label(title: str) -> str:
    return title.replace("\\", "\\\\").replace('"', '\\"')


@register_provider
class SesameImporterProvider(WorkflowProvider):
    """Import the version's harvested and uploaded files into RDF4J."""

    provider_kind = ProviderKind.IMPORT

    def insert(self, task_info: TaskInfo, subtask: Subtask) -> None:
        repository_id = sesame_repository_id(task_info)
        url = repository_url(repository_id)
        subtask.add_result(REPOSITORY_ID, repository_id)

        with http_client() as client:
            try:
                self._ensure_repository(client, url, repository_id, task_info)
            except httpx.HTTPError as e:
                self.fail(subtask, CREATE_FAILED, url=url, error_detail=str(e))
                return
            try:
                self._upload(client, url, task_info, subtask)
            except httpx.HTTPError as e:
                self.fail(subtask, UPLOAD_FAILED, url=url, error_detail=str(e))
                return
        if subtask.status.failed:
            return

        settings = get_settings()
        sparql_url = settings.sesame_sparql_prefix + repository_id
        create_system_access_point(task_info, AccessPointType.API_SPARQL, {"url": sparql_url})
        create_system_access_point(
            task_info,
            AccessPointType.SESAME_DOWNLOAD,
            {"repository": repository_id, "server": settings.sesame_server_url},
        )
        subtask.add_result(SPARQL_ENDPOINT, sparql_url)
        self.succeed(subtask)

    def delete(self, task_info: TaskInfo, subtask: Subtask) -> None:
        retire_system_access_points(task_info, AccessPointType.API_SPARQL)
        retire_system_access_points(task_info, AccessPointType.SESAME_DOWNLOAD)

        repository_id = sesame_repository_id(task_info)
        url = repository_url(repository_id)
        try:
            with http_client() as client:
                response = client.delete(url)
                if response.status_code != 404:
                    response.raise_for_status()
        except httpx.HTTPError as e:
            self.fail(subtask, UNIMPORT_FAILED, url=url, error_detail=str(e))
            return
        self.log.info("importer.sesame.dropped", repository_id=repository_id)
        self.succeed(subtask)

    def _ensure_repository(
        self, client: httpx.Client, url: str, repository_id: str, task_info: TaskInfo
    ) -> None:
        response = client.get(f"{url}/size")
        if response.status_code != 404:
            response.raise_for_status()
            return
        config = REPOSITORY_CONFIG.substitute(
            repository_id=repository_id, label=_label(task_info.vocabulary.title or repository_id)
        )
        client.put(url, content=config, headers={"Content-Type": "text/turtle"}).raise_for_status()
        self.log.info("importer.sesame.created", repository_id=repository_id)

    def _upload(self, client: httpx.Client, url: str, task_info: TaskInfo, subtask: Subtask) -> None:
        if str(subtask.get_property("clear", "true")).lower() != "false":
            client.delete(f"{url}/statements").raise_for_status()

        for path in paths_to_process(task_info):
            content_type = RDF_CONTENT_TYPES.get(path.suffix.lower())
            if content_type is None:
                subtask.add_result(f"parse-{path.name}", "Unsupported RDF format, not imported")
                self.fail(subtask, f"Unable to import {path.name}: unknown RDF format", path=str(path))
                continue
            client.post(
                f"{url}/statements",
                content=Path(path).read_bytes(),
                headers={"Content-Type": content_type},
            ).raise_for_status()
            self.log.debug("importer.sesame.uploaded", path=str(path))
