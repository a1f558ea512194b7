"""Tests for the harvest providers."""

from __future__ import annotations

import httpx
import pytest

from vocabreg.core.enums import (
    AccessPointType,
    ProviderKind,
    SubtaskOperation,
    SubtaskStatus,
    VersionArtefactType,
)
from vocabreg.core.orm import dao
from vocabreg.workflow.providers.harvest import (
    NO_PROJECT_ID,
    FileHarvestProvider,
    PoolPartyHarvestProvider,
)
from vocabreg.workflow.subtask import Subtask
from vocabreg.workflow.task_utils import harvest_output_path

CONCEPTS = b'<http://example.org/a> <http://www.w3.org/2004/02/skos/core#prefLabel> "A" .\n'


def _poolparty(operation=SubtaskOperation.INSERT, **properties) -> Subtask:
    return Subtask.create(ProviderKind.HARVEST, "PoolParty", operation, properties)


class TestPoolPartyHarvest:
    def test_export_is_saved(self, mock_http, make_task_info, session):
        requests = mock_http(lambda request: httpx.Response(200, content=CONCEPTS))
        subtask = _poolparty(project_id="1DCE031F")
        task_info = make_task_info(subtask)

        PoolPartyHarvestProvider().do_subtask(task_info, subtask)

        assert subtask.status is SubtaskStatus.SUCCESS
        (request,) = requests
        assert request.url.path == "/PoolParty/api/projects/1DCE031F/export"
        assert request.url.params["format"] == "N-Triples"
        assert request.url.params["exportModules"] == "concepts"
        assert request.headers["Authorization"].startswith("Basic ")

        target = harvest_output_path(task_info) / "concepts.nt"
        assert target.read_bytes() == CONCEPTS
        assert subtask.results["concepts"] == str(target)
        assert subtask.results["poolparty_project_id"] == "1DCE031F"
        (artefact,) = dao.get_current_version_artefacts(session, 10, VersionArtefactType.HARVEST_POOLPARTY)
        assert artefact.data == {"path": str(harvest_output_path(task_info))}

    def test_stale_export_is_replaced(self, mock_http, make_task_info):
        mock_http(lambda request: httpx.Response(200, content=CONCEPTS))
        subtask = _poolparty(project_id="p1")
        task_info = make_task_info(subtask)
        stale = harvest_output_path(task_info) / "concepts.ttl"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")

        PoolPartyHarvestProvider().do_subtask(task_info, subtask)

        assert not stale.exists()
        assert (stale.parent / "concepts.nt").exists()

    def test_missing_project_id(self, make_task_info):
        subtask = _poolparty()
        PoolPartyHarvestProvider().do_subtask(make_task_info(subtask), subtask)
        assert subtask.status is SubtaskStatus.ERROR
        assert subtask.results["error"] == NO_PROJECT_ID

    def test_remote_error(self, mock_http, make_task_info):
        mock_http(lambda request: httpx.Response(503))
        subtask = _poolparty(project_id="p1")
        task_info = make_task_info(subtask)

        PoolPartyHarvestProvider().do_subtask(task_info, subtask)

        assert subtask.status is SubtaskStatus.ERROR
        assert subtask.results["error"].endswith("response code = 503")
        assert not harvest_output_path(task_info).exists()

    def test_unwritable_harvest_directory(self, mock_http, make_task_info):
        mock_http(lambda request: httpx.Response(200, content=CONCEPTS))
        subtask = _poolparty(project_id="p1")
        task_info = make_task_info(subtask)
        blocker = harvest_output_path(task_info)
        blocker.parent.mkdir(parents=True, exist_ok=True)
        blocker.write_text("not a directory")

        PoolPartyHarvestProvider().do_subtask(task_info, subtask)

        assert subtask.status is SubtaskStatus.ERROR
        assert subtask.results["error"].startswith("Unable to save PoolParty export")

    def test_delete_removes_harvest(self, mock_http, make_task_info, session):
        mock_http(lambda request: httpx.Response(200, content=CONCEPTS))
        insert = _poolparty(project_id="p1")
        task_info = make_task_info(insert)
        PoolPartyHarvestProvider().do_subtask(task_info, insert)

        delete = _poolparty(SubtaskOperation.DELETE)
        PoolPartyHarvestProvider().do_subtask(task_info, delete)

        assert delete.status is SubtaskStatus.SUCCESS
        assert not harvest_output_path(task_info).exists()
        assert dao.get_current_version_artefacts(session, 10, VersionArtefactType.HARVEST_POOLPARTY) == []

    def test_delete_without_harvest(self, make_task_info):
        delete = _poolparty(SubtaskOperation.DELETE)
        PoolPartyHarvestProvider().do_subtask(make_task_info(delete), delete)
        assert delete.status is SubtaskStatus.SUCCESS


class TestFileHarvest:
    @pytest.fixture
    def upload(self, tmp_path):
        path = tmp_path / "uploads" / "rifcs.nt"
        path.parent.mkdir()
        path.write_bytes(CONCEPTS)
        return path

    def test_upload_is_stored(self, add_access_point, make_task_info, session, upload, settings):
        ap = add_access_point(AccessPointType.FILE, url="http://registry.test/downloads/1/rifcs.nt")
        subtask = Subtask.create(
            ProviderKind.HARVEST,
            "File",
            SubtaskOperation.INSERT,
            {"access_point_id": ap.access_point_id, "upload_path": str(upload)},
        )
        task_info = make_task_info(subtask)

        FileHarvestProvider().do_subtask(task_info, subtask)

        assert subtask.status is SubtaskStatus.SUCCESS
        stored = settings.data_files_path / "ands-test-owner" / "1" / "10" / "files" / str(ap.access_point_id)
        assert (stored / "rifcs.nt").read_bytes() == CONCEPTS
        assert not upload.exists()
        assert subtask.results["path"] == str(stored / "rifcs.nt")
        current = dao.get_current_access_point(session, ap.access_point_id)
        assert current.data["path"] == str(stored)
        assert current.data["url"] == "http://registry.test/downloads/1/rifcs.nt"

    def test_unknown_access_point(self, make_task_info, upload):
        subtask = Subtask.create(
            ProviderKind.HARVEST, "File", SubtaskOperation.INSERT,
            {"access_point_id": 99, "upload_path": str(upload)},
        )
        FileHarvestProvider().do_subtask(make_task_info(subtask), subtask)
        assert subtask.status is SubtaskStatus.ERROR
        assert subtask.results["error"] == "No access point with id 99"

    def test_missing_upload(self, add_access_point, make_task_info, tmp_path):
        ap = add_access_point(AccessPointType.FILE)
        subtask = Subtask.create(
            ProviderKind.HARVEST, "File", SubtaskOperation.INSERT,
            {"access_point_id": ap.access_point_id, "upload_path": str(tmp_path / "nope.nt")},
        )
        FileHarvestProvider().do_subtask(make_task_info(subtask), subtask)
        assert subtask.status is SubtaskStatus.ERROR

    def test_delete_is_not_supported(self, make_task_info):
        subtask = Subtask.create(ProviderKind.HARVEST, "File", SubtaskOperation.DELETE)
        FileHarvestProvider().do_subtask(make_task_info(subtask), subtask)
        assert subtask.status is SubtaskStatus.ERROR
