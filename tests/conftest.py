"""
Shared pytest fixtures and configuration for vocabreg tests.

This module provides:
- Registry, settings and HTTP transport reset fixtures for test isolation
- In-memory database engine, sessions and sample vocabulary/version rows
- A TaskInfo factory for running subtasks against the sample version
- A fixed "now" for deterministic temporal assertions

Usage:
    Fixtures are auto-discovered by pytest; request them as arguments.

    def test_something(make_task_info, session):
        task_info = make_task_info(subtask)
        ...
"""

from __future__ import annotations

import datetime
from collections.abc import Callable, Generator
from pathlib import Path

import httpx
import pytest

from vocabreg.core.enums import AccessPointType, ApSource
from vocabreg.core.orm import (
    AccessPointTable,
    RegistryBase,
    RegistrySession,
    VersionTable,
    VocabularyTable,
    create_registry_engine,
    registry_session_factory,
)
from vocabreg.core.orm import dao
from vocabreg.core.settings import RegistrySettings, get_settings, reset_settings
from vocabreg.core.temporal import make_currently_valid
from vocabreg.workflow.http import set_transport
from vocabreg.workflow.registry import reset_default_registry
from vocabreg.workflow.subtask import Subtask
from vocabreg.workflow.task import Task
from vocabreg.workflow.task_info import TaskInfo

VOCABULARY_ID = 1
VERSION_ID = 10

SPEC_TEMPLATE = "id=${SVC_ID}\ntitle=${SERVICE_TITLE}\nlabel=${SERVICE_LABEL}\nprefix=${SVC_PREFIX}\nkeep=${NOT_A_SETTING}\n"


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test without an explicit marker as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path) -> Generator[RegistrySettings, None, None]:
    """
    Point every file path and remote endpoint at test locations.

    Settings are rebuilt per test so no test can see another's paths,
    and nothing reads a developer's ``.env`` file.
    """
    template = tmp_path / "sissvoc-template.ttl"
    template.write_text(SPEC_TEMPLATE, encoding="utf-8")
    settings = RegistrySettings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'vocabreg.db'}",
        data_files_path=tmp_path / "data",
        backup_files_path=tmp_path / "backup",
        download_prefix="http://registry.test/downloads/",
        poolparty_remote_url="http://poolparty.test/PoolParty/",
        poolparty_username="harvester",
        poolparty_password="secret",
        poolparty_format="N-Triples",
        poolparty_export_module="concepts",
        sesame_server_url="http://rdf4j.test/rdf4j-server/",
        sesame_sparql_prefix="http://registry.test/sparql/",
        sissvoc_spec_template=template,
        sissvoc_spec_output_path=tmp_path / "sissvoc",
        sissvoc_endpoints_prefix="http://registry.test/lda/",
        sissvoc_service_title="Test LDA",
    )
    reset_settings(settings)
    yield settings
    reset_settings()


@pytest.fixture(autouse=True)
def clean_provider_registry() -> Generator[None, None, None]:
    """Rebuild the default provider registry around each test."""
    reset_default_registry()
    yield
    reset_default_registry()


@pytest.fixture(autouse=True)
def no_network() -> Generator[None, None, None]:
    """Fail any provider request a test did not route explicitly."""

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError(f"Unexpected request: {request.method} {request.url}", request=request)

    set_transport(httpx.MockTransport(refuse))
    yield
    set_transport(None)


@pytest.fixture
def mock_http() -> Callable[[Callable[[httpx.Request], httpx.Response]], list[httpx.Request]]:
    """
    Route provider HTTP requests to a handler; returns the list of requests seen.

        requests = mock_http(lambda request: httpx.Response(200))
    """

    def install(handler: Callable[[httpx.Request], httpx.Response]) -> list[httpx.Request]:
        seen: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        set_transport(httpx.MockTransport(record))
        return seen

    return install


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_registry_engine("sqlite:///:memory:")
    RegistryBase.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return registry_session_factory(engine)


@pytest.fixture
def session(engine) -> Generator[RegistrySession, None, None]:
    """RegistrySession bound to the in-memory engine."""
    with RegistrySession(bind=engine) as sess:
        yield sess


@pytest.fixture
def now() -> datetime.datetime:
    return datetime.datetime(2026, 3, 14, 9, 26, 53)


@pytest.fixture
def vocabulary(session, now) -> VocabularyTable:
    row = VocabularyTable(
        vocabulary_id=VOCABULARY_ID,
        owner="ANDS Test Owner",
        slug="rifcs",
        data={"title": "RIF-CS Vocabulary"},
        modified_by="test",
    )
    make_currently_valid(row, now - datetime.timedelta(days=30))
    return dao.add_entity(session, row)


@pytest.fixture
def version(session, vocabulary, now) -> VersionTable:
    row = VersionTable(
        version_id=VERSION_ID,
        vocabulary_id=vocabulary.vocabulary_id,
        slug="v1-6",
        data={"title": "1.6"},
        modified_by="test",
    )
    make_currently_valid(row, now - datetime.timedelta(days=30))
    return dao.add_entity(session, row)


@pytest.fixture
def make_task_info(session, vocabulary, version, now) -> Callable[..., TaskInfo]:
    """Build a TaskInfo for the sample version holding the given subtasks."""

    def build(*subtasks: Subtask, registry=None) -> TaskInfo:
        task = Task(vocabulary_id=vocabulary.vocabulary_id, version_id=version.version_id)
        task.add_subtasks(subtasks)
        return TaskInfo(
            task=task,
            vocabulary=vocabulary,
            version=version,
            session=session,
            modified_by="tester",
            now_time=now,
            registry=registry,
        )

    return build


@pytest.fixture
def add_access_point(session, version, now) -> Callable[..., AccessPointTable]:
    """Add a current access point to the sample version."""

    def add(ap_type: AccessPointType, source: ApSource = ApSource.USER, **data) -> AccessPointTable:
        row = AccessPointTable(
            version_id=version.version_id,
            type=ap_type.value,
            source=source.value,
            data=data,
            modified_by="test",
        )
        make_currently_valid(row, now)
        return dao.add_entity(session, row)

    return add


@pytest.fixture
def content_dir(add_access_point, tmp_path) -> Path:
    """Directory of uploaded content registered as a FILE access point."""
    path = tmp_path / "content"
    path.mkdir()
    add_access_point(AccessPointType.FILE, path=str(path))
    return path


@pytest.fixture
def settings() -> RegistrySettings:
    return get_settings()
