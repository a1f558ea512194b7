"""
Tests for vocabreg.workflow.runner.

Providers here are test doubles registered in a local ProviderRegistry;
each records its calls in ``CALLS``.
"""

from __future__ import annotations

import pytest

from vocabreg.core.enums import ProviderKind, SubtaskOperation, SubtaskStatus, TaskStatus
from vocabreg.core.errors import SubtaskExecutionError, TaskAlreadyRunningError
from vocabreg.workflow.providers.base import WorkflowProvider
from vocabreg.workflow.registry import ProviderRegistry
from vocabreg.workflow.runner import (
    NO_SUBTASKS_ERROR,
    RESPONSE_ERROR,
    RESPONSE_PARTIAL,
    RESPONSE_SUCCESS,
    SUBTASK_EXCEPTION,
    SUBTASK_NO_STATUS,
    TaskRunner,
)
from vocabreg.workflow.subtask import Subtask

CALLS: list[str] = []


class RecordingHarvestProvider(WorkflowProvider):
    provider_kind = ProviderKind.HARVEST

    def insert(self, task_info, subtask):
        CALLS.append(subtask.describe())
        self.succeed(subtask)

    def delete(self, task_info, subtask):
        CALLS.append(subtask.describe())
        self.succeed(subtask)


class RecordingPublishProvider(RecordingHarvestProvider):
    provider_kind = ProviderKind.PUBLISH


class RecordingBackupProvider(RecordingHarvestProvider):
    provider_kind = ProviderKind.BACKUP


class FailingTransformProvider(WorkflowProvider):
    provider_kind = ProviderKind.TRANSFORM

    def insert(self, task_info, subtask):
        CALLS.append(subtask.describe())
        self.fail(subtask, "transform failed")


class RaisingImporterProvider(WorkflowProvider):
    provider_kind = ProviderKind.IMPORT

    def insert(self, task_info, subtask):
        CALLS.append(subtask.describe())
        raise RuntimeError("connection reset")

    def delete(self, task_info, subtask):
        raise SubtaskExecutionError("repository locked")


class OrderedTransformProvider(WorkflowProvider):
    provider_kind = ProviderKind.TRANSFORM

    def insert(self, task_info, subtask):
        CALLS.append(subtask.properties["id"])
        self.succeed(subtask)


class SilentPublishProvider(WorkflowProvider):
    provider_kind = ProviderKind.PUBLISH

    def insert(self, task_info, subtask):
        CALLS.append(subtask.describe())


@pytest.fixture
def registry() -> ProviderRegistry:
    CALLS.clear()
    registry = ProviderRegistry()
    for cls in (
        RecordingHarvestProvider,
        RecordingPublishProvider,
        RecordingBackupProvider,
        FailingTransformProvider,
        RaisingImporterProvider,
        SilentPublishProvider,
        OrderedTransformProvider,
    ):
        registry.register(cls)
    return registry


@pytest.fixture
def subtask(registry):
    def build(kind, name, operation=SubtaskOperation.INSERT, **properties) -> Subtask:
        return Subtask.create(kind, name, operation, properties, registry=registry)

    return build


class TestOrdering:
    def test_harvest_runs_before_publish(self, registry, subtask, make_task_info):
        publish = subtask(ProviderKind.PUBLISH, "Recording")
        harvest = subtask(ProviderKind.HARVEST, "Recording")
        task_info = make_task_info(publish, harvest)

        TaskRunner(registry).run(task_info)

        assert CALLS == ["harvest/Recording INSERT", "publish/Recording INSERT"]
        assert task_info.task.subtasks == [publish, harvest]

    def test_deletes_before_inserts_and_unranked_last(self, registry, subtask, make_task_info):
        task_info = make_task_info(
            subtask(ProviderKind.BACKUP, "Recording", SubtaskOperation.PERFORM),
            subtask(ProviderKind.HARVEST, "Recording"),
            subtask(ProviderKind.PUBLISH, "Recording", SubtaskOperation.DELETE),
            subtask(ProviderKind.HARVEST, "Recording", SubtaskOperation.DELETE),
        )

        TaskRunner(registry).run(task_info)

        assert CALLS == [
            "publish/Recording DELETE",
            "harvest/Recording DELETE",
            "harvest/Recording INSERT",
            "backup/Recording PERFORM",
        ]

    def test_equal_priorities_keep_insertion_order(self, registry, subtask, make_task_info):
        second = subtask(ProviderKind.TRANSFORM, "Ordered", id="b")
        first = subtask(ProviderKind.TRANSFORM, "Ordered", id="a")
        TaskRunner(registry).run(make_task_info(second, first))
        assert CALLS == ["b", "a"]

    def test_not_computed_priority_runs_last(self, registry, subtask, make_task_info):
        uncomputed = Subtask(ProviderKind.HARVEST, "Recording", SubtaskOperation.DELETE)
        task_info = make_task_info(uncomputed, subtask(ProviderKind.BACKUP, "Recording"))
        TaskRunner(registry).run(task_info)
        assert CALLS == ["backup/Recording INSERT", "harvest/Recording DELETE"]


class TestFailurePolicy:
    def test_partial_failure_is_reported(self, registry, subtask, make_task_info):
        failing = subtask(ProviderKind.TRANSFORM, "Failing")
        succeeding = subtask(ProviderKind.PUBLISH, "Recording")
        task_info = make_task_info(failing, succeeding)

        task = TaskRunner(registry).run(task_info)

        assert failing.status is SubtaskStatus.ERROR
        assert failing.results["error"] == "transform failed"
        assert succeeding.status is SubtaskStatus.SUCCESS
        assert task.status is TaskStatus.PARTIAL
        assert task.results["response"] == RESPONSE_PARTIAL
        assert task.results["subtasks_failed"] == "1"
        assert task.results["subtasks_succeeded"] == "1"

    def test_all_success(self, registry, subtask, make_task_info):
        task_info = make_task_info(subtask(ProviderKind.HARVEST, "Recording"))
        task = TaskRunner(registry).run(task_info)
        assert task.status is TaskStatus.SUCCESS
        assert task.results["response"] == RESPONSE_SUCCESS
        assert "timestamp" in task.subtasks[0].results

    def test_no_success_is_error(self, registry, subtask, make_task_info):
        task_info = make_task_info(subtask(ProviderKind.TRANSFORM, "Failing"))
        task = TaskRunner(registry).run(task_info)
        assert task.status is TaskStatus.ERROR
        assert task.results["response"] == RESPONSE_ERROR

    def test_exception_is_recorded(self, registry, subtask, make_task_info):
        raising = subtask(ProviderKind.IMPORT, "Raising")
        after = subtask(ProviderKind.PUBLISH, "Recording")
        task_info = make_task_info(raising, after)

        TaskRunner(registry).run(task_info)

        assert raising.status is SubtaskStatus.EXCEPTION
        assert raising.results["error"] == SUBTASK_EXCEPTION
        assert "connection reset" in raising.results["stacktrace"]
        assert after.status is SubtaskStatus.SUCCESS

    def test_subtask_execution_error_is_error(self, registry, subtask, make_task_info):
        raising = subtask(ProviderKind.IMPORT, "Raising", SubtaskOperation.DELETE)
        TaskRunner(registry).run(make_task_info(raising))
        assert raising.status is SubtaskStatus.ERROR
        assert raising.results["error"] == "repository locked"

    def test_missing_status_is_error(self, registry, subtask, make_task_info):
        silent = subtask(ProviderKind.PUBLISH, "Silent")
        TaskRunner(registry).run(make_task_info(silent))
        assert silent.status is SubtaskStatus.ERROR
        assert silent.results["error"] == SUBTASK_NO_STATUS

    def test_unknown_provider_is_error_not_crash(self, registry, subtask, make_task_info):
        missing = subtask(ProviderKind.HARVEST, "NoSuchName")
        found = subtask(ProviderKind.PUBLISH, "Recording")
        task = TaskRunner(registry).run(make_task_info(missing, found))
        assert missing.status is SubtaskStatus.ERROR
        assert "harvest/NoSuchName" in missing.results["error"]
        assert task.status is TaskStatus.PARTIAL

    def test_blocking_failure_stops_the_run(self, registry, make_task_info):
        failing = Subtask.create(
            ProviderKind.TRANSFORM, "Failing", SubtaskOperation.INSERT, blocking=True, registry=registry
        )
        later = Subtask.create(ProviderKind.PUBLISH, "Recording", SubtaskOperation.INSERT, registry=registry)
        task = TaskRunner(registry).run(make_task_info(later, failing))

        assert failing.status is SubtaskStatus.ERROR
        assert later.status is SubtaskStatus.NOT_RUN
        assert "timestamp" not in later.results
        assert task.status is TaskStatus.ERROR
        assert task.results["subtasks_not_run"] == "1"


class TestTaskLifecycle:
    def test_empty_task(self, registry, make_task_info):
        task = TaskRunner(registry).run(make_task_info())
        assert task.status is TaskStatus.ERROR
        assert task.results == {"error": NO_SUBTASKS_ERROR, "response": RESPONSE_ERROR}

    def test_running_task_is_rejected(self, registry, subtask, make_task_info):
        task_info = make_task_info(subtask(ProviderKind.HARVEST, "Recording"))
        task_info.task.status = TaskStatus.RUNNING
        with pytest.raises(TaskAlreadyRunningError):
            TaskRunner(registry).run(task_info)
        assert CALLS == []

    def test_rerun_resets_results(self, registry, subtask, make_task_info):
        failing = subtask(ProviderKind.TRANSFORM, "Failing")
        task_info = make_task_info(failing)
        runner = TaskRunner(registry)
        runner.run(task_info)
        runner.run(task_info)
        assert CALLS == ["transform/Failing INSERT"] * 2
        assert set(failing.results) == {"error", "timestamp"}

    def test_skip_succeeded(self, registry, subtask, make_task_info):
        done = subtask(ProviderKind.HARVEST, "Recording")
        failed = subtask(ProviderKind.PUBLISH, "Recording")
        done.status = SubtaskStatus.SUCCESS
        failed.status = SubtaskStatus.ERROR
        task = TaskRunner(registry).run(make_task_info(done, failed), skip_succeeded=True)
        assert CALLS == ["publish/Recording INSERT"]
        assert task.status is TaskStatus.SUCCESS

    def test_task_info_registry_is_used_by_process(self, registry, subtask, make_task_info):
        task_info = make_task_info(subtask(ProviderKind.HARVEST, "Recording"), registry=registry)
        assert task_info.process() is TaskStatus.SUCCESS
