"""Tests for vocabreg.workflow.admin and the outcome projection."""

from __future__ import annotations

import datetime
import json

import pytest

from vocabreg.core.enums import ProviderKind, SubtaskOperation, SubtaskStatus, TaskStatus
from vocabreg.core.errors import InconsistentTaskSetError, TaskNotFoundError
from vocabreg.core.orm import TaskTable, VersionTable, VocabularyTable, dao
from vocabreg.core.temporal import make_currently_valid
from vocabreg.workflow.admin import create_task, get_task, run_task, run_task_set
from vocabreg.workflow.outcome import WorkflowOutcome, task_outcome, workflow_outcome
from vocabreg.workflow.priorities import Priority
from vocabreg.workflow.subtask import Subtask
from vocabreg.workflow.task import Task

START = datetime.datetime(2026, 1, 1)


@pytest.fixture
def seeded(session_factory):
    """Two vocabularies with one version each, committed."""
    with session_factory() as session:
        for vocabulary_id, version_id, slug in ((1, 10, "rifcs"), (2, 20, "anzsrc")):
            vocabulary = VocabularyTable(
                vocabulary_id=vocabulary_id, owner="ANDS Test Owner", slug=slug,
                data={"title": slug.upper()}, modified_by="test",
            )
            version = VersionTable(
                version_id=version_id, vocabulary_id=vocabulary_id, slug="v1", data={}, modified_by="test"
            )
            make_currently_valid(vocabulary, START)
            make_currently_valid(version, START)
            dao.add_entity(session, vocabulary)
            dao.add_entity(session, version)
        session.commit()


def _persist(session_factory, *subtasks, vocabulary_id=1, version_id=10) -> int:
    task = Task(vocabulary_id=vocabulary_id, version_id=version_id)
    task.add_subtasks(subtasks)
    with session_factory() as session:
        row = create_task(session, task)
        session.commit()
        return row.id


def _publish() -> Subtask:
    return Subtask.create(ProviderKind.PUBLISH, "SISSVoc", SubtaskOperation.INSERT)


def _harvest_without_project() -> Subtask:
    return Subtask.create(ProviderKind.HARVEST, "PoolParty", SubtaskOperation.INSERT)


class TestCreateAndGet:
    def test_round_trip(self, session_factory, seeded):
        task_id = _persist(session_factory, _publish(), _harvest_without_project())
        with session_factory() as session:
            row = session.get(TaskTable, task_id)
            assert row.status == "NEW"
            assert json.loads(row.response) == {}
            task = get_task(session, task_id)
        assert [s.describe() for s in task.subtasks] == ["publish/SISSVoc INSERT", "harvest/PoolParty INSERT"]
        assert task.subtasks[0].priority == Priority.ranked(40)

    def test_missing(self, session_factory):
        with session_factory() as session, pytest.raises(TaskNotFoundError):
            get_task(session, 1)


class TestRunTask:
    def test_run_persists_results(self, session_factory, seeded):
        task_id = _persist(session_factory, _publish(), _harvest_without_project())

        task_info = run_task(session_factory, task_id, modified_by="runner")

        assert task_info.task.status is TaskStatus.PARTIAL
        with session_factory() as session:
            row = session.get(TaskTable, task_id)
            assert row.status == "PARTIAL"
            assert json.loads(row.response)["response"] == "Some subtasks did not complete."
            stored = json.loads(row.params)
        assert [s["status"] for s in stored] == ["SUCCESS", "ERROR"]
        assert "timestamp" in stored[0]["results"]

    def test_run_missing_task(self, session_factory):
        with pytest.raises(TaskNotFoundError):
            run_task(session_factory, 42)


class TestRunTaskSet:
    def test_runs_in_order(self, session_factory, seeded):
        first = _persist(session_factory, _publish())
        second = _persist(session_factory, _harvest_without_project())

        outcome = run_task_set(session_factory, [first, second])

        assert isinstance(outcome, WorkflowOutcome)
        assert outcome.vocabulary_id == 1
        assert [t.task_id for t in outcome.task_outcomes] == [first, second]
        assert [t.status for t in outcome.task_outcomes] == [TaskStatus.SUCCESS, TaskStatus.ERROR]

    def test_mixed_vocabularies_run_nothing(self, session_factory, seeded):
        first = _persist(session_factory, _publish())
        other = _persist(session_factory, _publish(), vocabulary_id=2, version_id=20)

        with pytest.raises(InconsistentTaskSetError) as excinfo:
            run_task_set(session_factory, [first, other])

        assert excinfo.value.context.metadata["vocabulary_ids"] == [1, 2]
        with session_factory() as session:
            assert session.get(TaskTable, first).status == "NEW"

    def test_missing_member(self, session_factory, seeded):
        first = _persist(session_factory, _publish())
        with pytest.raises(TaskNotFoundError):
            run_task_set(session_factory, [first, 999])


class TestOutcome:
    def test_every_subtask_is_reported(self, make_task_info):
        failing = _harvest_without_project()
        task_info = make_task_info(_publish(), failing)
        task_info.process()

        outcome = task_outcome(task_info)

        assert outcome.task_id is None
        assert outcome.vocabulary_id == 1
        assert outcome.version_id == 10
        assert outcome.status is TaskStatus.PARTIAL
        assert [s.status for s in outcome.subtask_outcomes] == [SubtaskStatus.SUCCESS, SubtaskStatus.ERROR]
        assert [s.provider_name for s in outcome.failed_subtasks] == ["PoolParty"]
        harvest = outcome.subtask_outcomes[1]
        assert (harvest.priority, harvest.ranked) == (10, True)
        assert [e.key for e in harvest.subtask_results] == ["error", "timestamp"]
        assert [e.key for e in outcome.task_results][0] == "response"

    def test_unranked_and_not_computed(self, make_task_info):
        backup = Subtask.create(ProviderKind.BACKUP, "PoolParty", SubtaskOperation.PERFORM)
        uncomputed = Subtask(ProviderKind.PUBLISH, "SISSVoc", SubtaskOperation.INSERT)
        outcome = task_outcome(make_task_info(backup, uncomputed))
        assert [(s.priority, s.ranked) for s in outcome.subtask_outcomes] == [(None, False), (None, False)]
        assert outcome.status is TaskStatus.NEW

    def test_json_dump(self, make_task_info):
        task_info = make_task_info(_publish())
        task_info.process()
        dumped = workflow_outcome([task_info]).model_dump(mode="json")
        assert dumped["vocabulary_id"] == 1
        (task,) = dumped["task_outcomes"]
        assert task["status"] == "SUCCESS"
        assert task["subtask_outcomes"][0]["provider_kind"] == "publish"
        assert task["subtask_outcomes"][0]["operation"] == "INSERT"

    def test_empty(self):
        assert workflow_outcome([]) == WorkflowOutcome()
