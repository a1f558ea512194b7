"""Outcome models for executed tasks.

Pydantic v2 models projecting executed TaskInfos into a structure for
reporting layers. The models nest: subtask outcomes roll up into task
outcomes, which roll up into one workflow outcome per vocabulary.

Every subtask appears in its task's outcome whatever its status, so a
failed or skipped subtask is never dropped from a report. Results are
lists of key/value entries in insertion order.

Tags:
    outcome, reporting, pydantic, workflow
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from pydantic import BaseModel, Field

from vocabreg.core.enums import ProviderKind, SubtaskOperation, SubtaskStatus, TaskStatus
from vocabreg.workflow.subtask import Subtask
from vocabreg.workflow.task_info import TaskInfo


class ResultEntry(BaseModel):
    key: str
    value: str


class SubtaskOutcome(BaseModel):
    """Outcome of one subtask."""

    provider_kind: ProviderKind
    provider_name: str
    operation: SubtaskOperation
    priority: int | None = None
    ranked: bool = False
    status: SubtaskStatus
    subtask_results: list[ResultEntry] = Field(default_factory=list)


class TaskOutcome(BaseModel):
    """Outcome of one task."""

    task_id: int | None = None
    vocabulary_id: int
    version_id: int | None = None
    status: TaskStatus
    task_results: list[ResultEntry] = Field(default_factory=list)
    subtask_outcomes: list[SubtaskOutcome] = Field(default_factory=list)

    @property
    def failed_subtasks(self) -> list[SubtaskOutcome]:
        return [s for s in self.subtask_outcomes if s.status.failed]


class WorkflowOutcome(BaseModel):
    """Outcomes of the tasks run for one vocabulary."""

    vocabulary_id: int | None = None
    task_outcomes: list[TaskOutcome] = Field(default_factory=list)


def _entries(results: Mapping[str, str]) -> list[ResultEntry]:
    return [ResultEntry(key=k, value=v) for k, v in results.items()]


def subtask_outcome(subtask: Subtask) -> SubtaskOutcome:
    priority = subtask.priority
    return SubtaskOutcome(
        provider_kind=subtask.provider_kind,
        provider_name=subtask.provider_name,
        operation=subtask.operation,
        priority=priority.value if priority is not None else None,
        ranked=priority is not None and priority.is_ranked,
        status=subtask.status,
        subtask_results=_entries(subtask.results),
    )


def task_outcome(task_info: TaskInfo) -> TaskOutcome:
    task = task_info.task
    return TaskOutcome(
        task_id=task_info.db_task.id if task_info.db_task is not None else None,
        vocabulary_id=task.vocabulary_id,
        version_id=task.version_id,
        status=task.status,
        task_results=_entries(task.results),
        subtask_outcomes=[subtask_outcome(s) for s in task.subtasks],
    )


def workflow_outcome(task_infos: Iterable[TaskInfo]) -> WorkflowOutcome:
    """Project executed task infos; the vocabulary id is taken from the first."""
    task_infos = list(task_infos)
    return WorkflowOutcome(
        vocabulary_id=task_infos[0].vocabulary_id if task_infos else None,
        task_outcomes=[task_outcome(ti) for ti in task_infos],
    )
