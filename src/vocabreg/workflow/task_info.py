"""Execution context for one task run.

A TaskInfo bundles the task with its vocabulary and version rows, the
acting user, a single "now" used for every entity change made during the
run, and the caller's session. It is created per execution and handed by
reference to every provider; providers must not keep it after their
``do_subtask`` call returns, nor substitute a different session or time.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from vocabreg.core.enums import TaskStatus
from vocabreg.core.orm.tables import TaskTable, VersionTable, VocabularyTable
from vocabreg.core.temporal import utcnow
from vocabreg.workflow.task import Task, serialize_results, serialize_subtasks

if TYPE_CHECKING:
    from vocabreg.workflow.registry import ProviderRegistry

SYSTEM_USER = "SYSTEM"


@dataclass(eq=False)
class TaskInfo:
    task: Task
    vocabulary: VocabularyTable
    version: VersionTable | None
    session: Session
    modified_by: str = SYSTEM_USER
    now_time: datetime.datetime = field(default_factory=utcnow)
    db_task: TaskTable | None = None
    registry: ProviderRegistry | None = None

    @property
    def vocabulary_id(self) -> int:
        return self.task.vocabulary_id

    @property
    def version_id(self) -> int | None:
        return self.task.version_id

    def process(self) -> TaskStatus:
        """Run the task, then write its state back to the task row."""
        from vocabreg.workflow.runner import TaskRunner

        TaskRunner(registry=self.registry).run(self)
        self.persist()
        return self.task.status

    def persist(self) -> None:
        """Copy status, subtask states and results onto ``db_task``."""
        if self.db_task is None:
            return
        self.db_task.status = self.task.status.value
        self.db_task.params = serialize_subtasks(self.task.subtasks)
        self.db_task.response = serialize_results(self.task.results)
        self.session.flush()
