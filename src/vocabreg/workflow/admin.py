"""Administrative task operations: persist tasks now, run them later.

``run_task`` and ``run_task_set`` own their transactions: each task runs
in a session from the given factory, committed when the run completes
(whatever the task's status) and rolled back if the run raises.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from sqlalchemy.orm import Session

from vocabreg.core.enums import TaskStatus
from vocabreg.core.errors import InconsistentTaskSetError, TaskNotFoundError
from vocabreg.core.logging import LogContext, get_logger
from vocabreg.core.orm import dao
from vocabreg.core.orm.tables import TaskTable
from vocabreg.workflow.outcome import WorkflowOutcome, workflow_outcome
from vocabreg.workflow.task import Task, serialize_results, serialize_subtasks
from vocabreg.workflow.task_info import SYSTEM_USER, TaskInfo
from vocabreg.workflow.task_utils import get_task_info, task_from_row

log = get_logger(__name__)

SessionFactory = Callable[[], Session]


def create_task(session: Session, task: Task) -> TaskTable:
    """Persist *task* with status NEW; returns its row (flushed, so ``id`` is set)."""
    row = TaskTable(
        vocabulary_id=task.vocabulary_id,
        version_id=task.version_id,
        status=TaskStatus.NEW.value,
        params=serialize_subtasks(task.subtasks),
        response=serialize_results({}),
    )
    session.add(row)
    session.flush()
    log.info("admin.task_created", task_id=row.id, subtasks=len(task))
    return row


def get_task(session: Session, task_id: int) -> Task:
    row = dao.get_task(session, task_id)
    if row is None:
        raise TaskNotFoundError(task_id)
    return task_from_row(row)


def run_task(session_factory: SessionFactory, task_id: int, modified_by: str = SYSTEM_USER) -> TaskInfo:
    """Run one persisted task in its own transaction."""
    with session_factory() as session, LogContext(task_id=task_id):
        try:
            task_info = get_task_info(session, task_id, modified_by)
            status = task_info.process()
            session.commit()
        except Exception:
            session.rollback()
            log.exception("admin.task_run_failed")
            raise
    log.info("admin.task_run", task_id=task_id, status=status.value)
    return task_info


def run_task_set(
    session_factory: SessionFactory,
    task_ids: Sequence[int],
    modified_by: str = SYSTEM_USER,
) -> WorkflowOutcome:
    """Run several tasks of one vocabulary, in the order given.

    Raises:
        TaskNotFoundError: If any task is missing
        InconsistentTaskSetError: If the tasks belong to different
            vocabularies; nothing has run at that point
    """
    with session_factory() as session:
        vocabulary_ids = []
        for task_id in task_ids:
            row = dao.get_task(session, task_id)
            if row is None:
                raise TaskNotFoundError(task_id)
            vocabulary_ids.append(row.vocabulary_id)
    if len(set(vocabulary_ids)) > 1:
        raise InconsistentTaskSetError(
            f"Tasks {list(task_ids)} belong to more than one vocabulary"
        ).with_context(metadata={"vocabulary_ids": sorted(set(vocabulary_ids))})

    task_infos = [run_task(session_factory, task_id, modified_by) for task_id in task_ids]
    return workflow_outcome(task_infos)
