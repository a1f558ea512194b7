"""Task Runner - executes a task's subtasks in priority order.

Execution is synchronous and sequential on the calling thread. The
runner:

1. stably sorts a working copy of the subtasks by priority (ranked
   ascending, then unranked, then not computed; ties keep insertion
   order),
2. resolves each subtask's provider through the registry and invokes it
   with the shared TaskInfo,
3. records a status and a ``timestamp`` result on every executed subtask,
4. sets the task's aggregate status and results.

Failure policy: a failed subtask (ERROR or EXCEPTION) does not roll back
earlier subtasks and does not stop later ones, unless it is marked
``blocking``; the subtasks after a failed blocking one stay NOT_RUN.
Provider resolution failures are recorded as ERROR on the subtask.

Aggregate status:

    every subtask SUCCESS            → SUCCESS  ("All tasks completed.")
    some SUCCESS, some not           → PARTIAL
    no SUCCESS                       → ERROR    ("Error running task.")
    no subtasks at all               → ERROR    (+ "error" result)
"""

from __future__ import annotations

import traceback
from collections import Counter

from vocabreg.core.enums import SubtaskStatus, TaskStatus
from vocabreg.core.errors import ProviderNotFoundError, SubtaskExecutionError, TaskAlreadyRunningError
from vocabreg.core.logging import LogContext, get_logger, log_step
from vocabreg.core.temporal import utcnow
from vocabreg.workflow.priorities import priority_sort_key
from vocabreg.workflow.registry import ProviderRegistry, get_default_registry
from vocabreg.workflow.subtask import Subtask
from vocabreg.workflow.task import ERROR, RESPONSE, STACKTRACE, TIMESTAMP, Task
from vocabreg.workflow.task_info import TaskInfo

log = get_logger(__name__)

NO_SUBTASKS_ERROR = "No subtasks specified, or invalid format."
RESPONSE_ERROR = "Error running task."
RESPONSE_PARTIAL = "Some subtasks did not complete."
RESPONSE_SUCCESS = "All tasks completed."
SUBTASK_EXCEPTION = "Exception in subtask."
SUBTASK_NO_STATUS = "Provider did not report a status."

SUCCEEDED = "subtasks_succeeded"
FAILED = "subtasks_failed"
NOT_RUN = "subtasks_not_run"


class TaskRunner:
    """
    Synchronous task runner.

    Not re-entrant for one task: calling ``run`` on a task that is
    already running raises ``TaskAlreadyRunningError``.
    """

    def __init__(self, registry: ProviderRegistry | None = None):
        self._registry = registry

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry or get_default_registry()

    def run(self, task_info: TaskInfo, *, skip_succeeded: bool = False) -> Task:
        """
        Run every subtask of ``task_info.task``.

        Args:
            task_info: Execution context; its session and time are shared by all subtasks
            skip_succeeded: Keep subtasks that already succeeded in an earlier run
                instead of running them again

        Returns:
            The task, with subtask and aggregate status/results filled in
        """
        task = task_info.task
        if task.status is TaskStatus.RUNNING:
            raise TaskAlreadyRunningError("Task is already running").with_context(
                task_id=task_info.db_task.id if task_info.db_task else None,
                vocabulary_id=task.vocabulary_id,
            )

        with LogContext(
            task_id=task_info.db_task.id if task_info.db_task else None,
            vocabulary_id=task.vocabulary_id,
            version_id=task.version_id,
        ):
            subtasks = task.subtasks
            task.results = {}
            if not subtasks:
                task.status = TaskStatus.ERROR
                task.add_result(ERROR, NO_SUBTASKS_ERROR)
                task.add_result(RESPONSE, RESPONSE_ERROR)
                log.error("runner.no_subtasks")
                return task

            task.status = TaskStatus.RUNNING
            try:
                self._run_subtasks(task_info, subtasks, skip_succeeded)
            except BaseException:
                task.status = TaskStatus.ERROR
                task.add_result(RESPONSE, RESPONSE_ERROR)
                raise
            self._aggregate(task)

        return task

    def _run_subtasks(self, task_info: TaskInfo, subtasks: list[Subtask], skip_succeeded: bool) -> None:
        ordered = sorted(subtasks, key=lambda s: priority_sort_key(s.priority))
        log.info("runner.started", subtasks=len(ordered))

        blocked_by: Subtask | None = None
        for subtask in ordered:
            if skip_succeeded and subtask.status is SubtaskStatus.SUCCESS:
                log.debug("runner.subtask.skipped", subtask=subtask.describe())
                continue
            subtask.reset()
            if blocked_by is not None:
                continue
            self._run_subtask(task_info, subtask)
            if subtask.status.failed and subtask.blocking:
                blocked_by = subtask
                log.warning("runner.stopped", failed_at=subtask.describe())

    def _run_subtask(self, task_info: TaskInfo, subtask: Subtask) -> None:
        try:
            provider = self.registry.resolve(subtask.provider_kind, subtask.provider_name)
        except ProviderNotFoundError as e:
            subtask.status = SubtaskStatus.ERROR
            subtask.add_result(ERROR, e.message)
        else:
            try:
                with log_step("runner.subtask", subtask=subtask.describe(), priority=str(subtask.priority)):
                    provider.do_subtask(task_info, subtask)
            except SubtaskExecutionError as e:
                subtask.status = SubtaskStatus.ERROR
                subtask.add_result(ERROR, e.message)
            except Exception:
                subtask.status = SubtaskStatus.EXCEPTION
                subtask.add_result(ERROR, SUBTASK_EXCEPTION)
                subtask.add_result(STACKTRACE, traceback.format_exc())
            else:
                if subtask.status is SubtaskStatus.NOT_RUN:
                    subtask.status = SubtaskStatus.ERROR
                    subtask.add_result(ERROR, SUBTASK_NO_STATUS)

        subtask.add_result(TIMESTAMP, utcnow().isoformat())
        log_method = log.info if subtask.status is SubtaskStatus.SUCCESS else log.warning
        log_method("runner.subtask.finished", subtask=subtask.describe(), status=subtask.status.value)

    def _aggregate(self, task: Task) -> None:
        counts = Counter(s.status for s in task.subtasks)
        succeeded = counts[SubtaskStatus.SUCCESS]
        failed = counts[SubtaskStatus.ERROR] + counts[SubtaskStatus.EXCEPTION]
        not_run = counts[SubtaskStatus.NOT_RUN]

        if succeeded == len(task):
            task.status = TaskStatus.SUCCESS
            task.add_result(RESPONSE, RESPONSE_SUCCESS)
        elif succeeded:
            task.status = TaskStatus.PARTIAL
            task.add_result(RESPONSE, RESPONSE_PARTIAL)
        else:
            task.status = TaskStatus.ERROR
            task.add_result(RESPONSE, RESPONSE_ERROR)
        task.add_result(SUCCEEDED, succeeded)
        task.add_result(FAILED, failed)
        task.add_result(NOT_RUN, not_run)

        log.info(
            "runner.completed",
            status=task.status.value,
            succeeded=succeeded,
            failed=failed,
            not_run=not_run,
        )
