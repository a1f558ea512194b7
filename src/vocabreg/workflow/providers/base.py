"""
Base class for workflow providers.

A provider performs one subtask at a time. ``do_subtask`` must leave the
subtask's status at SUCCESS, ERROR or EXCEPTION and record any results
on it; it may read and write registry rows through
``task_info.session``. Expected failures (bad input, remote errors,
file errors) are recorded with :meth:`fail`; raising
``SubtaskExecutionError`` has the same effect. Any other exception is
caught by the runner and recorded as EXCEPTION.

Providers are constructed with no arguments, once per subtask.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from vocabreg.core.enums import ProviderKind, SubtaskOperation, SubtaskStatus
from vocabreg.core.logging import get_logger
from vocabreg.workflow.priorities import Priority, default_priority
from vocabreg.workflow.task import ERROR

if TYPE_CHECKING:
    from vocabreg.workflow.subtask import Subtask
    from vocabreg.workflow.task_info import TaskInfo


class WorkflowProvider(ABC):
    """Capability shared by every provider."""

    provider_kind: ClassVar[ProviderKind]

    def __init__(self) -> None:
        self.log = get_logger(f"{type(self).__module__}.{type(self).__name__}")

    @classmethod
    def default_priority(cls, operation: SubtaskOperation) -> Priority:
        return default_priority(cls.provider_kind, operation)

    def do_subtask(self, task_info: TaskInfo, subtask: Subtask) -> None:
        """Dispatch on the subtask's operation."""
        operation = subtask.operation
        if operation in (SubtaskOperation.INSERT, SubtaskOperation.PERFORM):
            self.insert(task_info, subtask)
        elif operation is SubtaskOperation.DELETE:
            self.delete(task_info, subtask)
        else:
            self.fail(subtask, f"Unknown operation: {operation}")

    @abstractmethod
    def insert(self, task_info: TaskInfo, subtask: Subtask) -> None:
        """Carry out an INSERT or PERFORM subtask."""

    def delete(self, task_info: TaskInfo, subtask: Subtask) -> None:
        self.fail(subtask, f"{type(self).__name__} does not support DELETE")

    # -- helpers ----------------------------------------------------------

    def succeed(self, subtask: Subtask) -> None:
        subtask.status = SubtaskStatus.SUCCESS

    def fail(self, subtask: Subtask, message: str, **fields) -> None:
        """Mark *subtask* as ERROR with *message* as its error result."""
        subtask.status = SubtaskStatus.ERROR
        subtask.add_result(ERROR, message)
        self.log.error("provider.subtask_failed", subtask=subtask.describe(), error=message, **fields)
