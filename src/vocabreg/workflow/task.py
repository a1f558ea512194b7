"""
Task - the ordered, duplicate-free set of subtasks for one vocabulary/version.

Insertion order is preserved and visible to callers; it is not the
execution order (the runner re-sorts a working copy by priority).
Adding a subtask equal to one already present is a no-op that keeps the
existing instance.

The persisted form of a task is two opaque text blobs on its database
row: ``params`` (the subtask list, see :func:`serialize_subtasks`) and
``response`` (the results map).
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from vocabreg.core.enums import TaskStatus
from vocabreg.workflow.subtask import Subtask, SubtaskKey

# Result keys recorded by the runner.
TIMESTAMP = "timestamp"
RESPONSE = "response"
STACKTRACE = "stacktrace"
ERROR = "error"


@dataclass(eq=False)
class Task:
    vocabulary_id: int
    version_id: int | None = None
    status: TaskStatus = TaskStatus.NEW
    results: dict[str, str] = field(default_factory=dict)
    _subtasks: list[Subtask] = field(default_factory=list, init=False, repr=False)
    _keys: set[SubtaskKey] = field(default_factory=set, init=False, repr=False)

    def __post_init__(self) -> None:
        self.status = TaskStatus(self.status)

    @property
    def subtasks(self) -> list[Subtask]:
        """Subtasks in insertion order (a copy; the instances are shared)."""
        return list(self._subtasks)

    def __len__(self) -> int:
        return len(self._subtasks)

    def __contains__(self, subtask: object) -> bool:
        return isinstance(subtask, Subtask) and subtask.key in self._keys

    def add_subtask(self, subtask: Subtask) -> bool:
        """Append *subtask* unless an equal one is present; True if added."""
        key = subtask.key
        if key in self._keys:
            return False
        self._keys.add(key)
        self._subtasks.append(subtask)
        return True

    def add_subtasks(self, subtasks: Iterable[Subtask] | None) -> int:
        """Add each subtask in turn; returns how many were new.

        ``None`` is accepted, since workflow methods return it when no
        further work is required.
        """
        if not subtasks:
            return 0
        return sum(1 for subtask in subtasks if self.add_subtask(subtask))

    def add_result(self, key: str, value: Any) -> None:
        self.results[key] = str(value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "vocabulary_id": self.vocabulary_id,
            "version_id": self.version_id,
            "status": self.status.value,
            "subtasks": [s.to_dict() for s in self._subtasks],
            "results": dict(self.results),
        }


def serialize_subtasks(subtasks: Iterable[Subtask]) -> str:
    """Encode a subtask list for the ``params`` column."""
    return json.dumps([s.to_dict() for s in subtasks])


def deserialize_subtasks(params: str | None) -> list[Subtask]:
    """Decode a ``params`` column; raises ``ValueError`` on malformed input."""
    if not params:
        return []
    data = json.loads(params)
    if not isinstance(data, list):
        raise ValueError("Task params must be a JSON list of subtasks")
    try:
        return [Subtask.from_dict(item) for item in data]
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Malformed subtask in task params: {e}") from e


def serialize_results(results: dict[str, str]) -> str:
    return json.dumps(results)


def deserialize_results(response: str | None) -> dict[str, str]:
    if not response:
        return {}
    return {k: str(v) for k, v in json.loads(response).items()}
