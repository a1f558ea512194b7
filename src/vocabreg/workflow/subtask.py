"""
Subtask - the atomic unit of workflow work.

A subtask names a provider (kind + short name), an operation and a bag of
properties. Those four fields are its *identity*: two subtasks with the
same identity are equal, hash alike and compare as 0, whatever their
priority, blocking flag, status or results. The remaining fields are
execution state owned by the task runner.

ARCHITECTURE
────────────
::

    Subtask
      ├── identity (SubtaskKey)      provider_kind, provider_name,
      │                              operation, properties (canonical JSON)
      ├── ordering                   priority, then identity
      └── execution state            status, results

Ordering (``compare_to`` and the rich comparisons) is consistent with
equality: equal identities compare as 0; otherwise subtasks order by
priority (ranked ascending, then unranked, then not computed) and then
by identity. Priorities computed from the default policy depend only on
kind and operation, so equal subtasks always share a priority.

Properties must not be mutated once the subtask has been added to a
task, since the identity key is derived from them.

Tags:
    workflow, subtask, identity, ordering, vocabreg

Doc-Types:
    api-reference
"""

from __future__ import annotations

import functools
import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, NamedTuple

from vocabreg.core.enums import ProviderKind, SubtaskOperation, SubtaskStatus
from vocabreg.workflow.priorities import Priority, default_priority, priority_sort_key

if TYPE_CHECKING:
    from vocabreg.workflow.registry import ProviderRegistry


class SubtaskKey(NamedTuple):
    """Identity projection of a subtask."""

    provider_kind: str
    provider_name: str
    operation: str
    properties: str


def canonical_properties(properties: dict[str, Any]) -> str:
    return json.dumps(properties, sort_keys=True, separators=(",", ":"), default=str)


@functools.total_ordering
@dataclass(eq=False)
class Subtask:
    """One unit of work for one provider."""

    provider_kind: ProviderKind
    provider_name: str
    operation: SubtaskOperation
    properties: dict[str, Any] = field(default_factory=dict)
    priority: Priority | None = None
    # A failed blocking subtask stops the rest of its task.
    blocking: bool = False
    status: SubtaskStatus = SubtaskStatus.NOT_RUN
    results: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.provider_kind = ProviderKind(self.provider_kind)
        self.operation = SubtaskOperation(self.operation)
        self.status = SubtaskStatus(self.status)

    @classmethod
    def create(
        cls,
        provider_kind: ProviderKind,
        provider_name: str,
        operation: SubtaskOperation,
        properties: dict[str, Any] | None = None,
        *,
        blocking: bool = False,
        registry: ProviderRegistry | None = None,
    ) -> Subtask:
        """Build a subtask with its priority already determined."""
        subtask = cls(
            provider_kind=provider_kind,
            provider_name=provider_name,
            operation=operation,
            properties=dict(properties or {}),
            blocking=blocking,
        )
        subtask.determine_priority(registry)
        return subtask

    # -- identity ---------------------------------------------------------

    @property
    def key(self) -> SubtaskKey:
        return SubtaskKey(
            self.provider_kind.value,
            self.provider_name,
            self.operation.value,
            canonical_properties(self.properties),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Subtask):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def compare_to(self, other: Subtask) -> int:
        """Three-way comparison: negative, zero or positive."""
        mine, theirs = self.key, other.key
        if mine == theirs:
            return 0
        left = (priority_sort_key(self.priority), mine)
        right = (priority_sort_key(other.priority), theirs)
        return -1 if left < right else 1

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Subtask):
            return NotImplemented
        return self.compare_to(other) < 0

    # -- priority ---------------------------------------------------------

    def determine_priority(self, registry: ProviderRegistry | None = None) -> Priority:
        """Set the priority from the provider's default for this operation.

        Providers that are not registered fall back to the kind's default.
        """
        from vocabreg.workflow.registry import get_default_registry

        registry = registry or get_default_registry()
        provider_cls = registry.lookup(self.provider_kind, self.provider_name)
        if provider_cls is None:
            self.priority = default_priority(self.provider_kind, self.operation)
        else:
            self.priority = provider_cls.default_priority(self.operation)
        return self.priority

    # -- execution state --------------------------------------------------

    def add_result(self, key: str, value: Any) -> None:
        self.results[key] = str(value)

    def get_property(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def reset(self) -> None:
        """Forget any previous execution."""
        self.status = SubtaskStatus.NOT_RUN
        self.results = {}

    # -- serialization ----------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize; a missing ``priority`` key means "not computed"."""
        result: dict[str, Any] = {
            "provider_type": self.provider_kind.value,
            "provider": self.provider_name,
            "operation": self.operation.value,
            "properties": dict(self.properties),
            "status": self.status.value,
        }
        if self.priority is not None:
            result["priority"] = self.priority.value
        if self.blocking:
            result["blocking"] = True
        if self.results:
            result["results"] = dict(self.results)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Subtask:
        if "priority" not in data:
            priority = None
        elif data["priority"] is None:
            priority = Priority.unranked()
        else:
            priority = Priority.ranked(data["priority"])
        return cls(
            provider_kind=ProviderKind(data["provider_type"]),
            provider_name=data["provider"],
            operation=SubtaskOperation(data["operation"]),
            properties=dict(data.get("properties") or {}),
            priority=priority,
            blocking=bool(data.get("blocking", False)),
            status=SubtaskStatus(data.get("status", SubtaskStatus.NOT_RUN.value)),
            results={k: str(v) for k, v in (data.get("results") or {}).items()},
        )

    def describe(self) -> str:
        return f"{self.provider_kind.value}/{self.provider_name} {self.operation.value}"
