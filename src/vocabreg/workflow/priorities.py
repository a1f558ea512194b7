"""
Default execution priorities of subtasks.

Lower priorities run first. Each provider kind has one magnitude; INSERT
and PERFORM use it as-is and DELETE negates it, so that within one task
new content flows harvest → transform → import → publish while teardown
runs in the reverse order (unpublish first, un-harvest last):

    kind        INSERT/PERFORM   DELETE
    harvest          10            -10
    transform        20            -20
    importer         30            -30
    publish          40            -40
    backup        unranked      unranked

Backup subtasks are unranked: they always run after every ranked
subtask. A subtask whose priority has not been computed yet carries
``None``, which is distinct from ``Priority.unranked()``.

Tags:
    workflow, priority, ordering, vocabreg

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass

from vocabreg.core.enums import ProviderKind, SubtaskOperation

HARVEST_MAGNITUDE = 10
TRANSFORM_MAGNITUDE = 20
IMPORT_MAGNITUDE = 30
PUBLISH_MAGNITUDE = 40

_MAGNITUDES: dict[ProviderKind, int | None] = {
    ProviderKind.HARVEST: HARVEST_MAGNITUDE,
    ProviderKind.TRANSFORM: TRANSFORM_MAGNITUDE,
    ProviderKind.IMPORT: IMPORT_MAGNITUDE,
    ProviderKind.PUBLISH: PUBLISH_MAGNITUDE,
    ProviderKind.BACKUP: None,
}


@dataclass(frozen=True)
class Priority:
    """A signed execution priority, or the explicit absence of one.

    Use :meth:`ranked` and :meth:`unranked` rather than the constructor.
    """

    value: int | None = None

    @classmethod
    def ranked(cls, value: int) -> Priority:
        return cls(int(value))

    @classmethod
    def unranked(cls) -> Priority:
        return cls(None)

    @property
    def is_ranked(self) -> bool:
        return self.value is not None

    @property
    def sort_key(self) -> tuple[int, int]:
        """Ranked priorities in numeric order, then unranked."""
        if self.value is None:
            return (1, 0)
        return (0, self.value)

    def __str__(self) -> str:
        return "unranked" if self.value is None else str(self.value)


# Sort key for a subtask whose priority was never computed: after unranked.
NOT_COMPUTED_SORT_KEY = (2, 0)


def priority_sort_key(priority: Priority | None) -> tuple[int, int]:
    if priority is None:
        return NOT_COMPUTED_SORT_KEY
    return priority.sort_key


def default_priority(kind: ProviderKind, operation: SubtaskOperation) -> Priority:
    """The default priority for a subtask of *kind* performing *operation*."""
    magnitude = _MAGNITUDES[ProviderKind(kind)]
    if magnitude is None:
        return Priority.unranked()
    if SubtaskOperation(operation) is SubtaskOperation.DELETE:
        return Priority.ranked(-magnitude)
    return Priority.ranked(magnitude)
