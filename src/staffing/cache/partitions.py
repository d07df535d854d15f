"""
Partition router: status ↔ partition mapping and the move transition table.

Each opportunity status has exactly one natural partition (bucket). Moves
between buckets are restricted::

    in-progress ──▶ on-hold
    on-hold     ──▶ in-progress
    in-progress ──▶ completed
    on-hold     ──▶ completed

``completed`` is terminal, and a move to the bucket an entity is already in
is not a transition.

Example:
    >>> route(PartitionKey.IN_PROGRESS, PartitionKey.ON_HOLD)
    <PartitionKey.ON_HOLD: 'on-hold'>
    >>> can_transition(PartitionKey.COMPLETED, PartitionKey.IN_PROGRESS)
    False
"""

from __future__ import annotations

from enum import Enum

from staffing.core.errors import InvalidTransition
from staffing.domain.models import OpportunityStatus


class PartitionKey(str, Enum):
    IN_PROGRESS = "in-progress"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: str | PartitionKey | OpportunityStatus) -> PartitionKey:
        """Accept partition keys and any status spelling."""
        if isinstance(value, PartitionKey):
            return value
        if isinstance(value, str) and value in cls._value2member_map_:
            return cls(value)
        return partition_for_status(OpportunityStatus.parse(value))


_STATUS_TO_PARTITION = {
    OpportunityStatus.IN_PROGRESS: PartitionKey.IN_PROGRESS,
    OpportunityStatus.ON_HOLD: PartitionKey.ON_HOLD,
    OpportunityStatus.DONE: PartitionKey.COMPLETED,
}
_PARTITION_TO_STATUS = {v: k for k, v in _STATUS_TO_PARTITION.items()}

ALLOWED_TRANSITIONS: frozenset[tuple[PartitionKey, PartitionKey]] = frozenset({
    (PartitionKey.IN_PROGRESS, PartitionKey.ON_HOLD),
    (PartitionKey.ON_HOLD, PartitionKey.IN_PROGRESS),
    (PartitionKey.IN_PROGRESS, PartitionKey.COMPLETED),
    (PartitionKey.ON_HOLD, PartitionKey.COMPLETED),
})

INITIAL_PARTITION = PartitionKey.IN_PROGRESS


def partition_for_status(status: OpportunityStatus) -> PartitionKey:
    return _STATUS_TO_PARTITION[status]


def status_for_partition(partition: PartitionKey) -> OpportunityStatus:
    return _PARTITION_TO_STATUS[partition]


def can_transition(source: PartitionKey, destination: PartitionKey) -> bool:
    return (source, destination) in ALLOWED_TRANSITIONS


def route(source: PartitionKey, destination: PartitionKey) -> PartitionKey:
    """Return the validated destination or raise :class:`InvalidTransition`."""
    if not can_transition(source, destination):
        raise InvalidTransition(source, destination)
    return destination


__all__ = [
    "PartitionKey",
    "ALLOWED_TRANSITIONS",
    "INITIAL_PARTITION",
    "partition_for_status",
    "status_for_partition",
    "can_transition",
    "route",
]
