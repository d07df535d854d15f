"""
Entity store: keyed cache of entity lists, one per query descriptor.

Manifesto:
    The dashboard shows the same opportunity in several views at once
    (bucket lists, filtered lists). Each view reads a partition of this
    store, and every write to it goes through the mutation coordinator's
    snapshot → set → reconcile/rollback sequence, so views never disagree
    about what a mutation did.

    - **Explicit object, not a global:** Injected wherever it is needed
    - **Synchronous:** No operation suspends; reads may happen mid-mutation
    - **Last write wins:** ``set`` replaces a partition wholesale
    - **Lazy partitions:** Operations on absent descriptors are no-ops

Architecture:
    ::

        EntityStore
        ├── _partitions: QueryDescriptor → _Partition(entities, written_at, stale)
        ├── get / set / update / invalidate / remove
        ├── descriptors(partition) / find / descriptors_containing
        └── subscribe(listener) → StoreChange after each write

Examples:
    >>> store = EntityStore()
    >>> d = QueryDescriptor.default("in-progress")
    >>> store.get(d) is None
    True
    >>> store.set(d, [])
    >>> store.get(d)
    []

Tags:
    cache, entity-store, partitions, staffing-cache
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from staffing.cache.descriptors import QueryDescriptor
from staffing.cache.partitions import PartitionKey
from staffing.core.logging import get_logger

logger = get_logger(__name__)


class ChangeAction(str, Enum):
    SET = "set"
    INVALIDATE = "invalidate"
    REMOVE = "remove"


@dataclass(frozen=True)
class StoreChange:
    descriptor: QueryDescriptor
    action: ChangeAction


StoreListener = Callable[[StoreChange], None]


@dataclass
class _Partition:
    entities: tuple[Any, ...]
    written_at: float
    stale: bool = False


@dataclass
class _Subscription:
    id: str
    listener: StoreListener
    partition: PartitionKey | None


class EntityStore:
    """Per-descriptor entity lists with staleness tracking and change listeners.

    ``clock`` returns seconds and defaults to :func:`time.monotonic`; tests
    pass a fake to control staleness.
    """

    def __init__(self, *, clock: Callable[[], float] | None = None) -> None:
        self._partitions: dict[QueryDescriptor, _Partition] = {}
        self._subscriptions: dict[str, _Subscription] = {}
        self._clock = clock or time.monotonic

    # ── Reads ────────────────────────────────────────────────────────

    def get(self, descriptor: QueryDescriptor) -> list[Any] | None:
        """Current entities for ``descriptor`` or ``None`` when absent."""
        partition = self._partitions.get(descriptor)
        if partition is None:
            return None
        return list(partition.entities)

    def __contains__(self, descriptor: object) -> bool:
        return descriptor in self._partitions

    def __len__(self) -> int:
        return len(self._partitions)

    def descriptors(self, partition: PartitionKey | None = None) -> list[QueryDescriptor]:
        """Live descriptors, optionally narrowed to one partition family."""
        if partition is None:
            return list(self._partitions)
        return [d for d in self._partitions if d.partition is partition]

    def find(
        self,
        entity_id: str,
        partition: PartitionKey | None = None,
    ) -> tuple[QueryDescriptor, Any] | None:
        """First cached copy of an entity, default descriptors first.

        Defaults are looked up by key; filtered descriptors are scanned only
        when no loaded default holds the entity.
        """
        families = list(PartitionKey) if partition is None else [partition]
        for key in families:
            descriptor = QueryDescriptor.default(key)
            entity = self._entity_in(descriptor, entity_id)
            if entity is not None:
                return descriptor, entity
        for descriptor in self.descriptors(partition):
            if descriptor.is_default:
                continue
            entity = self._entity_in(descriptor, entity_id)
            if entity is not None:
                return descriptor, entity
        return None

    def _entity_in(self, descriptor: QueryDescriptor, entity_id: str) -> Any | None:
        partition = self._partitions.get(descriptor)
        if partition is None:
            return None
        return next((e for e in partition.entities if e.id == entity_id), None)

    def descriptors_containing(
        self,
        entity_id: str,
        partition: PartitionKey | None = None,
    ) -> list[QueryDescriptor]:
        return [
            d for d in self.descriptors(partition)
            if any(e.id == entity_id for e in self._partitions[d].entities)
        ]

    def is_stale(self, descriptor: QueryDescriptor, stale_after: float | None = None) -> bool:
        """Invalidated, or older than ``stale_after`` seconds. Absent counts as stale."""
        partition = self._partitions.get(descriptor)
        if partition is None:
            return True
        if partition.stale:
            return True
        if stale_after is None:
            return False
        return self._clock() - partition.written_at > stale_after

    # ── Writes ───────────────────────────────────────────────────────

    def set(self, descriptor: QueryDescriptor, entities: Iterable[Any]) -> None:
        """Replace a partition's contents (creating it if absent)."""
        self._partitions[descriptor] = _Partition(
            entities=tuple(entities),
            written_at=self._clock(),
        )
        self._notify(StoreChange(descriptor, ChangeAction.SET))

    def update(
        self,
        descriptor: QueryDescriptor,
        transform: Callable[[list[Any]], Iterable[Any]],
    ) -> bool:
        """Read-modify-write. Returns False (and does nothing) when absent."""
        current = self.get(descriptor)
        if current is None:
            return False
        self.set(descriptor, transform(current))
        return True

    def invalidate(self, descriptor: QueryDescriptor) -> bool:
        """Mark stale so the next load refetches. Contents stay readable."""
        partition = self._partitions.get(descriptor)
        if partition is None:
            return False
        partition.stale = True
        self._notify(StoreChange(descriptor, ChangeAction.INVALIDATE))
        return True

    def invalidate_partition(self, partition: PartitionKey) -> int:
        count = 0
        for descriptor in self.descriptors(partition):
            count += self.invalidate(descriptor)
        return count

    def remove(self, descriptor: QueryDescriptor) -> bool:
        if self._partitions.pop(descriptor, None) is None:
            return False
        self._notify(StoreChange(descriptor, ChangeAction.REMOVE))
        return True

    def clear(self) -> None:
        for descriptor in list(self._partitions):
            self.remove(descriptor)

    # ── Listeners ────────────────────────────────────────────────────

    def subscribe(self, listener: StoreListener, partition: PartitionKey | None = None) -> str:
        sub_id = f"sub_{uuid.uuid4().hex[:12]}"
        self._subscriptions[sub_id] = _Subscription(sub_id, listener, partition)
        return sub_id

    def unsubscribe(self, subscription_id: str) -> None:
        self._subscriptions.pop(subscription_id, None)

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def _notify(self, change: StoreChange) -> None:
        for sub in list(self._subscriptions.values()):
            if sub.partition is not None and sub.partition is not change.descriptor.partition:
                continue
            try:
                sub.listener(change)
            except Exception as e:
                logger.warning(
                    "store_listener_error",
                    subscription_id=sub.id,
                    descriptor=str(change.descriptor),
                    action=change.action.value,
                    error=str(e),
                )


__all__ = ["EntityStore", "StoreChange", "ChangeAction", "StoreListener"]
