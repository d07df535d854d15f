"""Snapshot: immutable pre-mutation copy of the partitions a mutation touches.

Created when a mutation starts, dropped when it settles OK, restored
verbatim when it settles with an error. Entities are frozen models and the
lists are stored as tuples, so later writes to the live store cannot reach
into a snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from staffing.cache.descriptors import QueryDescriptor
from staffing.cache.store import EntityStore


@dataclass(frozen=True)
class Snapshot:
    """Captured contents per descriptor; ``None`` means the partition was absent."""

    partitions: Mapping[QueryDescriptor, tuple[Any, ...] | None] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def capture(cls, store: EntityStore, descriptors: Iterable[QueryDescriptor]) -> Snapshot:
        captured: dict[QueryDescriptor, tuple[Any, ...] | None] = {}
        for descriptor in descriptors:
            if descriptor in captured:
                continue
            current = store.get(descriptor)
            captured[descriptor] = None if current is None else tuple(current)
        return cls(MappingProxyType(captured))

    @property
    def descriptors(self) -> list[QueryDescriptor]:
        return list(self.partitions)

    def get(self, descriptor: QueryDescriptor) -> list[Any] | None:
        entities = self.partitions.get(descriptor)
        return None if entities is None else list(entities)

    def contains(self, entity_id: str) -> bool:
        return any(
            e.id == entity_id
            for entities in self.partitions.values() if entities
            for e in entities
        )

    def restore(self, store: EntityStore) -> None:
        """Put every captured partition back exactly as it was."""
        for descriptor, entities in self.partitions.items():
            if entities is None:
                store.remove(descriptor)
            else:
                store.set(descriptor, entities)

    def __iter__(self) -> Iterator[QueryDescriptor]:
        return iter(self.partitions)

    def __len__(self) -> int:
        return len(self.partitions)


__all__ = ["Snapshot"]
