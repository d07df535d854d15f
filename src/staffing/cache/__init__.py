"""Staffing cache -- partitioned entity store with optimistic mutations.

Manifesto:
    The dashboard reads opportunities from status buckets and filtered
    views, and changes them faster than the server answers. This package
    keeps those views in one store, routes entities between buckets, and
    runs every change as an optimistic write that is reconciled or rolled
    back when the server responds.

Architecture::

    store.py         EntityStore: descriptor -> entity list, staleness, listeners
    descriptors.py   QueryDescriptor: canonical cache key (partition + filters)
    partitions.py    PartitionKey, status mapping, transition table
    filters.py       FilterCriteria and the matches() predicate
    snapshot.py      Snapshot: immutable pre-mutation copy for rollback
    coordinator.py   MutationCoordinator: dispatch / reconcile / rollback
    loader.py        PartitionLoader: fills partitions from the remote

Tags:
    staffing-cache, cache, optimistic-updates, partitions, filters
"""

from staffing.cache.coordinator import (
    Mutation,
    MutationCoordinator,
    MutationKind,
    MutationState,
    SettledResult,
    is_temporary_id,
)
from staffing.cache.descriptors import QueryDescriptor
from staffing.cache.filters import FilterCriteria, NeedsHire, filter_entities, matches
from staffing.cache.loader import PartitionLoader
from staffing.cache.partitions import (
    ALLOWED_TRANSITIONS,
    PartitionKey,
    can_transition,
    partition_for_status,
    route,
    status_for_partition,
)
from staffing.cache.snapshot import Snapshot
from staffing.cache.store import ChangeAction, EntityStore, StoreChange

__all__ = [
    "EntityStore",
    "StoreChange",
    "ChangeAction",
    "QueryDescriptor",
    "FilterCriteria",
    "NeedsHire",
    "matches",
    "filter_entities",
    "PartitionKey",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "partition_for_status",
    "status_for_partition",
    "route",
    "Snapshot",
    "MutationCoordinator",
    "MutationKind",
    "MutationState",
    "Mutation",
    "SettledResult",
    "is_temporary_id",
    "PartitionLoader",
]
