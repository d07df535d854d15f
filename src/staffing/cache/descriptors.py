"""
Query descriptors: canonical keys for cached partitions.

A descriptor names one cached list, a status bucket plus the filters the
list was fetched with. Two descriptors whose filters are effectively the
same must produce the same key, otherwise two cache entries for the same
view would drift apart. Canonical form:

- client text trimmed and casefolded (matching is case-insensitive),
- grades as a set, serialised in enumeration order,
- probability as an ``(min, max)`` tuple.

Example:
    >>> a = QueryDescriptor.for_partition("in-progress", FilterCriteria(client=" Acme ", grades=["SE", "JT"]))
    >>> b = QueryDescriptor.for_partition("in-progress", FilterCriteria(client="acme", grades=["JT", "SE"]))
    >>> a == b, a.key == b.key
    (True, True)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from staffing.cache.filters import FilterCriteria
from staffing.cache.partitions import PartitionKey
from staffing.domain.models import OpportunityStatus

DEFAULT_RESOURCE = "opportunities"


def canonical_criteria(criteria: FilterCriteria | None) -> FilterCriteria:
    if criteria is None:
        return FilterCriteria()
    return FilterCriteria(
        client=criteria.client.strip().casefold(),
        grades=criteria.grades,
        needs_hire=criteria.needs_hire,
        probability=criteria.probability,
    )


@dataclass(frozen=True)
class QueryDescriptor:
    partition: PartitionKey
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    resource: str = DEFAULT_RESOURCE

    def __post_init__(self) -> None:
        object.__setattr__(self, "partition", PartitionKey.parse(self.partition))
        object.__setattr__(self, "criteria", canonical_criteria(self.criteria))

    @classmethod
    def for_partition(
        cls,
        partition: PartitionKey | OpportunityStatus | str,
        criteria: FilterCriteria | None = None,
    ) -> QueryDescriptor:
        return cls(PartitionKey.parse(partition), criteria or FilterCriteria())

    @classmethod
    def default(cls, partition: PartitionKey | OpportunityStatus | str) -> QueryDescriptor:
        """The unfiltered list for a partition."""
        return cls(PartitionKey.parse(partition))

    @classmethod
    def from_query_params(
        cls,
        partition: PartitionKey | OpportunityStatus | str,
        params: Mapping[str, Any],
    ) -> QueryDescriptor:
        return cls(PartitionKey.parse(partition), FilterCriteria.from_query_params(params))

    @property
    def is_default(self) -> bool:
        return self.criteria.is_default

    @property
    def key(self) -> tuple[Any, ...]:
        c = self.criteria
        return (
            self.resource,
            "list",
            self.partition.value,
            c.client,
            tuple(g.value for g in c.sorted_grades()),
            c.needs_hire.value,
            c.probability,
        )

    def to_query_params(self) -> dict[str, str]:
        return {"status": self.partition.value, **self.criteria.to_query_params()}

    def with_partition(self, partition: PartitionKey) -> QueryDescriptor:
        return QueryDescriptor(partition, self.criteria, self.resource)

    def __str__(self) -> str:
        params = self.criteria.to_query_params()
        suffix = "?" + "&".join(f"{k}={v}" for k, v in params.items()) if params else ""
        return f"{self.resource}/{self.partition.value}{suffix}"


__all__ = ["QueryDescriptor", "canonical_criteria", "DEFAULT_RESOURCE"]
