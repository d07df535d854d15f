"""Partition loader: fills the entity store from the remote list endpoint.

Sits on the data-fetching side of the store. A partition that is cached and
fresh is served from the store; otherwise the list is fetched, validated and
written back. Freshness follows the dashboard's per-bucket stale times
(active buckets 5 minutes, completed 10 minutes by default).

When a list payload fails validation but some elements are valid, those
elements are cached and a warning is logged, so one bad record does not
blank a whole bucket.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from staffing.cache.descriptors import QueryDescriptor
from staffing.cache.filters import FilterCriteria
from staffing.cache.partitions import PartitionKey
from staffing.cache.store import EntityStore
from staffing.core.errors import RemoteFailure, StaffingError
from staffing.core.logging import get_logger
from staffing.core.result import Ok
from staffing.core.settings import StaffingSettings, get_settings
from staffing.domain.models import Opportunity
from staffing.domain.parsing import parse_opportunities, safe_parse_opportunities

if TYPE_CHECKING:
    from staffing.remote.protocol import OpportunityResource

logger = get_logger(__name__)


class PartitionLoader:
    def __init__(
        self,
        store: EntityStore,
        resource: OpportunityResource,
        settings: StaffingSettings | None = None,
    ) -> None:
        self._store = store
        self._resource = resource
        self._settings = settings or get_settings()

    def stale_after(self, descriptor: QueryDescriptor) -> float:
        if descriptor.partition is PartitionKey.COMPLETED:
            return self._settings.completed_stale_time_seconds
        return self._settings.stale_time_seconds

    async def load(self, descriptor: QueryDescriptor, *, force: bool = False) -> list[Opportunity]:
        """Cached entities when fresh, otherwise fetch and cache.

        Raises:
            ApiValidationError: payload invalid and no element could be kept
            RemoteFailure: the list call failed
        """
        if not force and not self._store.is_stale(descriptor, self.stale_after(descriptor)):
            cached = self._store.get(descriptor)
            if cached is not None:
                logger.debug("partition_cache_hit", descriptor=str(descriptor), count=len(cached))
                return cached

        raw = await self._fetch(descriptor)
        entities = self._validate(descriptor, raw)
        self._store.set(descriptor, entities)
        logger.info("partition_loaded", descriptor=str(descriptor), count=len(entities))
        return entities

    async def load_all(
        self,
        criteria: FilterCriteria | None = None,
        *,
        force: bool = False,
    ) -> dict[PartitionKey, list[Opportunity]]:
        """All three buckets for one filter set, fetched concurrently."""
        descriptors = [QueryDescriptor.for_partition(p, criteria) for p in PartitionKey]
        results = await asyncio.gather(*(self.load(d, force=force) for d in descriptors))
        return {d.partition: entities for d, entities in zip(descriptors, results)}

    async def _fetch(self, descriptor: QueryDescriptor) -> Any:
        try:
            return await self._resource.list_entities(descriptor)
        except StaffingError:
            raise
        except Exception as e:
            raise RemoteFailure(f"Listing {descriptor} failed: {e}", cause=e).with_context(
                descriptor=str(descriptor),
            ) from e

    def _validate(self, descriptor: QueryDescriptor, raw: Any) -> list[Opportunity]:
        result = parse_opportunities(raw, endpoint=str(descriptor))
        if isinstance(result, Ok):
            return result.value

        fallback = safe_parse_opportunities(raw)
        if fallback:
            logger.warning(
                "partition_fallback_used",
                descriptor=str(descriptor),
                kept=len(fallback),
                error=result.error.message,
            )
            return fallback
        raise result.error


__all__ = ["PartitionLoader"]
