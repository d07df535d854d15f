"""In-memory opportunity resource.

The dashboard's mock API as an ``OpportunityResource``: one dict of
opportunities bucketed by status, server-assigned ids (``opp-N``,
``role-N``), list filtering through the same ``matches`` predicate the
cache uses, optional simulated latency, and one-shot failure injection.

Example::

    resource = InMemoryOpportunityResource(latency=0.05)
    resource.fail_next()                      # next call raises RemoteFailure
    await resource.create_entity(payload)     # -> RemoteFailure
    await resource.create_entity(payload)     # -> Opportunity(id="opp-1", ...)
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from staffing.cache.descriptors import QueryDescriptor
from staffing.cache.filters import matches
from staffing.cache.partitions import partition_for_status, route, status_for_partition
from staffing.core.errors import NotFoundError, RemoteFailure
from staffing.core.logging import get_logger
from staffing.domain import service
from staffing.domain.models import (
    CreateOpportunityInput,
    CreateRoleInput,
    Opportunity,
    OpportunityStatus,
    RoleStatus,
)

logger = get_logger(__name__)


class InMemoryOpportunityResource:
    """Mock remote API backed by a dict."""

    def __init__(
        self,
        opportunities: Iterable[Opportunity] = (),
        *,
        latency: float = 0.0,
    ) -> None:
        self._opportunities: dict[str, Opportunity] = {o.id: o for o in opportunities}
        self._opp_ids = itertools.count(1)
        self._role_ids = itertools.count(1)
        self._failures: list[BaseException] = []
        self.latency = latency
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    # ── Test controls ────────────────────────────────────────────────

    def fail_next(self, exc: BaseException | None = None) -> None:
        """Make the next call raise ``exc`` (default: ``RemoteFailure``)."""
        self._failures.append(exc or RemoteFailure("Injected remote failure"))

    def get(self, entity_id: str) -> Opportunity | None:
        return self._opportunities.get(entity_id)

    def all(self) -> list[Opportunity]:
        return list(self._opportunities.values())

    # ── OpportunityResource ──────────────────────────────────────────

    async def list_entities(self, descriptor: QueryDescriptor) -> list[dict[str, Any]]:
        await self._enter("list_entities", str(descriptor))
        status = status_for_partition(descriptor.partition)
        return [
            o.to_wire() for o in self._opportunities.values()
            if o.status is status and matches(o, descriptor.criteria)
        ]

    async def create_entity(self, payload: CreateOpportunityInput) -> Opportunity:
        await self._enter("create_entity", payload)
        opportunity = Opportunity(
            id=self._next_id("opp", self._opp_ids),
            client_name=payload.client_name,
            opportunity_name=payload.opportunity_name,
            open_date=date.today(),
            expected_start_date=payload.expected_start_date,
            probability=payload.probability,
            status=OpportunityStatus.IN_PROGRESS,
            roles=(),
            comment=payload.comment,
            is_active=service.is_active_by_probability(payload.probability),
            updated_at=service.utc_now(),
        )
        self._opportunities[opportunity.id] = opportunity
        logger.debug("mock_opportunity_created", entity_id=opportunity.id)
        return opportunity

    async def update_entity(self, entity_id: str, fields: Mapping[str, Any]) -> Opportunity:
        await self._enter("update_entity", entity_id, dict(fields))
        current = self._require(entity_id)
        updated = Opportunity.model_validate({
            **current.model_dump(),
            **fields,
            "id": entity_id,
            "updated_at": service.utc_now(),
        })
        self._opportunities[entity_id] = updated
        return updated

    async def move_entity(self, entity_id: str, status: OpportunityStatus) -> Opportunity:
        await self._enter("move_entity", entity_id, status)
        current = self._require(entity_id)
        route(partition_for_status(current.status), partition_for_status(status))
        moved = service.change_opportunity_status(current, status)
        self._opportunities[entity_id] = moved
        return moved

    async def delete_entity(self, entity_id: str) -> None:
        await self._enter("delete_entity", entity_id)
        self._require(entity_id)
        del self._opportunities[entity_id]

    async def add_role(self, opportunity_id: str, payload: CreateRoleInput) -> Opportunity:
        await self._enter("add_role", opportunity_id, payload)
        current = self._require(opportunity_id)
        role = service.build_role(payload, self._next_role_id())
        updated = service.add_role(current, role)
        self._opportunities[opportunity_id] = updated
        return updated

    async def update_role_status(
        self,
        opportunity_id: str,
        role_id: str,
        status: RoleStatus,
    ) -> Opportunity:
        await self._enter("update_role_status", opportunity_id, role_id, status)
        current = self._require(opportunity_id)
        role = next((r for r in current.roles if r.id == role_id), None)
        if role is None:
            raise NotFoundError(f"Role not found: {role_id}").with_context(
                entity_id=opportunity_id, role_id=role_id,
            )
        updated = service.replace_role(current, role_id, service.update_role_status(role, status))
        self._opportunities[opportunity_id] = updated
        return updated

    # ── Internals ────────────────────────────────────────────────────

    async def _enter(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if self.latency:
            await asyncio.sleep(self.latency)
        if self._failures:
            raise self._failures.pop(0)

    def _require(self, entity_id: str) -> Opportunity:
        try:
            return self._opportunities[entity_id]
        except KeyError:
            raise NotFoundError(f"Opportunity not found: {entity_id}").with_context(
                entity_id=entity_id,
            ) from None

    def _next_id(self, prefix: str, counter: itertools.count) -> str:
        while True:
            candidate = f"{prefix}-{next(counter)}"
            if candidate not in self._opportunities:
                return candidate

    def _next_role_id(self) -> str:
        taken = {r.id for o in self._opportunities.values() for r in o.roles}
        while True:
            candidate = f"role-{next(self._role_ids)}"
            if candidate not in taken:
                return candidate


__all__ = ["InMemoryOpportunityResource"]
