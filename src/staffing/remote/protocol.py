"""Opportunity resource protocol: the remote collaborator behind the cache.

Manifesto:
The cache never talks HTTP itself. Everything it needs from the server
is expressed by ``OpportunityResource`` so that the dashboard's REST API,
the in-memory mock, or a test double with hand-controlled latency can be
swapped in without touching the coordinator.

ARCHITECTURE
────────────
::

    OpportunityResource (Protocol)
      ├── .list_entities(descriptor)           → raw list payload
      ├── .create_entity(payload)              → Opportunity
      ├── .update_entity(id, fields)           → Opportunity
      ├── .move_entity(id, status)             → Opportunity
      ├── .delete_entity(id)                   → None
      ├── .add_role(opportunity_id, payload)   → Opportunity
      └── .update_role_status(opp_id, role_id, status) → Opportunity

    InMemoryOpportunityResource   — memory.py, the dashboard's mock API
    HttpOpportunityResource       — rest.py, httpx adapter for the REST routes

``list_entities`` returns the raw payload so the loader can keep the valid
elements of a partly invalid list. Every mutation returns the
authoritative entity already validated.

Any exception counts as a failure; the coordinator does not interpret
subtypes.

Tags:
    staffing-cache, remote, protocol, collaborator-interface
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from staffing.cache.descriptors import QueryDescriptor
from staffing.domain.models import (
    CreateOpportunityInput,
    CreateRoleInput,
    Opportunity,
    OpportunityStatus,
    RoleStatus,
)


@runtime_checkable
class OpportunityResource(Protocol):
    """Async remote API for opportunities and their roles.

    Implementors
    ------------
    * ``InMemoryOpportunityResource`` — mock API, tests and the CLI demo
    * ``HttpOpportunityResource``     — the dashboard REST routes
    """

    async def list_entities(self, descriptor: QueryDescriptor) -> Any:
        """Raw list payload for one partition and filter set."""
        ...

    async def create_entity(self, payload: CreateOpportunityInput) -> Opportunity:
        """Create an opportunity; the server assigns the id."""
        ...

    async def update_entity(self, entity_id: str, fields: Mapping[str, Any]) -> Opportunity:
        ...

    async def move_entity(self, entity_id: str, status: OpportunityStatus) -> Opportunity:
        ...

    async def delete_entity(self, entity_id: str) -> None:
        ...

    async def add_role(self, opportunity_id: str, payload: CreateRoleInput) -> Opportunity:
        ...

    async def update_role_status(
        self,
        opportunity_id: str,
        role_id: str,
        status: RoleStatus,
    ) -> Opportunity:
        ...


__all__ = ["OpportunityResource"]
