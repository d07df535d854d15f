"""
Mutation coordinator: optimistic write, remote call, then reconcile or roll back.

Every change the dashboard makes to opportunities goes through here. The
coordinator writes the expected result into the entity store first, so the
UI re-renders immediately, then asks the remote collaborator to make the
change for real. On success the optimistic entity is replaced by the
authoritative one; on failure every partition it touched is restored from
a snapshot and the error is raised to the caller.

Manifesto:
    Waiting for the server before updating the view makes every drag
    between buckets feel broken. Updating the view and hoping makes every
    failed save silently wrong. The coordinator does both halves
    explicitly: a snapshot value object taken before the write, one
    suspension point, and a settle step that either reconciles or restores.

    - **Optimistic by default:** ``dispatch`` has written the store before it returns
    - **One suspension point:** Only the remote call awaits
    - **Exact rollback:** Failures restore the snapshot verbatim
    - **Fail fast:** Invalid moves and payloads are rejected before any write
    - **No hidden serialisation:** Overlapping mutations race, last write wins

Architecture:
    ::

        dispatch(kind, **args)                       (synchronous)
          │  1. plan: validate, find affected descriptors
          │  2. Snapshot.capture(store, affected)
          │  3-4. store.set(descriptor, optimistic) for each
          └─ asyncio.Task ──▶ 5. await resource.<call>()
                               ├─ ok  ─▶ 6. reconcile, SETTLED_OK
                               └─ err ─▶ 7. snapshot.restore, SETTLED_ERR,
                                            raise RemoteFailure from err

        MutationState:  PENDING ──▶ SETTLED_OK | SETTLED_ERR   (no cancel)

Guardrails:
    ❌ DON'T: Call ``store.set`` from UI code to "fix up" a partition
    ✅ DO: Dispatch a mutation and let the coordinator own the write

    ❌ DON'T: Expect a second mutation on an entity to wait for the first
    ✅ DO: Await the first task when ordering matters

Examples:
    >>> coordinator = MutationCoordinator(EntityStore(), InMemoryOpportunityResource())
    >>> async def main():
    ...     task = coordinator.dispatch("create", data={"clientName": "Acme",
    ...                                                 "opportunityName": "Portal",
    ...                                                 "probability": 50})
    ...     # already visible, with a temporary id
    ...     [opp] = coordinator.read(QueryDescriptor.default("in-progress"))
    ...     assert coordinator.is_temporary_id(opp.id)
    ...     settled = await task
    ...     return settled.entity.id
    >>> asyncio.run(main())
    'opp-1'

Tags:
    cache, optimistic-updates, mutation, rollback, snapshot, asyncio,
    staffing-cache
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic.alias_generators import to_camel

from staffing.cache.descriptors import QueryDescriptor
from staffing.cache.filters import matches
from staffing.cache.partitions import (
    INITIAL_PARTITION,
    PartitionKey,
    partition_for_status,
    route,
    status_for_partition,
)
from staffing.cache.snapshot import Snapshot
from staffing.cache.store import EntityStore
from staffing.core.errors import RemoteFailure, StaffingError, ValidationError
from staffing.core.logging import LogContext, get_logger
from staffing.core.settings import StaffingSettings, get_settings
from staffing.domain import service
from staffing.domain.models import (
    CreateOpportunityInput,
    CreateRoleInput,
    Opportunity,
    RoleStatus,
)
from staffing.domain.parsing import (
    parse_create_opportunity_input,
    parse_create_role_input,
    parse_opportunity,
)

if TYPE_CHECKING:
    from staffing.remote.protocol import OpportunityResource

logger = get_logger(__name__)

DEFAULT_TEMP_ID_PREFIX = "optimistic:"

# Fields an update may not touch; status changes go through ``move``.
_IMMUTABLE_FIELDS = frozenset({"id", "status"})
_FIELD_NAMES = {
    **{name: name for name in Opportunity.model_fields},
    **{to_camel(name): name for name in Opportunity.model_fields},
}


def is_temporary_id(entity_id: Any, prefix: str = DEFAULT_TEMP_ID_PREFIX) -> bool:
    """True for ids minted by the coordinator rather than the server."""
    return isinstance(entity_id, str) and entity_id.startswith(prefix)


class MutationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    MOVE = "move"
    DELETE = "delete"
    ADD_ROLE = "add_role"
    UPDATE_ROLE_STATUS = "update_role_status"


class MutationState(str, Enum):
    PENDING = "pending"
    SETTLED_OK = "settled_ok"
    SETTLED_ERR = "settled_err"


@dataclass
class Mutation:
    """One in-flight (or settled) mutation and the snapshot it owns."""

    id: str
    kind: MutationKind
    entity_id: str | None
    affected: tuple[QueryDescriptor, ...]
    snapshot: Snapshot | None
    temp_id: str | None = None
    state: MutationState = MutationState.PENDING
    error: BaseException | None = None

    @property
    def is_settled(self) -> bool:
        return self.state is not MutationState.PENDING


@dataclass(frozen=True)
class SettledResult:
    mutation_id: str
    kind: MutationKind
    state: MutationState
    entity: Opportunity | None
    affected: tuple[QueryDescriptor, ...]


@dataclass
class _Plan:
    entity_id: str | None
    optimistic: dict[QueryDescriptor, list[Opportunity]]
    remote: Callable[[], Awaitable[Opportunity | None]]
    reconcile: Callable[[Opportunity | None], None]
    temp_id: str | None = None


def _without(entities: list[Opportunity], entity_id: str) -> list[Opportunity]:
    return [e for e in entities if e.id != entity_id]


def _replace(entities: list[Opportunity], entity_id: str, replacement: Opportunity) -> list[Opportunity]:
    """Swap ``entity_id`` for ``replacement`` in place, dropping later duplicates."""
    result: list[Opportunity] = []
    placed = False
    for e in entities:
        if e.id == entity_id or e.id == replacement.id:
            if not placed:
                result.append(replacement)
                placed = True
            continue
        result.append(e)
    return result


def _upsert(entities: list[Opportunity], entity: Opportunity) -> list[Opportunity]:
    if any(e.id == entity.id for e in entities):
        return _replace(entities, entity.id, entity)
    return [*entities, entity]


class MutationCoordinator:
    """Runs create / update / move / delete (and role) mutations optimistically.

    Args:
        store: The entity store every view reads from.
        resource: Remote collaborator that performs the real write.
        settings: Defaults to :func:`get_settings`.
    """

    def __init__(
        self,
        store: EntityStore,
        resource: OpportunityResource,
        settings: StaffingSettings | None = None,
    ) -> None:
        self._store = store
        self._resource = resource
        self._settings = settings or get_settings()
        self._pending: dict[str, Mutation] = {}
        self._planners: dict[MutationKind, Callable[..., _Plan]] = {
            MutationKind.CREATE: self._plan_create,
            MutationKind.UPDATE: self._plan_update,
            MutationKind.MOVE: self._plan_move,
            MutationKind.DELETE: self._plan_delete,
            MutationKind.ADD_ROLE: self._plan_add_role,
            MutationKind.UPDATE_ROLE_STATUS: self._plan_update_role_status,
        }

    @property
    def store(self) -> EntityStore:
        return self._store

    # ── Reads ────────────────────────────────────────────────────────

    def read(self, descriptor: QueryDescriptor) -> list[Opportunity]:
        """Entities to render for ``descriptor``; empty when not loaded."""
        return self._store.get(descriptor) or []

    @property
    def pending(self) -> list[Mutation]:
        return list(self._pending.values())

    def is_pending(self, entity_id: str) -> bool:
        return any(entity_id in (m.entity_id, m.temp_id) for m in self._pending.values())

    def new_temp_id(self) -> str:
        return f"{self._settings.temp_id_prefix}{uuid.uuid4().hex}"

    def is_temporary_id(self, entity_id: Any) -> bool:
        return is_temporary_id(entity_id, self._settings.temp_id_prefix)

    # ── Dispatch ─────────────────────────────────────────────────────

    def dispatch(self, kind: MutationKind | str, /, **args: Any) -> asyncio.Task[SettledResult]:
        """Apply the optimistic write now and schedule the remote call.

        Must be called with an event loop running. Validation errors and
        invalid transitions are raised here, before anything is written.

        Returns:
            Task resolving to :class:`SettledResult`, or raising
            :class:`RemoteFailure` after the rollback.
        """
        loop = asyncio.get_running_loop()
        kind = MutationKind(kind)

        try:
            plan = self._planners[kind](**args)
        except StaffingError as e:
            logger.warning("mutation_rejected", mutation_kind=kind.value, error=e.message)
            raise

        affected = tuple(plan.optimistic)
        mutation = Mutation(
            id=f"mut_{uuid.uuid4().hex[:12]}",
            kind=kind,
            entity_id=plan.entity_id,
            affected=affected,
            snapshot=Snapshot.capture(self._store, affected),
            temp_id=plan.temp_id,
        )
        for descriptor, entities in plan.optimistic.items():
            self._store.set(descriptor, entities)

        self._pending[mutation.id] = mutation
        logger.info(
            "mutation_dispatched",
            mutation_id=mutation.id,
            mutation_kind=kind.value,
            entity_id=mutation.entity_id,
            affected=[str(d) for d in affected],
        )
        return loop.create_task(self._run(mutation, plan), name=mutation.id)

    async def create(self, data: CreateOpportunityInput | Mapping[str, Any]) -> SettledResult:
        return await self.dispatch(MutationKind.CREATE, data=data)

    async def update(self, entity_id: str, fields: Mapping[str, Any]) -> SettledResult:
        return await self.dispatch(MutationKind.UPDATE, entity_id=entity_id, fields=fields)

    async def move(
        self,
        entity_id: str,
        destination: PartitionKey | str,
        source: PartitionKey | str | None = None,
    ) -> SettledResult:
        return await self.dispatch(
            MutationKind.MOVE, entity_id=entity_id, destination=destination, source=source,
        )

    async def delete(self, entity_id: str) -> SettledResult:
        return await self.dispatch(MutationKind.DELETE, entity_id=entity_id)

    async def add_role(
        self,
        opportunity_id: str,
        data: CreateRoleInput | Mapping[str, Any],
    ) -> SettledResult:
        return await self.dispatch(MutationKind.ADD_ROLE, opportunity_id=opportunity_id, data=data)

    async def update_role_status(
        self,
        opportunity_id: str,
        role_id: str,
        status: RoleStatus | str,
    ) -> SettledResult:
        return await self.dispatch(
            MutationKind.UPDATE_ROLE_STATUS,
            opportunity_id=opportunity_id,
            role_id=role_id,
            status=status,
        )

    # ── Settle ───────────────────────────────────────────────────────

    async def _run(self, mutation: Mutation, plan: _Plan) -> SettledResult:
        async with LogContext(mutation_id=mutation.id, mutation_kind=mutation.kind.value):
            try:
                entity = await plan.remote()
            except Exception as e:
                self._roll_back(mutation, e)
                raise RemoteFailure(
                    f"{mutation.kind.value} mutation failed: {e}",
                    retryable=e.retryable if isinstance(e, StaffingError) else None,
                    cause=e,
                ).with_context(
                    mutation_id=mutation.id,
                    mutation_kind=mutation.kind.value,
                    entity_id=mutation.entity_id,
                ) from e

            plan.reconcile(entity)
            if entity is not None:
                mutation.entity_id = entity.id
            mutation.state = MutationState.SETTLED_OK
            mutation.snapshot = None
            self._finish(mutation)
            logger.info("mutation_settled", entity_id=mutation.entity_id)
            return SettledResult(
                mutation_id=mutation.id,
                kind=mutation.kind,
                state=mutation.state,
                entity=entity,
                affected=mutation.affected,
            )

    def _roll_back(self, mutation: Mutation, error: BaseException) -> None:
        if mutation.snapshot is not None:
            mutation.snapshot.restore(self._store)
        mutation.snapshot = None
        mutation.state = MutationState.SETTLED_ERR
        mutation.error = error
        self._finish(mutation)
        logger.warning(
            "mutation_rolled_back",
            entity_id=mutation.entity_id,
            restored=len(mutation.affected),
            error=str(error),
            error_type=type(error).__name__,
        )

    def _finish(self, mutation: Mutation) -> None:
        self._pending.pop(mutation.id, None)
        if self._settings.invalidate_on_settle:
            for descriptor in mutation.affected:
                self._store.invalidate(descriptor)

    def _rewrite(
        self,
        descriptor: QueryDescriptor,
        transform: Callable[[list[Opportunity]], list[Opportunity]],
    ) -> None:
        current = self._store.get(descriptor)
        if current is None:
            return
        updated = transform(current)
        if updated != current:
            self._store.set(descriptor, updated)

    def _replace_in(self, descriptors: tuple[QueryDescriptor, ...], entity: Opportunity | None) -> None:
        if entity is None:
            return
        for descriptor in descriptors:
            self._rewrite(
                descriptor,
                lambda es: _replace(es, entity.id, entity) if any(e.id == entity.id for e in es) else es,
            )

    # ── Planners ─────────────────────────────────────────────────────

    def _plan_create(self, data: CreateOpportunityInput | Mapping[str, Any]) -> _Plan:
        payload = data if isinstance(data, CreateOpportunityInput) else (
            parse_create_opportunity_input(data).unwrap()
        )
        temp_id = self.new_temp_id()
        target = QueryDescriptor.default(INITIAL_PARTITION)
        optimistic = Opportunity(
            id=temp_id,
            client_name=payload.client_name,
            opportunity_name=payload.opportunity_name,
            open_date=date.today(),
            expected_start_date=payload.expected_start_date,
            probability=payload.probability,
            status=status_for_partition(INITIAL_PARTITION),
            roles=(),
            comment=payload.comment,
            updated_at=service.utc_now(),
        )

        def reconcile(entity: Opportunity | None) -> None:
            if entity is None:
                return

            def swap(entities: list[Opportunity]) -> list[Opportunity]:
                if any(e.id == temp_id for e in entities):
                    return _replace(entities, temp_id, entity)
                if any(e.id == entity.id for e in entities):
                    return entities
                return [*entities, entity]

            self._rewrite(target, swap)

        return _Plan(
            entity_id=temp_id,
            temp_id=temp_id,
            optimistic={target: [*(self._store.get(target) or []), optimistic]},
            remote=lambda: self._resource.create_entity(payload),
            reconcile=reconcile,
        )

    def _plan_update(self, entity_id: str, fields: Mapping[str, Any]) -> _Plan:
        changes = self._normalize_fields(fields)
        now = service.utc_now()

        def merge(entity: Opportunity) -> Opportunity:
            raw = {**entity.model_dump(), **changes, "updated_at": now}
            return parse_opportunity(raw, endpoint=f"update {entity_id}").unwrap()

        optimistic = {
            d: [merge(e) if e.id == entity_id else e for e in self._store.get(d) or []]
            for d in self._containing(entity_id)
        }
        if not optimistic:
            self._log_not_found(MutationKind.UPDATE, entity_id)
        affected = tuple(optimistic)

        return _Plan(
            entity_id=entity_id,
            optimistic=optimistic,
            remote=lambda: self._resource.update_entity(entity_id, changes),
            reconcile=lambda entity: self._replace_in(affected, entity),
        )

    def _plan_move(
        self,
        entity_id: str,
        destination: PartitionKey | str,
        source: PartitionKey | str | None = None,
    ) -> _Plan:
        destination = self._partition(destination)
        source_key = self._partition(source) if source is not None else None

        found = self._store.find(entity_id, source_key)
        if source_key is None and found is not None:
            source_key = partition_for_status(found[1].status)
        if source_key is not None:
            route(source_key, destination)

        optimistic: dict[QueryDescriptor, list[Opportunity]] = {}
        if found is None:
            self._log_not_found(MutationKind.MOVE, entity_id)
        else:
            moved = service.change_opportunity_status(found[1], status_for_partition(destination))
            for d in self._store.descriptors_containing(entity_id, source_key):
                optimistic[d] = _without(self._store.get(d) or [], entity_id)
            for d in self._store.descriptors(destination):
                if matches(moved, d.criteria):
                    optimistic[d] = [*_without(self._store.get(d) or [], entity_id), moved]

        status = status_for_partition(destination)

        def reconcile(entity: Opportunity | None) -> None:
            if entity is None:
                return
            # The server's status decides where the entity lives, even when a
            # later move has already settled.
            target = partition_for_status(entity.status)
            for key in PartitionKey:
                if key is target:
                    continue
                for d in self._store.descriptors_containing(entity_id, key):
                    self._rewrite(d, lambda es: _without(es, entity_id))
            for d in self._store.descriptors(target):
                if d.is_default or matches(entity, d.criteria):
                    self._rewrite(d, lambda es: _upsert(es, entity))
                else:
                    self._rewrite(d, lambda es: _without(es, entity_id))

        return _Plan(
            entity_id=entity_id,
            optimistic=optimistic,
            remote=lambda: self._resource.move_entity(entity_id, status),
            reconcile=reconcile,
        )

    def _plan_delete(self, entity_id: str) -> _Plan:
        optimistic = {
            d: _without(self._store.get(d) or [], entity_id)
            for d in self._containing(entity_id)
        }
        if not optimistic:
            self._log_not_found(MutationKind.DELETE, entity_id)

        async def remote() -> None:
            await self._resource.delete_entity(entity_id)

        def reconcile(entity: Opportunity | None) -> None:
            for d in self._store.descriptors():
                self._rewrite(d, lambda es: _without(es, entity_id))

        return _Plan(entity_id=entity_id, optimistic=optimistic, remote=remote, reconcile=reconcile)

    def _plan_add_role(self, opportunity_id: str, data: CreateRoleInput | Mapping[str, Any]) -> _Plan:
        payload = data if isinstance(data, CreateRoleInput) else (
            parse_create_role_input(data).unwrap()
        )
        temp_id = self.new_temp_id()
        role = service.build_role(payload, temp_id)
        now = service.utc_now()

        def with_role(entity: Opportunity) -> Opportunity:
            return service.add_role(entity, role).model_copy(update={"updated_at": now})

        optimistic = {
            d: [with_role(e) if e.id == opportunity_id else e for e in self._store.get(d) or []]
            for d in self._containing(opportunity_id)
        }
        if not optimistic:
            self._log_not_found(MutationKind.ADD_ROLE, opportunity_id)
        affected = tuple(optimistic)

        return _Plan(
            entity_id=opportunity_id,
            temp_id=temp_id,
            optimistic=optimistic,
            remote=lambda: self._resource.add_role(opportunity_id, payload),
            reconcile=lambda entity: self._replace_in(affected, entity),
        )

    def _plan_update_role_status(
        self,
        opportunity_id: str,
        role_id: str,
        status: RoleStatus | str,
    ) -> _Plan:
        try:
            status = RoleStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown role status: {status!r}") from None
        now = service.utc_now()

        def with_status(entity: Opportunity) -> Opportunity:
            role = next((r for r in entity.roles if r.id == role_id), None)
            if role is None:
                return entity
            updated = service.replace_role(entity, role_id, service.update_role_status(role, status))
            return updated.model_copy(update={"updated_at": now})

        optimistic = {
            d: [with_status(e) if e.id == opportunity_id else e for e in self._store.get(d) or []]
            for d in self._containing(opportunity_id)
        }
        if not optimistic:
            self._log_not_found(MutationKind.UPDATE_ROLE_STATUS, opportunity_id)
        affected = tuple(optimistic)

        return _Plan(
            entity_id=opportunity_id,
            optimistic=optimistic,
            remote=lambda: self._resource.update_role_status(opportunity_id, role_id, status),
            reconcile=lambda entity: self._replace_in(affected, entity),
        )

    # ── Helpers ──────────────────────────────────────────────────────

    def _containing(self, entity_id: str) -> list[QueryDescriptor]:
        """Descriptors holding ``entity_id`` within its own partition family.

        The family comes from the cached entity's status, so descriptors of
        other buckets are never scanned.
        """
        found = self._store.find(entity_id)
        if found is None:
            return []
        return self._store.descriptors_containing(entity_id, partition_for_status(found[1].status))

    @staticmethod
    def _partition(value: PartitionKey | str) -> PartitionKey:
        try:
            return PartitionKey.parse(value)
        except ValueError:
            raise ValidationError(f"Unknown partition: {value!r}") from None

    @staticmethod
    def _normalize_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        unknown: list[str] = []
        for key, value in fields.items():
            name = _FIELD_NAMES.get(key)
            if name is None:
                unknown.append(key)
            else:
                changes[name] = value
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        blocked = _IMMUTABLE_FIELDS & changes.keys()
        if blocked:
            raise ValidationError(
                f"Fields cannot be updated: {', '.join(sorted(blocked))}; use move for status",
            )
        return changes

    @staticmethod
    def _log_not_found(kind: MutationKind, entity_id: str) -> None:
        logger.debug("mutation_entity_not_found", mutation_kind=kind.value, entity_id=entity_id)


__all__ = [
    "MutationCoordinator",
    "MutationKind",
    "MutationState",
    "Mutation",
    "SettledResult",
    "is_temporary_id",
    "DEFAULT_TEMP_ID_PREFIX",
]
