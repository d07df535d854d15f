"""Tests for staffing.remote.memory — InMemoryOpportunityResource."""

import pytest

from staffing.cache.descriptors import QueryDescriptor
from staffing.cache.filters import FilterCriteria
from staffing.core.errors import InvalidTransition, NotFoundError, RemoteFailure
from staffing.domain.models import (
    CreateOpportunityInput,
    CreateRoleInput,
    OpportunityStatus,
    RoleStatus,
)
from staffing.remote.memory import InMemoryOpportunityResource
from staffing.remote.protocol import OpportunityResource


@pytest.fixture
def resource(opportunity_factory, role_factory):
    return InMemoryOpportunityResource([
        opportunity_factory("opp-1", roles=(role_factory("role-1"),)),
        opportunity_factory("opp-2", client_name="Globex", status=OpportunityStatus.ON_HOLD),
    ])


def test_satisfies_protocol(resource):
    assert isinstance(resource, OpportunityResource)


class TestList:
    @pytest.mark.asyncio
    async def test_lists_wire_dicts_by_status(self, resource):
        rows = await resource.list_entities(QueryDescriptor.default("in-progress"))
        assert [r["id"] for r in rows] == ["opp-1"]
        assert rows[0]["clientName"] == "Acme Corp"

    @pytest.mark.asyncio
    async def test_applies_filters(self, resource):
        descriptor = QueryDescriptor.for_partition("on-hold", FilterCriteria(client="acme"))
        assert await resource.list_entities(descriptor) == []


class TestCreate:
    @pytest.mark.asyncio
    async def test_assigns_server_ids(self, resource):
        payload = CreateOpportunityInput(client_name="Initech", opportunity_name="ERP", probability=80)
        created = await resource.create_entity(payload)
        assert created.id == "opp-3"
        assert created.status is OpportunityStatus.IN_PROGRESS
        assert created.is_active is True
        assert created.updated_at is not None
        assert resource.get("opp-3") == created

    @pytest.mark.asyncio
    async def test_low_probability_inactive(self):
        resource = InMemoryOpportunityResource()
        created = await resource.create_entity(
            CreateOpportunityInput(client_name="A", opportunity_name="B", probability=10),
        )
        assert created.id == "opp-1"
        assert created.is_active is False


class TestWrites:
    @pytest.mark.asyncio
    async def test_update(self, resource):
        updated = await resource.update_entity("opp-1", {"probability": 95})
        assert updated.probability == 95
        assert updated.client_name == "Acme Corp"

    @pytest.mark.asyncio
    async def test_move_enforces_transitions(self, resource):
        moved = await resource.move_entity("opp-2", OpportunityStatus.DONE)
        assert moved.status is OpportunityStatus.DONE
        with pytest.raises(InvalidTransition):
            await resource.move_entity("opp-2", OpportunityStatus.IN_PROGRESS)

    @pytest.mark.asyncio
    async def test_delete(self, resource):
        assert await resource.delete_entity("opp-2") is None
        assert resource.get("opp-2") is None
        with pytest.raises(NotFoundError):
            await resource.delete_entity("opp-2")

    @pytest.mark.asyncio
    async def test_add_role_skips_taken_ids(self, resource):
        updated = await resource.add_role(
            "opp-1", CreateRoleInput(role_name="QA", required_grade="T", needs_hire=True),
        )
        assert [r.id for r in updated.roles] == ["role-1", "role-2"]
        assert updated.roles[-1].status is RoleStatus.OPEN

    @pytest.mark.asyncio
    async def test_update_role_status(self, resource):
        updated = await resource.update_role_status("opp-1", "role-1", RoleStatus.STAFFED)
        assert updated.roles[0].status is RoleStatus.STAFFED
        with pytest.raises(NotFoundError) as exc_info:
            await resource.update_role_status("opp-1", "role-404", RoleStatus.WON)
        assert exc_info.value.context.metadata["role_id"] == "role-404"

    @pytest.mark.asyncio
    async def test_unknown_entity(self, resource):
        with pytest.raises(NotFoundError) as exc_info:
            await resource.update_entity("opp-404", {})
        assert exc_info.value.context.entity_id == "opp-404"


class TestFailureInjection:
    @pytest.mark.asyncio
    async def test_fail_next_is_one_shot(self, resource):
        resource.fail_next()
        with pytest.raises(RemoteFailure):
            await resource.delete_entity("opp-1")
        assert resource.get("opp-1") is not None
        await resource.delete_entity("opp-1")
        assert resource.get("opp-1") is None

    @pytest.mark.asyncio
    async def test_custom_exception_and_call_log(self, resource):
        resource.fail_next(TimeoutError("slow"))
        with pytest.raises(TimeoutError):
            await resource.move_entity("opp-1", OpportunityStatus.ON_HOLD)
        assert resource.calls == [("move_entity", ("opp-1", OpportunityStatus.ON_HOLD))]
