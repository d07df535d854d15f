"""Tests for staffing.domain.service — pure opportunity/role helpers."""

import pytest

from staffing.domain import service
from staffing.domain.models import CreateRoleInput, Grade, OpportunityStatus, RoleStatus


class TestQueries:
    def test_has_hiring_needs(self, opportunity_factory, role_factory):
        assert not service.has_hiring_needs(opportunity_factory())
        opp = opportunity_factory(roles=(role_factory(), role_factory("role-2", needs_hire=True)))
        assert service.has_hiring_needs(opp)

    def test_roles_by_grade(self, opportunity_factory, role_factory):
        roles = (role_factory("r1", required_grade="SE"), role_factory("r2", required_grade="JT"))
        opp = opportunity_factory(roles=roles)
        assert [r.id for r in service.roles_by_grade(opp, Grade.JT)] == ["r2"]
        assert [r.id for r in service.roles_by_grade(opp, "all")] == ["r1", "r2"]

    @pytest.mark.parametrize(
        "statuses, expected",
        [
            ((), False),
            ((RoleStatus.WON, RoleStatus.LOST, RoleStatus.STAFFED), True),
            ((RoleStatus.WON, RoleStatus.OPEN), False),
        ],
    )
    def test_check_opportunity_completion(self, opportunity_factory, role_factory, statuses, expected):
        roles = tuple(role_factory(f"r{i}", status=s) for i, s in enumerate(statuses))
        assert service.check_opportunity_completion(opportunity_factory(roles=roles)) is expected


class TestRoleHelpers:
    def test_build_role(self):
        data = CreateRoleInput(role_name="Dev", required_grade="EN", allocation=50, needs_hire=True)
        role = service.build_role(data, "role-9")
        assert role.id == "role-9"
        assert role.status is RoleStatus.OPEN
        assert role.assigned_member is None
        assert role.allocation == 50
        assert role.needs_hire is True

    @pytest.mark.parametrize(
        "status, needs_hire",
        [
            (RoleStatus.STAFFED, False),
            (RoleStatus.WON, False),
            (RoleStatus.LOST, True),
            (RoleStatus.OPEN, True),
        ],
    )
    def test_update_role_status(self, role_factory, status, needs_hire):
        updated = service.update_role_status(role_factory(), status)
        assert updated.status is status
        assert updated.needs_hire is needs_hire

    def test_add_and_replace_role(self, opportunity_factory, role_factory):
        opp = service.add_role(opportunity_factory(), role_factory("r1"))
        assert [r.id for r in opp.roles] == ["r1"]
        renamed = role_factory("r1", role_name="Lead")
        assert service.replace_role(opp, "r1", renamed).roles[0].role_name == "Lead"


class TestOpportunityHelpers:
    def test_change_status_returns_copy(self, opportunity_factory):
        opp = opportunity_factory()
        moved = service.change_opportunity_status(opp, OpportunityStatus.ON_HOLD)
        assert moved.status is OpportunityStatus.ON_HOLD
        assert opp.status is OpportunityStatus.IN_PROGRESS

    def test_activation_threshold(self):
        assert service.is_active_by_probability(80)
        assert not service.is_active_by_probability(79)
        assert service.should_auto_activate(90, currently_active=False)
        assert not service.should_auto_activate(90, currently_active=True)
