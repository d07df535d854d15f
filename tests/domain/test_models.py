"""Tests for staffing.domain.models."""

from datetime import date

import pytest
from pydantic import ValidationError

from staffing.domain.models import (
    CreateOpportunityInput,
    Grade,
    Member,
    Opportunity,
    OpportunityStatus,
    Role,
    RoleStatus,
)


class TestEnums:
    def test_grades_in_order(self):
        assert [g.value for g in Grade] == ["JT", "T", "ST", "EN", "SE", "C", "SC", "SM"]

    def test_grade_is_valid(self):
        assert Grade.is_valid("SE")
        assert not Grade.is_valid("XX")

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("In Progress", OpportunityStatus.IN_PROGRESS),
            ("InProgress", OpportunityStatus.IN_PROGRESS),
            ("in-progress", OpportunityStatus.IN_PROGRESS),
            ("OnHold", OpportunityStatus.ON_HOLD),
            ("on_hold", OpportunityStatus.ON_HOLD),
            ("Done", OpportunityStatus.DONE),
            ("Completed", OpportunityStatus.DONE),
        ],
    )
    def test_status_parse(self, raw, expected):
        assert OpportunityStatus.parse(raw) is expected

    def test_status_parse_rejects_unknown(self):
        with pytest.raises(ValueError, match="Unknown opportunity status"):
            OpportunityStatus.parse("Archived")


class TestOpportunity:
    def test_accepts_camel_case_wire_format(self):
        opp = Opportunity.model_validate({
            "id": 7,
            "clientName": "Acme",
            "opportunityName": "Portal",
            "probability": 50,
            "status": "On Hold",
            "roles": [{"id": "r1", "roleName": "Dev", "requiredGrade": "SE", "needsHire": True}],
        })
        assert opp.id == "7"
        assert opp.status is OpportunityStatus.ON_HOLD
        assert opp.roles[0].required_grade is Grade.SE
        assert opp.roles[0].needs_hire is True

    def test_to_wire_uses_camel_case(self, opportunity_factory):
        wire = opportunity_factory().to_wire()
        assert wire["clientName"] == "Acme Corp"
        assert wire["openDate"] == "2026-01-01"
        assert wire["status"] == "In Progress"
        assert "client_name" not in wire

    @pytest.mark.parametrize("probability", [-1, 101, 50.5, "50"])
    def test_probability_must_be_int_in_range(self, probability):
        with pytest.raises(ValidationError):
            Opportunity(id="o", client_name="A", opportunity_name="B", probability=probability)

    def test_frozen(self, opportunity_factory):
        opp = opportunity_factory()
        with pytest.raises(ValidationError):
            opp.probability = 10

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            Opportunity(id="o", client_name="A", opportunity_name="B", probability=1, status="Lost")


class TestRole:
    def test_defaults(self):
        role = Role(id="r1", role_name="Dev", required_grade="JT")
        assert role.status is RoleStatus.OPEN
        assert role.allocation == 100
        assert role.needs_hire is False
        assert role.comments == ""
        assert role.assigned_member is None

    def test_none_comments_become_empty(self):
        assert Role(id="r1", role_name="Dev", required_grade="JT", comments=None).comments == ""

    def test_allocation_range(self):
        with pytest.raises(ValidationError):
            Role(id="r1", role_name="Dev", required_grade="JT", allocation=120)

    def test_assigned_member(self):
        member = Member(id=3, full_name="Ada", actual_grade="SE", available_from=date(2026, 2, 1))
        role = Role(id="r1", role_name="Dev", required_grade="SE", assigned_member=member)
        assert role.assigned_member.id == "3"


class TestCreateOpportunityInput:
    def test_requires_names(self):
        with pytest.raises(ValidationError):
            CreateOpportunityInput(client_name="", opportunity_name="Portal")

    def test_probability_default(self):
        assert CreateOpportunityInput(client_name="A", opportunity_name="B").probability == 0
