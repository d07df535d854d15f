"""Pure domain helpers for opportunities and roles.

No I/O: every function takes models and returns new models (they are
frozen), so the mutation coordinator can use them to compute optimistic
state.
"""

from __future__ import annotations

from datetime import datetime, timezone

from staffing.domain.models import (
    CreateRoleInput,
    Grade,
    Opportunity,
    OpportunityStatus,
    Role,
    RoleStatus,
)

ACTIVE_PROBABILITY_THRESHOLD = 80

_SETTLED_ROLE_STATUSES = frozenset({RoleStatus.WON, RoleStatus.LOST, RoleStatus.STAFFED})
_FILLED_ROLE_STATUSES = frozenset({RoleStatus.STAFFED, RoleStatus.WON})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def has_hiring_needs(opportunity: Opportunity) -> bool:
    return any(role.needs_hire for role in opportunity.roles)


def roles_by_grade(opportunity: Opportunity, grade: Grade | str) -> list[Role]:
    """Roles requiring ``grade``; ``"all"`` returns every role."""
    if grade == "all":
        return list(opportunity.roles)
    return [role for role in opportunity.roles if role.required_grade == grade]


def check_opportunity_completion(opportunity: Opportunity) -> bool:
    """True when there is at least one role and none is still open."""
    if not opportunity.roles:
        return False
    return all(role.status in _SETTLED_ROLE_STATUSES for role in opportunity.roles)


def build_role(data: CreateRoleInput, role_id: str) -> Role:
    return Role(
        id=role_id,
        role_name=data.role_name,
        required_grade=data.required_grade,
        status=RoleStatus.OPEN,
        assigned_member=None,
        allocation=data.allocation,
        needs_hire=data.needs_hire,
        comments=data.comments,
    )


def update_role_status(role: Role, status: RoleStatus) -> Role:
    """Change status; a role still needs a hire unless it is Staffed or Won."""
    return role.model_copy(update={
        "status": status,
        "needs_hire": status not in _FILLED_ROLE_STATUSES,
    })


def change_opportunity_status(opportunity: Opportunity, status: OpportunityStatus) -> Opportunity:
    return opportunity.model_copy(update={"status": status})


def add_role(opportunity: Opportunity, role: Role) -> Opportunity:
    return opportunity.model_copy(update={"roles": (*opportunity.roles, role)})


def replace_role(opportunity: Opportunity, role_id: str, role: Role) -> Opportunity:
    roles = tuple(role if r.id == role_id else r for r in opportunity.roles)
    return opportunity.model_copy(update={"roles": roles})


def is_active_by_probability(probability: int) -> bool:
    return probability >= ACTIVE_PROBABILITY_THRESHOLD


def should_auto_activate(probability: int, currently_active: bool) -> bool:
    return is_active_by_probability(probability) and not currently_active


__all__ = [
    "ACTIVE_PROBABILITY_THRESHOLD",
    "utc_now",
    "has_hiring_needs",
    "roles_by_grade",
    "check_opportunity_completion",
    "build_role",
    "update_role_status",
    "change_opportunity_status",
    "add_role",
    "replace_role",
    "is_active_by_probability",
    "should_auto_activate",
]
