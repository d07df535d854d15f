"""Staffing domain -- opportunities, roles and the pure helpers around them."""

from staffing.domain.models import (
    CreateOpportunityInput,
    CreateRoleInput,
    Entity,
    Grade,
    Member,
    Opportunity,
    OpportunityStatus,
    Role,
    RoleStatus,
)
from staffing.domain.parsing import (
    parse_create_opportunity_input,
    parse_create_role_input,
    parse_opportunities,
    parse_opportunity,
    parse_role,
    safe_parse_opportunities,
)
from staffing.domain.rows import FlattenedRow, flatten_opportunities

__all__ = [
    "Grade",
    "OpportunityStatus",
    "RoleStatus",
    "Member",
    "Role",
    "Opportunity",
    "CreateOpportunityInput",
    "CreateRoleInput",
    "Entity",
    "parse_opportunity",
    "parse_opportunities",
    "safe_parse_opportunities",
    "parse_role",
    "parse_create_opportunity_input",
    "parse_create_role_input",
    "FlattenedRow",
    "flatten_opportunities",
]
