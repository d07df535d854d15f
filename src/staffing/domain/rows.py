"""Flatten opportunities and their roles into table rows.

The opportunities table shows one row per role, with the opportunity
columns spanning all of its roles. An opportunity without roles still gets
one row so it stays visible.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from staffing.domain.models import Grade, Opportunity, OpportunityStatus, RoleStatus
from staffing.domain.service import has_hiring_needs


@dataclass(frozen=True)
class FlattenedRow:
    is_opportunity_row: bool
    is_first_row_for_opportunity: bool
    row_span: int
    opportunity_id: str
    opportunity_name: str
    opportunity_status: OpportunityStatus
    client_name: str
    expected_start_date: date | None
    probability: int
    roles_count: int
    has_hiring_needs: bool
    comment: str | None = None
    role_id: str | None = None
    role_name: str | None = None
    required_grade: Grade | None = None
    role_status: RoleStatus | None = None
    assigned_member_id: str | None = None
    allocation: int | None = None
    needs_hire: bool | None = None


def flatten_opportunities(opportunities: Iterable[Opportunity] | None) -> list[FlattenedRow]:
    if not opportunities:
        return []

    rows: list[FlattenedRow] = []
    for opp in opportunities:
        common = dict(
            opportunity_id=opp.id,
            opportunity_name=opp.opportunity_name,
            opportunity_status=opp.status,
            client_name=opp.client_name,
            expected_start_date=opp.expected_start_date,
            probability=opp.probability,
            roles_count=len(opp.roles),
        )

        if not opp.roles:
            rows.append(FlattenedRow(
                is_opportunity_row=True,
                is_first_row_for_opportunity=True,
                row_span=1,
                has_hiring_needs=False,
                comment=opp.comment,
                **common,
            ))
            continue

        hiring = has_hiring_needs(opp)
        for index, role in enumerate(opp.roles):
            first = index == 0
            rows.append(FlattenedRow(
                is_opportunity_row=first,
                is_first_row_for_opportunity=first,
                row_span=len(opp.roles),
                has_hiring_needs=hiring,
                comment=opp.comment if first else None,
                role_id=role.id,
                role_name=role.role_name,
                required_grade=role.required_grade,
                role_status=role.status,
                assigned_member_id=role.assigned_member.id if role.assigned_member else None,
                allocation=role.allocation,
                needs_hire=role.needs_hire,
                **common,
            ))
    return rows


__all__ = ["FlattenedRow", "flatten_opportunities"]
