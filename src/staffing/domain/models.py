"""
Domain models for the staffing dashboard.

Opportunities (sales pipeline items) own an ordered tuple of Roles; a Role
may have an assigned Member. Models are frozen pydantic models: the cache
shares instances between live partitions and snapshots, and a frozen model
cannot be changed underneath a snapshot. Updates go through
``model_copy(update=...)``.

Python attributes are snake_case; the wire format is the dashboard's
camelCase (``clientName``, ``requiredGrade``, ``needsHire``). Both are
accepted on input; ``to_wire()`` emits camelCase.

Tags:
    staffing-cache, domain-models, pydantic, opportunities, roles
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Grade(str, Enum):
    """Required / actual skill level, most junior first."""

    JT = "JT"
    T = "T"
    ST = "ST"
    EN = "EN"
    SE = "SE"
    C = "C"
    SC = "SC"
    SM = "SM"

    @classmethod
    def is_valid(cls, value: object) -> bool:
        return value in cls._value2member_map_


class OpportunityStatus(str, Enum):
    """Lifecycle state of an opportunity; each maps to one cache partition."""

    IN_PROGRESS = "In Progress"
    ON_HOLD = "On Hold"
    DONE = "Done"

    @classmethod
    def parse(cls, value: str | OpportunityStatus) -> OpportunityStatus:
        """Accept wire values, member names and the dashboard's spellings.

        >>> OpportunityStatus.parse("OnHold")
        <OpportunityStatus.ON_HOLD: 'On Hold'>
        >>> OpportunityStatus.parse("completed")
        <OpportunityStatus.DONE: 'Done'>
        """
        if isinstance(value, OpportunityStatus):
            return value
        key = value.strip().lower().replace("-", "").replace("_", "").replace(" ", "")
        try:
            return _STATUS_SPELLINGS[key]
        except KeyError:
            raise ValueError(f"Unknown opportunity status: {value!r}") from None


_STATUS_SPELLINGS = {
    "inprogress": OpportunityStatus.IN_PROGRESS,
    "onhold": OpportunityStatus.ON_HOLD,
    "done": OpportunityStatus.DONE,
    "completed": OpportunityStatus.DONE,
}


class RoleStatus(str, Enum):
    OPEN = "Open"
    STAFFED = "Staffed"
    WON = "Won"
    LOST = "Lost"


class _WireModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


def _id_to_str(value: Any) -> Any:
    # Remotes that use integer keys still produce opaque ids here.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


EntityId = Annotated[str, BeforeValidator(_id_to_str)]


class Member(_WireModel):
    id: EntityId
    full_name: str
    actual_grade: Grade
    allocation: int = Field(default=0, ge=0, le=100, strict=True)
    available_from: date | None = None


class Role(_WireModel):
    """A position to staff on an opportunity."""

    id: EntityId
    role_name: str = Field(min_length=1)
    required_grade: Grade
    status: RoleStatus = RoleStatus.OPEN
    assigned_member: Member | None = None
    allocation: int = Field(default=100, ge=0, le=100, strict=True)
    needs_hire: bool = False
    comments: str = ""

    @field_validator("comments", mode="before")
    @classmethod
    def none_comments_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class Opportunity(_WireModel):
    """A sales pipeline item and the roles it would need staffed."""

    id: EntityId
    client_name: str
    opportunity_name: str
    open_date: date | None = None
    expected_start_date: date | None = None
    probability: int = Field(ge=0, le=100, strict=True)
    status: OpportunityStatus = OpportunityStatus.IN_PROGRESS
    roles: tuple[Role, ...] = ()
    comment: str | None = None
    is_active: bool = False
    activated_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return OpportunityStatus.parse(value)
        return value


# ── Inputs ───────────────────────────────────────────────────────────────


class CreateOpportunityInput(_WireModel):
    client_name: str = Field(min_length=1)
    opportunity_name: str = Field(min_length=1)
    expected_start_date: date | None = None
    probability: int = Field(default=0, ge=0, le=100, strict=True)
    comment: str | None = None


class CreateRoleInput(_WireModel):
    role_name: str = Field(min_length=1)
    required_grade: Grade
    allocation: int = Field(default=100, ge=0, le=100, strict=True)
    needs_hire: bool = False
    comments: str = ""


Entity = Opportunity | Role


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
]
