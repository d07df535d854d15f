"""
Filter evaluator for opportunity views.

``matches(entity, criteria)`` is the single predicate behind both the
server-side list filter and the client-side re-check after an optimistic
write, so a filtered view shows the same entities whichever side computed
it.

Rules (AND across fields, OR within the grade set):

- ``client``: empty matches; otherwise case-insensitive substring of the
  client name.
- ``grades``: empty matches; otherwise some role requires one of the grades.
- ``needs_hire``: ``all`` matches; ``yes`` needs some role with
  ``needs_hire``; ``no`` needs some role *without* it. An opportunity with
  no roles therefore matches neither ``yes`` nor ``no``.
- ``probability``: inclusive ``[min, max]``.

The criteria also round-trip through URL query parameters
(``client``, ``grades=SE,JT``, ``needsHire``, ``probability=20-80``);
invalid values fall back to the identity filter for that field.

Example:
    >>> criteria = FilterCriteria.from_query_params({"grades": "SE,BOGUS", "needsHire": "yes"})
    >>> sorted(g.value for g in criteria.grades), criteria.needs_hire.value
    (['SE'], 'yes')
    >>> criteria.to_query_params()
    {'grades': 'SE', 'needsHire': 'yes'}
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from staffing.core.logging import get_logger
from staffing.domain.models import Grade, Opportunity

logger = get_logger(__name__)

PROBABILITY_RANGE: tuple[int, int] = (0, 100)
DEFAULT_CLIENT_MAX_LENGTH = 100

_SCRIPT_BLOCK = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<[^>]*>")


class NeedsHire(str, Enum):
    YES = "yes"
    NO = "no"
    ALL = "all"


@dataclass(frozen=True)
class FilterCriteria:
    """Filters for one opportunity view. The default instance matches everything."""

    client: str = ""
    grades: frozenset[Grade] = field(default_factory=frozenset)
    needs_hire: NeedsHire = NeedsHire.ALL
    probability: tuple[int, int] = PROBABILITY_RANGE

    def __post_init__(self) -> None:
        object.__setattr__(self, "grades", frozenset(Grade(g) for g in self.grades))
        object.__setattr__(self, "needs_hire", NeedsHire(self.needs_hire))
        low, high = self.probability
        object.__setattr__(self, "probability", (int(low), int(high)))

    @property
    def is_default(self) -> bool:
        return (
            not self.client
            and not self.grades
            and self.needs_hire is NeedsHire.ALL
            and self.probability == PROBABILITY_RANGE
        )

    @property
    def has_active_filters(self) -> bool:
        return not self.is_default

    def sorted_grades(self) -> tuple[Grade, ...]:
        """Grades in enumeration order (junior first)."""
        return tuple(g for g in Grade if g in self.grades)

    @classmethod
    def from_query_params(
        cls,
        params: Mapping[str, Any],
        *,
        client_max_length: int = DEFAULT_CLIENT_MAX_LENGTH,
    ) -> FilterCriteria:
        needs_hire = params.get("needsHire", params.get("needs_hire", ""))
        return cls(
            client=sanitize_client(params.get("client", "") or "", max_length=client_max_length),
            grades=parse_grades(params.get("grades", "") or ""),
            needs_hire=parse_needs_hire(needs_hire or ""),
            probability=parse_probability(params.get("probability", "") or ""),
        )

    def to_query_params(self) -> dict[str, str]:
        """Serialise non-default fields only."""
        params: dict[str, str] = {}
        if self.client:
            params["client"] = self.client
        if self.grades:
            params["grades"] = ",".join(g.value for g in self.sorted_grades())
        if self.needs_hire is not NeedsHire.ALL:
            params["needsHire"] = self.needs_hire.value
        if self.probability != PROBABILITY_RANGE:
            params["probability"] = f"{self.probability[0]}-{self.probability[1]}"
        return params


# ── Query-string parsers ─────────────────────────────────────────────────


def parse_grades(value: str | Iterable[str]) -> frozenset[Grade]:
    """Comma-separated (or iterable) grades; invalid entries are dropped."""
    raw = value.split(",") if isinstance(value, str) else list(value)
    raw = [str(g).strip() for g in raw if str(g).strip()]
    valid = frozenset(Grade(g) for g in raw if Grade.is_valid(g))
    if raw and len(valid) < len(set(raw)):
        logger.warning("invalid_grades_dropped", raw=raw, kept=sorted(g.value for g in valid))
    return valid


def parse_needs_hire(value: str) -> NeedsHire:
    if not value:
        return NeedsHire.ALL
    try:
        return NeedsHire(value)
    except ValueError:
        logger.warning("invalid_needs_hire", value=value, fallback="all")
        return NeedsHire.ALL


def sanitize_client(value: str, *, max_length: int = DEFAULT_CLIENT_MAX_LENGTH) -> str:
    """Strip script blocks and markup, trim, and truncate."""
    if not value:
        return ""
    cleaned = _TAG.sub("", _SCRIPT_BLOCK.sub("", value)).strip()
    return cleaned[:max_length]


def parse_probability(value: str | tuple[int, int] | list[int]) -> tuple[int, int]:
    """``"min-max"`` within [0, 100] with min <= max, else the full range."""
    if not value:
        return PROBABILITY_RANGE
    if isinstance(value, str):
        parts = value.split("-")
        if len(parts) != 2:
            return PROBABILITY_RANGE
        try:
            low, high = int(parts[0]), int(parts[1])
        except ValueError:
            return PROBABILITY_RANGE
    else:
        if len(value) != 2:
            return PROBABILITY_RANGE
        low, high = int(value[0]), int(value[1])
    if low < 0 or high > 100 or low > high:
        return PROBABILITY_RANGE
    return (low, high)


# ── Predicate ────────────────────────────────────────────────────────────


def client_rule(entity: Opportunity, criteria: FilterCriteria) -> bool:
    if not criteria.client:
        return True
    return criteria.client.casefold() in entity.client_name.casefold()


def grades_rule(entity: Opportunity, criteria: FilterCriteria) -> bool:
    if not criteria.grades:
        return True
    return any(role.required_grade in criteria.grades for role in entity.roles)


def needs_hire_rule(entity: Opportunity, criteria: FilterCriteria) -> bool:
    if criteria.needs_hire is NeedsHire.ALL:
        return True
    wanted = criteria.needs_hire is NeedsHire.YES
    return any(role.needs_hire is wanted for role in entity.roles)


def probability_rule(entity: Opportunity, criteria: FilterCriteria) -> bool:
    low, high = criteria.probability
    return low <= entity.probability <= high


RULES = (client_rule, grades_rule, needs_hire_rule, probability_rule)


def matches(entity: Opportunity, criteria: FilterCriteria) -> bool:
    return all(rule(entity, criteria) for rule in RULES)


def filter_entities(entities: Iterable[Opportunity], criteria: FilterCriteria) -> list[Opportunity]:
    if criteria.is_default:
        return list(entities)
    return [e for e in entities if matches(e, criteria)]


__all__ = [
    "NeedsHire",
    "FilterCriteria",
    "PROBABILITY_RANGE",
    "parse_grades",
    "parse_needs_hire",
    "sanitize_client",
    "parse_probability",
    "client_rule",
    "grades_rule",
    "needs_hire_rule",
    "probability_rule",
    "matches",
    "filter_entities",
]
