"""
Typed parse functions for payloads crossing the API boundary.

Each function returns ``Ok[model]`` or ``Err[ApiValidationError]`` instead
of raising, so callers decide whether a bad payload aborts the operation
(mutations) or degrades to partial data (list endpoints, via
:func:`safe_parse_opportunities`).

Example:
    >>> result = parse_opportunity({"id": 1, "clientName": "Acme",
    ...                             "opportunityName": "Portal", "probability": 50})
    >>> result.unwrap().id
    '1'
    >>> parse_opportunity({"id": 1}).is_err()
    True
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from staffing.core.errors import ApiValidationError
from staffing.core.logging import get_logger
from staffing.core.result import Err, Ok, Result
from staffing.domain.models import (
    CreateOpportunityInput,
    CreateRoleInput,
    Opportunity,
    Role,
)

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def _errors_of(exc: PydanticValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": tuple(e.get("loc", ())), "msg": e.get("msg", "invalid"), "type": e.get("type")}
        for e in exc.errors()
    ]


def _parse(model: type[M], raw: Any, endpoint: str) -> Result[M]:
    try:
        return Ok(model.model_validate(raw))
    except PydanticValidationError as exc:
        return Err(ApiValidationError(endpoint, raw, _errors_of(exc), cause=exc))


def parse_opportunity(raw: Any, *, endpoint: str = "opportunity") -> Result[Opportunity]:
    return _parse(Opportunity, raw, endpoint)


def parse_role(raw: Any, *, endpoint: str = "role") -> Result[Role]:
    return _parse(Role, raw, endpoint)


def parse_create_opportunity_input(raw: Any) -> Result[CreateOpportunityInput]:
    return _parse(CreateOpportunityInput, raw, "create_opportunity")


def parse_create_role_input(raw: Any) -> Result[CreateRoleInput]:
    return _parse(CreateRoleInput, raw, "create_role")


def parse_opportunities(raw: Any, *, endpoint: str = "opportunities") -> Result[list[Opportunity]]:
    """Validate a list payload as a whole.

    The error collects every element's problems, with the element index as
    the first location segment.
    """
    if not isinstance(raw, list):
        return Err(ApiValidationError(
            endpoint, raw, [{"loc": (), "msg": "expected a list of opportunities"}],
        ))

    parsed: list[Opportunity] = []
    errors: list[dict[str, Any]] = []
    for index, item in enumerate(raw):
        try:
            parsed.append(Opportunity.model_validate(item))
        except PydanticValidationError as exc:
            errors.extend({**e, "loc": (index, *e["loc"])} for e in _errors_of(exc))

    if errors:
        return Err(ApiValidationError(endpoint, raw, errors))
    return Ok(parsed)


def safe_parse_opportunities(raw: Any) -> list[Opportunity]:
    """Keep every element that validates; drop (and log) the rest."""
    if not isinstance(raw, list):
        return []

    valid: list[Opportunity] = []
    for index, item in enumerate(raw):
        result = parse_opportunity(item)
        if isinstance(result, Ok):
            valid.append(result.value)
        else:
            logger.warning("opportunity_dropped", index=index, error=result.error.message)
    return valid


__all__ = [
    "parse_opportunity",
    "parse_opportunities",
    "safe_parse_opportunities",
    "parse_role",
    "parse_create_opportunity_input",
    "parse_create_role_input",
]
