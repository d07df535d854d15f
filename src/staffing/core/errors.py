"""
Structured error types for the staffing cache.

Provides a small hierarchy of typed errors carrying the metadata the
mutation protocol needs to decide what happened: which mutation failed,
against which entity, and whether the remote collaborator might accept a
retry.

Manifesto:
    - **Typed Error Hierarchy:** Remote failures, invalid transitions and
      validation problems are different things and get different types
    - **No interpretation of remote subtypes:** The coordinator only tells
      success from failure; the hierarchy exists for callers and logs
    - **Rich Context:** Errors carry mutation id, entity id and descriptor
    - **Error Chaining:** The collaborator's exception is kept as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                       StaffingError                          │
        │  (category, retryable, context, cause)                       │
        ├──────────────────────────────────────────────────────────────┤
        │                                                              │
        │  RemoteFailure        ValidationError     InvalidTransition  │
        │  (REMOTE)             (VALIDATION)        (TRANSITION)       │
        │       │                     │                                │
        │  NetworkError         ApiValidationError  NotFoundError      │
        │  (retryable)                              (NOT_FOUND)        │
        │                                                              │
        │  ConfigError (CONFIG)                                        │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = InvalidTransition("completed", "in-progress")
    >>> error.category
    <ErrorCategory.TRANSITION: 'TRANSITION'>
    >>> error.retryable
    False

    >>> try:
    ...     raise ConnectionError("DNS failure")
    ... except ConnectionError as e:
    ...     failure = RemoteFailure("move_entity failed", cause=e)
    >>> failure.cause
    ConnectionError('DNS failure')

Tags:
    error-handling, exception-hierarchy, error-context, staffing-cache
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and logging."""

    REMOTE = "REMOTE"             # Remote write rejected or transport failed
    VALIDATION = "VALIDATION"     # Payload failed schema validation
    TRANSITION = "TRANSITION"     # Status move not in the transition table
    NOT_FOUND = "NOT_FOUND"       # Entity unknown to the collaborator
    CONFIG = "CONFIG"             # Invalid settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Only non-None fields end up in :meth:`to_dict`, so the context can be
    splatted straight into a structlog call.
    """

    mutation_id: str | None = None
    mutation_kind: str | None = None
    entity_id: str | None = None
    descriptor: str | None = None
    url: str | None = None
    http_status: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["mutation_id", "mutation_kind", "entity_id", "descriptor",
                    "url", "http_status"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class StaffingError(Exception):
    """
    Base exception for every error raised by the staffing package.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    call sites rarely pass them explicitly.

    Examples:
        >>> error = StaffingError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(entity_id="opp-1").context.entity_id
        'opp-1'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> StaffingError:
        """
        Add context to this error (fluent API).

        Usage:
            raise RemoteFailure("Failed").with_context(
                mutation_id="m-1",
                entity_id="opp-7",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }

        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict

        if self.cause is not None:
            result["cause"] = str(self.cause)

        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# REMOTE ERRORS
# =============================================================================


class RemoteFailure(StaffingError):
    """
    The remote write was rejected or the call never completed.

    Always triggers a full rollback of the mutation's snapshot and is
    re-raised to the caller. Retry policy belongs to the caller.
    """

    default_category = ErrorCategory.REMOTE
    default_retryable = False


class NetworkError(RemoteFailure):
    """Transport-level failure (connection refused, DNS, timeout)."""

    default_retryable = True


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(StaffingError):
    """A payload failed validation."""

    default_category = ErrorCategory.VALIDATION


class ApiValidationError(ValidationError):
    """
    A payload crossing the API boundary failed schema validation.

    Carries the endpoint (or parse label), the raw data and the per-field
    messages so callers can show them next to a form.
    """

    def __init__(
        self,
        endpoint: str,
        data: Any,
        errors: list[dict[str, Any]] | None = None,
        *,
        cause: BaseException | None = None,
    ):
        self.endpoint = endpoint
        self.data = data
        self.errors = errors or []
        summary = "; ".join(
            f"{'.'.join(str(p) for p in e.get('loc', ())) or '<root>'}: {e.get('msg', 'invalid')}"
            for e in self.errors
        )
        super().__init__(
            f"Validation failed for {endpoint}: {summary or 'invalid payload'}",
            cause=cause,
        )

    def field_errors(self) -> dict[str, list[str]]:
        """Group messages by top-level field name."""
        grouped: dict[str, list[str]] = {}
        for err in self.errors:
            loc = err.get("loc", ())
            key = str(loc[0]) if loc else "__root__"
            grouped.setdefault(key, []).append(err.get("msg", "invalid"))
        return grouped

    def errors_for_field(self, name: str) -> list[str]:
        return self.field_errors().get(name, [])


# =============================================================================
# STATE MACHINE ERRORS
# =============================================================================


class InvalidTransition(StaffingError):
    """
    A move names a transition that is not in the allowed table.

    Raised before any snapshot or optimistic write, so no partition changes.
    """

    default_category = ErrorCategory.TRANSITION

    def __init__(self, source: Any, destination: Any, message: str | None = None):
        self.source = getattr(source, "value", source)
        self.destination = getattr(destination, "value", destination)
        super().__init__(
            message or f"Cannot move from {self.source!r} to {self.destination!r}",
        )
        self.context.metadata.update(source=self.source, destination=self.destination)


class NotFoundError(StaffingError):
    """The collaborator does not know the requested entity."""

    default_category = ErrorCategory.NOT_FOUND


class ConfigError(StaffingError):
    """Settings are missing or inconsistent."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "StaffingError",
    "RemoteFailure",
    "NetworkError",
    "ValidationError",
    "ApiValidationError",
    "InvalidTransition",
    "NotFoundError",
    "ConfigError",
]
