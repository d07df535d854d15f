"""Staffing Core -- errors, results, logging and settings.

Manifesto:
    The cache, the remote adapters and the CLI all need the same small set
    of cross-cutting pieces. They live here so every layer reports errors,
    logs events and reads configuration the same way.

Architecture::

    errors.py      Structured error hierarchy (StaffingError, RemoteFailure, ...)
    result.py      Result[T] envelope (Ok / Err / try_result)
    logging.py     structlog configuration and context helpers
    settings.py    pydantic-settings configuration (STAFFING_* env vars)

Tags:
    staffing-cache, core, errors, logging, settings
"""

from staffing.core.errors import (
    ApiValidationError,
    ConfigError,
    ErrorCategory,
    ErrorContext,
    InvalidTransition,
    NetworkError,
    NotFoundError,
    RemoteFailure,
    StaffingError,
    ValidationError,
)
from staffing.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from staffing.core.result import Err, Ok, Result, partition_results, try_result
from staffing.core.settings import StaffingSettings, clear_settings_cache, get_settings

__all__ = [
    # errors
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
    # result
    "Ok",
    "Err",
    "Result",
    "try_result",
    "partition_results",
    # logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
    # settings
    "StaffingSettings",
    "get_settings",
    "clear_settings_cache",
]
