"""Settings for the staffing cache.

All fields can be set through ``STAFFING_*`` environment variables or a
``.env`` file, e.g. ``STAFFING_TEMP_ID_PREFIX=tmp:`` or
``STAFFING_STALE_TIME_SECONDS=60``.

Examples:
    >>> from staffing.core.settings import StaffingSettings
    >>> StaffingSettings().stale_time_seconds
    300.0

Tags:
    settings, configuration, pydantic, environment, staffing-cache
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StaffingSettings(BaseSettings):
    """Validated configuration for the cache, the loader and the HTTP adapter.

    Fields
    ──────
    log_level                    : structlog level
    log_format                   : ``json`` or ``console``
    temp_id_prefix               : marker on optimistic (client-side) ids
    stale_time_seconds           : freshness window for in-progress / on-hold lists
    completed_stale_time_seconds : freshness window for the completed list
    invalidate_on_settle         : mark affected partitions stale after a mutation settles
    client_filter_max_length     : truncation length for the client filter text
    api_base_url                 : base URL for :class:`HttpOpportunityResource`
    api_timeout_seconds          : httpx timeout for remote calls
    """

    model_config = SettingsConfigDict(
        env_prefix="STAFFING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    # ── Cache ────────────────────────────────────────────────────
    temp_id_prefix: str = Field(default="optimistic:")
    stale_time_seconds: float = Field(default=300.0)
    completed_stale_time_seconds: float = Field(default=600.0)
    invalidate_on_settle: bool = Field(default=True)

    # ── Filters ──────────────────────────────────────────────────
    client_filter_max_length: int = Field(default=100, gt=0)

    # ── Remote API ───────────────────────────────────────────────
    api_base_url: str = Field(default="http://localhost:3000/api")
    api_timeout_seconds: float = Field(default=10.0, gt=0)

    @field_validator("temp_id_prefix")
    @classmethod
    def prefix_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("temp_id_prefix must not be blank")
        return value

    @field_validator("stale_time_seconds", "completed_stale_time_seconds")
    @classmethod
    def non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("stale times must be >= 0")
        return value

    @field_validator("log_format")
    @classmethod
    def known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return value


_settings_cache: StaffingSettings | None = None


def get_settings(*, _force_reload: bool = False) -> StaffingSettings:
    """Load, validate, and cache a :class:`StaffingSettings` instance."""
    global _settings_cache
    if _settings_cache is None or _force_reload:
        _settings_cache = StaffingSettings()
    return _settings_cache


def clear_settings_cache() -> None:
    """Drop the cached settings (tests, or after changing the environment)."""
    global _settings_cache
    _settings_cache = None


__all__ = ["StaffingSettings", "get_settings", "clear_settings_cache"]
