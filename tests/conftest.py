"""
Shared pytest fixtures and configuration for staffing-cache tests.

This module provides:
- Settings cache and structlog isolation between tests
- Builders for opportunities and roles
- A store / in-memory resource / coordinator trio wired together

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments:

    def test_something(coordinator, in_progress):
        ...
"""

import sys
from datetime import date
from pathlib import Path
from typing import Any, Generator

import pytest
import structlog

# Ensure staffing package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from staffing.cache.coordinator import MutationCoordinator
from staffing.cache.descriptors import QueryDescriptor
from staffing.cache.partitions import PartitionKey
from staffing.cache.store import EntityStore
from staffing.core.settings import StaffingSettings, clear_settings_cache
from staffing.domain.models import Grade, Opportunity, OpportunityStatus, Role
from staffing.remote.memory import InMemoryOpportunityResource


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_cache() -> Generator[None, None, None]:
    """Drop cached settings before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any configure_logging() done by a test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def settings() -> StaffingSettings:
    """Settings that ignore the developer's environment and .env file."""
    return StaffingSettings(_env_file=None, invalidate_on_settle=True)


# =============================================================================
# Builders
# =============================================================================


def make_role(role_id: str = "role-1", **overrides: Any) -> Role:
    data: dict[str, Any] = {
        "id": role_id,
        "role_name": "Engineer",
        "required_grade": Grade.SE,
        "needs_hire": False,
    }
    data.update(overrides)
    return Role(**data)


def make_opportunity(opp_id: str = "opp-1", **overrides: Any) -> Opportunity:
    data: dict[str, Any] = {
        "id": opp_id,
        "client_name": "Acme Corp",
        "opportunity_name": "Portal",
        "open_date": date(2026, 1, 1),
        "probability": 50,
        "status": OpportunityStatus.IN_PROGRESS,
        "roles": (),
    }
    data.update(overrides)
    return Opportunity(**data)


@pytest.fixture
def opportunity_factory():
    return make_opportunity


@pytest.fixture
def role_factory():
    return make_role


# =============================================================================
# Cache wiring
# =============================================================================


@pytest.fixture
def in_progress() -> QueryDescriptor:
    return QueryDescriptor.default(PartitionKey.IN_PROGRESS)


@pytest.fixture
def on_hold() -> QueryDescriptor:
    return QueryDescriptor.default(PartitionKey.ON_HOLD)


@pytest.fixture
def completed() -> QueryDescriptor:
    return QueryDescriptor.default(PartitionKey.COMPLETED)


@pytest.fixture
def store() -> EntityStore:
    return EntityStore()


@pytest.fixture
def resource() -> InMemoryOpportunityResource:
    return InMemoryOpportunityResource()


@pytest.fixture
def coordinator(store, resource, settings) -> MutationCoordinator:
    return MutationCoordinator(store, resource, settings)
