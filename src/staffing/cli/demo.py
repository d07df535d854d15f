"""
CLI: ``staffing demo`` — walk through an optimistic create and move.

Runs against the in-memory resource and prints the partitions after each
step: loaded, optimistic (before the remote call resolves), settled. With
``--fail`` the move is rejected by the remote and the rollback is shown.
"""

from __future__ import annotations

import asyncio
from datetime import date

import typer

from staffing.cache.coordinator import MutationCoordinator
from staffing.cache.descriptors import QueryDescriptor
from staffing.cache.loader import PartitionLoader
from staffing.cache.partitions import PartitionKey
from staffing.cache.store import EntityStore
from staffing.cli.utils import console, partitions_table
from staffing.core.errors import RemoteFailure
from staffing.core.settings import get_settings
from staffing.domain.models import Grade, Opportunity, OpportunityStatus, Role
from staffing.remote.memory import InMemoryOpportunityResource


def sample_opportunities() -> list[Opportunity]:
    return [
        Opportunity(
            id="opp-100",
            client_name="Globex",
            opportunity_name="Data Platform",
            open_date=date(2026, 1, 5),
            probability=70,
            status=OpportunityStatus.IN_PROGRESS,
            roles=(
                Role(id="role-100", role_name="Data Engineer", required_grade=Grade.SE, needs_hire=True),
            ),
        ),
        Opportunity(
            id="opp-101",
            client_name="Initech",
            opportunity_name="Billing Revamp",
            open_date=date(2025, 11, 20),
            probability=40,
            status=OpportunityStatus.ON_HOLD,
        ),
    ]


def _show(coordinator: MutationCoordinator, title: str) -> None:
    partitions = {
        key.value: coordinator.read(QueryDescriptor.default(key)) for key in PartitionKey
    }
    console.print(partitions_table(title, partitions))


async def run_demo(*, fail: bool = False, latency: float = 0.05) -> None:
    settings = get_settings()
    resource = InMemoryOpportunityResource(sample_opportunities(), latency=latency)
    store = EntityStore()
    coordinator = MutationCoordinator(store, resource, settings)

    await PartitionLoader(store, resource, settings).load_all()
    _show(coordinator, "Loaded")

    task = coordinator.dispatch(
        "create",
        data={"clientName": "Acme", "opportunityName": "Portal", "probability": 50},
    )
    _show(coordinator, "Create: optimistic")
    created = (await task).entity
    _show(coordinator, "Create: settled")

    if fail:
        resource.fail_next(RemoteFailure("Server rejected the move"))
    task = coordinator.dispatch("move", entity_id=created.id, destination="on-hold")
    _show(coordinator, "Move: optimistic")
    try:
        await task
    except RemoteFailure as e:
        console.print(f"[bold red]Move failed:[/bold red] {e.message}")
        _show(coordinator, "Move: rolled back")
    else:
        _show(coordinator, "Move: settled")


def demo_command(
    fail: bool = typer.Option(False, "--fail", help="Make the remote reject the move"),
    latency: float = typer.Option(0.05, "--latency", help="Simulated remote latency in seconds"),
) -> None:
    """Show optimistic writes, reconciliation and rollback step by step."""
    asyncio.run(run_demo(fail=fail, latency=latency))
