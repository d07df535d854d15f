"""
CLI: ``staffing descriptor`` — show the canonical cache key for a filter set.
"""

from __future__ import annotations

import typer
from rich.table import Table

from staffing.cache.descriptors import QueryDescriptor
from staffing.cache.filters import FilterCriteria
from staffing.cli.utils import console, exit_with_error, print_json
from staffing.core.settings import get_settings


def descriptor_command(
    status: str = typer.Option("in-progress", "--status", "-s", help="Partition or status (in-progress, OnHold, Done, ...)"),
    client: str = typer.Option("", "--client", "-c", help="Client name substring"),
    grades: str = typer.Option("", "--grades", "-g", help="Comma-separated grades, e.g. SE,JT"),
    needs_hire: str = typer.Option("all", "--needs-hire", help="yes, no or all"),
    probability: str = typer.Option("", "--probability", "-p", help="Range as min-max, e.g. 20-80"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Print the canonical key and query string for a filtered view."""
    settings = get_settings()
    criteria = FilterCriteria.from_query_params(
        {"client": client, "grades": grades, "needsHire": needs_hire, "probability": probability},
        client_max_length=settings.client_filter_max_length,
    )
    try:
        descriptor = QueryDescriptor.for_partition(status, criteria)
    except ValueError as e:
        exit_with_error(e)

    if as_json:
        print_json({
            "key": list(descriptor.key),
            "query": descriptor.to_query_params(),
            "is_default": descriptor.is_default,
        })
        return

    table = Table(title=str(descriptor))
    table.add_column("Part")
    table.add_column("Value")
    for part, value in zip(
        ("resource", "kind", "partition", "client", "grades", "needs_hire", "probability"),
        descriptor.key,
    ):
        table.add_row(part, repr(value))
    console.print(table)
    query = "&".join(f"{k}={v}" for k, v in descriptor.to_query_params().items())
    console.print(f"[bold]Query:[/bold] ?{query}")
