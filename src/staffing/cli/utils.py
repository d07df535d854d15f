"""
CLI utility helpers — output formatting.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import asdict
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from staffing.core.errors import ApiValidationError, StaffingError
from staffing.domain.models import Opportunity

console = Console()
err_console = Console(stderr=True)


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "to_wire"):
        return obj.to_wire()
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def print_json(data: Any) -> None:
    payload = [_to_dict(d) for d in data] if isinstance(data, list | tuple) else _to_dict(data)
    console.print_json(json.dumps(payload, default=str))


def exit_with_error(error: BaseException, code: int = 1) -> NoReturn:
    """Print an error (with field messages for validation errors) and exit."""
    if isinstance(error, StaffingError):
        err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
        if isinstance(error, ApiValidationError):
            for field_name, messages in error.field_errors().items():
                for message in messages:
                    err_console.print(f"  [yellow]{field_name}[/yellow]: {message}")
    else:
        err_console.print(f"[bold red]Error[/bold red]: {error}")
    raise typer.Exit(code=code)


def partitions_table(title: str, partitions: Mapping[str, Iterable[Opportunity]]) -> Table:
    """One table for several partitions, grouped by partition name."""
    table = Table(title=title)
    table.add_column("Partition", style="cyan")
    table.add_column("ID", style="dim")
    table.add_column("Client")
    table.add_column("Opportunity")
    table.add_column("Prob.", justify="right")
    table.add_column("Status")

    for name, entities in partitions.items():
        entities = list(entities)
        if not entities:
            table.add_row(name, "-", "", "", "", "")
            continue
        for opp in entities:
            table.add_row(
                name,
                opp.id,
                opp.client_name,
                opp.opportunity_name,
                f"{opp.probability}%",
                opp.status.value,
            )
    return table
