"""
CLI: ``staffing rows`` — flatten an opportunities JSON file into table rows.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.table import Table

from staffing.cli.utils import console, err_console, exit_with_error, print_json
from staffing.core.result import Ok
from staffing.domain.parsing import parse_opportunities, safe_parse_opportunities
from staffing.domain.rows import flatten_opportunities


def rows_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of opportunities"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show one row per role, the way the opportunities table renders them."""
    try:
        raw = json.loads(file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        exit_with_error(e)

    result = parse_opportunities(raw, endpoint=file.name)
    if isinstance(result, Ok):
        opportunities = result.value
    else:
        opportunities = safe_parse_opportunities(raw)
        if not opportunities:
            exit_with_error(result.error)
        err_console.print(
            f"[yellow]Warning:[/yellow] {len(raw) - len(opportunities)} invalid "
            f"opportunities skipped",
        )

    rows = flatten_opportunities(opportunities)
    if as_json:
        print_json(rows)
        return

    table = Table(title=f"{file.name} ({len(opportunities)} opportunities)")
    table.add_column("Client")
    table.add_column("Opportunity")
    table.add_column("Prob.", justify="right")
    table.add_column("Role")
    table.add_column("Grade")
    table.add_column("Role status")
    table.add_column("Hire", justify="center")
    table.add_column("Comment")
    for row in rows:
        first = row.is_first_row_for_opportunity
        table.add_row(
            row.client_name if first else "",
            row.opportunity_name if first else "",
            f"{row.probability}%" if first else "",
            row.role_name or "-",
            row.required_grade.value if row.required_grade else "",
            row.role_status.value if row.role_status else "",
            "yes" if row.needs_hire else "",
            row.comment or "",
        )
    console.print(table)
