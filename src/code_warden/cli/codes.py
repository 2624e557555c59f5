"""Codes CLI command: the finding code registry."""

import json
from typing import Optional

import typer

from ..findings import codes_for_metric, list_codes
from . import app
from ._common import console


@app.command()
def codes(
    metric: Optional[str] = typer.Option(
        None,
        "--metric",
        "-m",
        help="Only codes of this metric (M1-M9)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    List the finding codes Code Warden can report.

    [bold cyan]Examples:[/bold cyan]

      code-warden codes

      code-warden codes --metric M5
    """
    definitions = codes_for_metric(metric.upper()) if metric else list_codes()

    if json_output:
        print(
            json.dumps(
                [
                    {
                        "code": d.code,
                        "metric": d.metric,
                        "description": d.short_description,
                        "wiki": d.wiki_path,
                    }
                    for d in definitions
                ],
                indent=2,
            )
        )
        return

    if not definitions:
        console.print(f"[yellow]No finding codes for metric {metric}.[/yellow]")
        return

    from rich.table import Table

    table = Table(title="Finding Codes", show_lines=False)
    table.add_column("Code", style="cyan")
    table.add_column("Metric")
    table.add_column("Description")
    table.add_column("Wiki", style="dim")
    for d in definitions:
        table.add_row(d.code, d.metric, d.short_description, d.wiki_path)

    console.print()
    console.print(table)
    console.print()
