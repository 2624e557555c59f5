"""Escalations CLI command."""

import json

import typer

from ..work import detect_escalations, write_alert
from . import app
from ._common import console, get_config, get_repo, work_store


@app.command()
def escalations(
    ctx: typer.Context,
    slug: str = typer.Argument(..., help="Repository slug"),
    write: bool = typer.Option(False, "--write", help="(Re)write alert files"),
    json_output: bool = typer.Option(False, "--json", help="Output in machine-readable JSON format"),
):
    """
    List S1 findings that stayed unassigned past the escalation threshold.

    Exits with code 1 when anything is escalated, so it can gate CI.
    """
    get_repo(ctx, slug)
    config = get_config(ctx)
    found = detect_escalations(work_store(ctx).load_all(slug), config.escalation_threshold)

    paths = []
    if write:
        paths = [str(write_alert(slug, doc, config.data_path)) for doc in found]

    if json_output:
        print(
            json.dumps(
                {"slug": slug, "escalations": [d.to_dict() for d in found], "alerts": paths},
                indent=2,
            )
        )
    elif not found:
        console.print(f"[green]No escalations for {slug}.[/green]")
    else:
        for doc in found:
            console.print(
                f"[bold red]{doc.finding_id}[/bold red] "
                f"{doc.consecutive_reports} consecutive report(s), {doc.trend}"
            )

    if found:
        raise typer.Exit(1)
