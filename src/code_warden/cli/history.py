"""History CLI command -- list stored snapshots of a repository."""

import json

import typer

from ..exceptions import SnapshotError
from . import app
from ._common import console, get_repo, snapshot_store


@app.command()
def history(
    ctx: typer.Context,
    slug: str = typer.Argument(..., help="Repository slug"),
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        help="Maximum number of snapshots to list",
        min=1,
        max=1000,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    List stored snapshots of a repository, newest first.

    [bold cyan]Examples:[/bold cyan]

      code-warden history web

      code-warden history web --json --limit 5
    """
    get_repo(ctx, slug)
    store = snapshot_store(ctx)
    timestamps = store.list_timestamps(slug)[:limit]

    if not timestamps:
        console.print(
            f"[yellow]No snapshots found for {slug}.[/yellow] "
            f"Run collection first, then [bold]code-warden ingest {slug} <bundle>[/bold]."
        )
        raise typer.Exit(1)

    rows = []
    for ts in timestamps:
        try:
            bundle = store.load(slug, ts).bundle
        except SnapshotError as e:
            rows.append({"timestamp": ts, "error": e.message})
            continue
        rows.append(
            {
                "timestamp": ts,
                "branch": bundle.branch,
                "sections": bundle.present_sections(),
                "stale_files": len(bundle.staleness.stale_files),
                "todos": bundle.debt_markers.summary.total_todos,
            }
        )

    if json_output:
        print(json.dumps(rows, indent=2))
        return

    from rich.table import Table

    table = Table(title=f"Snapshot History: {slug}", show_lines=False, pad_edge=True)
    table.add_column("Timestamp", style="green")
    table.add_column("Branch", style="cyan")
    table.add_column("Stale", justify="right")
    table.add_column("TODOs", justify="right", style="yellow")
    table.add_column("Sections", style="dim")

    for row in rows:
        if "error" in row:
            table.add_row(row["timestamp"], "-", "-", "-", f"[red]{row['error']}[/red]")
            continue
        table.add_row(
            row["timestamp"],
            row["branch"] or "-",
            str(row["stale_files"]),
            str(row["todos"]),
            str(len(row["sections"])),
        )

    console.print()
    console.print(table)
    console.print()
