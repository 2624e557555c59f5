"""Delta CLI command: what changed between the two newest snapshots."""

import json

import typer

from ..diff import SnapshotDelta, compute_delta
from ..exceptions import SnapshotError
from . import app
from ._common import console, get_repo, snapshot_store

_LABELS = {
    "stale_files_delta": "Stale files",
    "stale_directories_delta": "Stale directories",
    "total_todos_delta": "TODOs",
    "total_fixmes_delta": "FIXMEs",
    "total_hacks_delta": "HACKs",
    "total_eslint_disables_delta": "eslint-disable",
    "total_any_casts_delta": "any casts",
    "complexity_findings_delta": "Complexity findings",
    "deep_imports_delta": "Deep imports",
    "circular_chains_delta": "Circular chains",
}


@app.command()
def delta(
    ctx: typer.Context,
    slug: str = typer.Argument(..., help="Repository slug"),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Show counter changes between the latest and the previous snapshot.

    Positive numbers mean more of the problem than last time.
    """
    get_repo(ctx, slug)
    store = snapshot_store(ctx)
    try:
        current = store.latest(slug)
        previous = store.previous(slug)
    except SnapshotError as e:
        console.print(f"[yellow]{e.message}[/yellow]")
        raise typer.Exit(1)

    if previous is None:
        console.print(
            f"[yellow]Only one snapshot of {slug} ({current.timestamp}).[/yellow] "
            "A delta needs two."
        )
        raise typer.Exit(0)

    result = compute_delta(previous.bundle, current.bundle)

    if json_output:
        payload = {
            "previous": previous.timestamp,
            "current": current.timestamp,
            "delta": result.to_dict(),
        }
        print(json.dumps(payload, indent=2))
        return

    _output_rich(result, previous.timestamp, current.timestamp)


def _output_rich(result: SnapshotDelta, previous: str, current: str) -> None:
    from rich.table import Table

    table = Table(title=f"{previous} -> {current}", show_lines=False)
    table.add_column("Counter")
    table.add_column("Change", justify="right")

    for key, value in result.to_dict().items():
        if value is None:
            shown = "[dim]n/a[/dim]"
        elif value > 0:
            shown = f"[red]+{value}[/red]"
        elif value < 0:
            shown = f"[green]{value}[/green]"
        else:
            shown = "[dim]0[/dim]"
        table.add_row(_LABELS.get(key, key), shown)

    console.print()
    console.print(table)
    console.print()
