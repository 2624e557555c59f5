"""Ingest CLI command: run a collected bundle through the scan pipeline."""

import json
from pathlib import Path

import typer

from ..exceptions import WardenError
from ..findings import summarize_findings_by_code
from ..pipeline import ScanPipeline
from . import app
from ._common import SEVERITY_STYLES, console, get_config, get_repo, read_bundle, snapshot_store, work_store


@app.command()
def ingest(
    ctx: typer.Context,
    slug: str = typer.Argument(..., help="Repository slug"),
    bundle_path: Path = typer.Argument(
        ...,
        help="Bundle JSON file, or a directory of collector section files",
        exists=True,
        readable=True,
    ),
    prune: bool = typer.Option(
        False,
        "--prune",
        help="Apply the repository's snapshot retention afterwards",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Store a snapshot, update work documents and raise escalations.

    [bold cyan]Examples:[/bold cyan]

      code-warden ingest web ./collected/

      code-warden ingest web bundle.json --prune
    """
    repo = get_repo(ctx, slug)
    try:
        bundle = read_bundle(bundle_path)
    except (OSError, ValueError) as e:
        console.print(f"[red]Cannot read bundle:[/red] {e}")
        raise typer.Exit(1)

    store = snapshot_store(ctx)
    pipeline = ScanPipeline(get_config(ctx), store, work_store(ctx))
    try:
        result = pipeline.ingest(slug, bundle)
    except WardenError as e:
        console.print(f"[red]Ingest failed:[/red] {e}")
        raise typer.Exit(1)

    pruned = []
    if prune:
        from ..retention import prune_snapshots

        pruned = prune_snapshots(store, slug, repo.retention.snapshots)

    if json_output:
        payload = result.to_dict()
        payload["byCode"] = summarize_findings_by_code(result.findings)
        payload["pruned"] = pruned
        print(json.dumps(payload, indent=2))
        return

    console.print(
        f"[green]Stored[/green] {slug}/{result.timestamp}: "
        f"{len(result.findings)} finding(s), "
        f"{len(result.created)} new, {len(result.updated)} recurring"
    )
    for line in summarize_findings_by_code(result.findings):
        console.print(f"  {line}")
    if result.delta is None:
        console.print("[dim]First snapshot, no delta.[/dim]")
    for doc in result.escalations:
        style = SEVERITY_STYLES[doc.severity.value]
        console.print(
            f"[{style}]ESCALATED[/{style}] {doc.finding_id} "
            f"({doc.consecutive_reports} consecutive reports)"
        )
    if pruned:
        console.print(f"[dim]Pruned {len(pruned)} old snapshot(s).[/dim]")
