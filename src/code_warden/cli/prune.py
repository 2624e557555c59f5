"""Prune CLI command -- apply snapshot retention."""

from typing import Optional

import typer

from ..retention import prune_snapshots
from . import app
from ._common import console, get_repo, snapshot_store


@app.command()
def prune(
    ctx: typer.Context,
    slug: str = typer.Argument(..., help="Repository slug"),
    keep: Optional[int] = typer.Option(
        None,
        "--keep",
        "-k",
        help="Snapshots to keep (default: the repository's retention setting)",
    ),
):
    """Delete all but the newest snapshots of a repository."""
    repo = get_repo(ctx, slug)
    keep = keep if keep is not None else repo.retention.snapshots
    deleted = prune_snapshots(snapshot_store(ctx), slug, keep)
    if deleted:
        console.print(f"[green]Pruned[/green] {len(deleted)} snapshot(s) of {slug}")
    else:
        console.print(f"[dim]Nothing to prune for {slug}.[/dim]")
