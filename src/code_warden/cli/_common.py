"""Shared CLI helpers."""

import json
from pathlib import Path

import typer
from rich.console import Console

from ..config import RepoConfig, WardenConfig
from ..exceptions import UnknownRepoError
from ..snapshot import SnapshotBundle, SnapshotStore
from ..snapshot.models import SECTION_FILES, _camel
from ..work import WorkStore

console = Console()

SEVERITY_STYLES = {
    "S0": "bold white on red",
    "S1": "bold red",
    "S2": "red",
    "S3": "yellow",
    "S4": "cyan",
    "S5": "dim",
}


def get_config(ctx: typer.Context) -> WardenConfig:
    return ctx.obj["config"]


def get_repo(ctx: typer.Context, slug: str) -> RepoConfig:
    """Resolve *slug* against the configuration or exit with code 2."""
    try:
        return get_config(ctx).repo(slug)
    except UnknownRepoError as e:
        configured = ", ".join(get_config(ctx).slugs) or "none"
        console.print(f"[red]{e.message}[/red] [dim](configured: {configured})[/dim]")
        raise typer.Exit(2)


def snapshot_store(ctx: typer.Context) -> SnapshotStore:
    return SnapshotStore(get_config(ctx).data_path)


def work_store(ctx: typer.Context) -> WorkStore:
    return WorkStore(get_config(ctx).data_path)


def read_bundle(path: Path) -> SnapshotBundle:
    """Load a bundle from a JSON file or a directory of collector outputs.

    A directory is laid out like a stored snapshot (``git-stats.json``,
    ``staleness.json``...); a file holds all sections keyed by camelCase
    section name.
    """
    if path.is_dir():
        raw = {}
        for name, (filename, _) in SECTION_FILES.items():
            section_file = path / filename
            if section_file.exists():
                raw[_camel(name)] = json.loads(section_file.read_text(encoding="utf-8"))
        return SnapshotBundle.from_dict(raw)

    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("bundle file must hold a JSON object")
    return SnapshotBundle.from_dict(data)
