"""CLI entry point - registers all subcommands."""

from pathlib import Path
from typing import Optional

import typer

from .. import __version__
from ..config import load_config
from ..exceptions import WardenError
from ..logging_config import setup_logging
from ._common import console

app = typer.Typer(
    name="code-warden",
    help="Code Warden - Longitudinal Code-Health Finding Tracker",
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"code-warden {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        "-d",
        help="Directory holding snapshots, work documents and alerts",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write logs here"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """
    Track code-health findings across repeated snapshots.

    [bold cyan]Examples:[/bold cyan]

      code-warden ingest web ./collected/

      code-warden delta web

      code-warden work list web --status unassigned
    """
    setup_logging(verbose=verbose, quiet=quiet, log_file=str(log_file) if log_file else None)
    try:
        settings = load_config(
            config_file=config,
            data_dir=str(data_dir) if data_dir else None,
            verbose=verbose,
            quiet=quiet,
        )
    except WardenError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(2)

    ctx.ensure_object(dict)
    ctx.obj["config"] = settings


# Import subcommands to register them
from .history import history as _history  # noqa: F401, E402
from .delta import delta as _delta  # noqa: F401, E402
from .ingest import ingest as _ingest  # noqa: F401, E402
from .work import work_app as _work_app  # noqa: F401, E402
from .escalations import escalations as _escalations  # noqa: F401, E402
from .prune import prune as _prune  # noqa: F401, E402
from .serve import serve as _serve  # noqa: F401, E402
from .codes import codes as _codes  # noqa: F401, E402
