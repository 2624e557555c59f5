"""``code-warden serve``: live update server and JSON API."""

import typer

from . import app
from ._common import console, get_config


@app.command()
def serve(
    ctx: typer.Context,
    port: int = typer.Option(8765, help="Port to listen on"),
    host: str = typer.Option("127.0.0.1", help="Host to bind to"),
) -> None:
    """Serve live updates over /ws and the read API under /api."""
    try:
        from ..server import _check_deps

        _check_deps()
    except ImportError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    import uvicorn

    from ..server.app import create_app

    config = get_config(ctx)
    if not config.repos:
        console.print("[yellow]No repositories configured.[/yellow] Add [[repos]] to code-warden.toml.")

    asgi_app = create_app(config)
    url = f"http://{host}:{port}"
    console.print(f"[bold]Serving[/bold] {', '.join(config.slugs) or '-'} → [link={url}]{url}[/link]")
    console.print("[dim]Press Ctrl+C to stop[/dim]")

    try:
        uvicorn.run(
            asgi_app,
            host=host,
            port=port,
            log_level="info" if config.verbosity == "verbose" else "warning",
        )
    except KeyboardInterrupt:
        pass
    finally:
        console.print("\n[dim]Stopped.[/dim]")
