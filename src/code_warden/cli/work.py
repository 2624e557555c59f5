"""Work CLI commands -- inspect and triage work documents.

Provides:
- ``work list``: documents of a repository, most urgent first
- ``work show``: one document with its notes
- ``work status``: move a document through its lifecycle
- ``work note``: append a note

Edits hold the repository lock file, so they never interleave with a scan.
"""

import json
from typing import Optional

import typer

from ..exceptions import WardenError
from ..findings import lookup_code
from ..locking import repo_lock
from ..work import VALID_STATUSES, WorkDocument, add_note, update_status
from . import app
from ._common import SEVERITY_STYLES, console, get_config, get_repo, work_store

work_app = typer.Typer(help="Inspect and triage work documents", no_args_is_help=True)
app.add_typer(work_app, name="work")


def _load_or_exit(ctx: typer.Context, slug: str, finding_id: str) -> WorkDocument:
    get_repo(ctx, slug)
    try:
        doc = work_store(ctx).load(slug, finding_id)
    except (WardenError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    if doc is None:
        console.print(f"[yellow]No work document {finding_id} in {slug}.[/yellow]")
        raise typer.Exit(1)
    return doc


@work_app.command("list")
def list_cmd(
    ctx: typer.Context,
    slug: str = typer.Argument(..., help="Repository slug"),
    status: Optional[str] = typer.Option(None, "--status", "-s", help="Only this status"),
    severity: Optional[str] = typer.Option(None, "--severity", help="Only this severity (S0-S5)"),
    json_output: bool = typer.Option(False, "--json", help="Output in machine-readable JSON format"),
):
    """List work documents, most urgent first."""
    get_repo(ctx, slug)
    docs = work_store(ctx).load_all(slug)
    if status:
        docs = [d for d in docs if d.status == status]
    if severity:
        docs = [d for d in docs if d.severity.value == severity.upper()]
    docs.sort(key=lambda d: (d.severity.level, -d.consecutive_reports, d.finding_id))

    if json_output:
        print(json.dumps([d.to_dict() for d in docs], indent=2))
        return

    if not docs:
        console.print(f"[yellow]No work documents for {slug}.[/yellow]")
        return

    from rich.table import Table

    table = Table(title=f"Work Documents: {slug}", show_lines=False)
    table.add_column("Severity")
    table.add_column("Finding")
    table.add_column("Trend")
    table.add_column("Reports", justify="right")
    table.add_column("Status", style="cyan")

    for doc in docs:
        style = SEVERITY_STYLES[doc.severity.value]
        table.add_row(
            f"[{style}]{doc.severity.value}[/{style}]",
            doc.finding_id,
            doc.trend,
            str(doc.consecutive_reports),
            doc.status,
        )

    console.print()
    console.print(table)
    console.print()


@work_app.command("show")
def show_cmd(
    ctx: typer.Context,
    slug: str = typer.Argument(..., help="Repository slug"),
    finding_id: str = typer.Argument(..., help="Finding id"),
    json_output: bool = typer.Option(False, "--json", help="Output in machine-readable JSON format"),
):
    """Show one work document and its notes."""
    doc = _load_or_exit(ctx, slug, finding_id)

    if json_output:
        print(json.dumps(doc.to_dict(), indent=2))
        return

    style = SEVERITY_STYLES[doc.severity.value]
    console.print()
    console.print(f"[bold]{doc.finding_id}[/bold]  [{style}]{doc.severity.value}[/{style}]")
    console.print(f"  Code:     {doc.code} ({doc.metric})")
    definition = lookup_code(doc.code)
    if definition is not None:
        console.print(f"            {definition.short_description}")
        console.print(f"  Wiki:     {definition.wiki_path}")
    if doc.path:
        console.print(f"  Path:     {doc.path}")
    console.print(f"  Status:   {doc.status}" + (f" ({doc.assigned_to})" if doc.assigned_to else ""))
    console.print(f"  Trend:    {doc.trend}, {doc.consecutive_reports} consecutive report(s)")
    console.print(f"  Seen:     {doc.first_seen} .. {doc.last_seen}")
    console.print()
    for note in doc.notes:
        console.print(f"  [dim]{note.timestamp}[/dim] [cyan]{note.author}[/cyan]: {note.text}")
    console.print()


@work_app.command("status")
def status_cmd(
    ctx: typer.Context,
    slug: str = typer.Argument(..., help="Repository slug"),
    finding_id: str = typer.Argument(..., help="Finding id"),
    status: str = typer.Argument(..., help=f"New status ({', '.join(VALID_STATUSES)})"),
    note: Optional[str] = typer.Option(None, "--note", "-m", help="Why the status changed"),
    assignee: Optional[str] = typer.Option(None, "--assign", help="Assign to this owner"),
    author: str = typer.Option("cli", "--author", help="Note author"),
):
    """Move a work document to another lifecycle status."""
    if status not in VALID_STATUSES:
        console.print(f"[red]Unknown status:[/red] {status}")
        raise typer.Exit(2)

    get_repo(ctx, slug)
    with repo_lock(get_config(ctx).data_path, slug):
        doc = _load_or_exit(ctx, slug, finding_id)
        update_status(doc, status, note=note, author=author)
        if assignee is not None:
            doc.assigned_to = assignee
        work_store(ctx).save(slug, doc)
    console.print(f"[green]{finding_id}[/green] -> {doc.status}")


@work_app.command("note")
def note_cmd(
    ctx: typer.Context,
    slug: str = typer.Argument(..., help="Repository slug"),
    finding_id: str = typer.Argument(..., help="Finding id"),
    text: str = typer.Argument(..., help="Note text"),
    author: str = typer.Option("cli", "--author", help="Note author"),
):
    """Append a note to a work document."""
    get_repo(ctx, slug)
    with repo_lock(get_config(ctx).data_path, slug):
        doc = _load_or_exit(ctx, slug, finding_id)
        add_note(doc, author, text)
        work_store(ctx).save(slug, doc)
    console.print(f"[green]Noted[/green] on {finding_id}")
