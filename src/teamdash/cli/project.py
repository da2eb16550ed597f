"""Project CLI commands.

Lists and inspects projects and triggers kickoffs through the same
StaffingEngine the HTTP API uses.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Coroutine
from datetime import datetime
from typing import TYPE_CHECKING, Annotated, Any, Optional, TypeVar
from uuid import UUID

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from teamdash.database.models.project import ProjectStatus
from teamdash.orchestrator.errors import EngineError

if TYPE_CHECKING:
    from teamdash.main import AppContext

T = TypeVar("T")

app = typer.Typer(help="Project commands")
console = Console()

STATUS_COLORS = {
    "paused": "yellow",
    "awaiting_team": "cyan",
    "live": "green",
    "completed": "blue",
    "archived": "dim",
    "deleted": "red",
}


def _colored(status: ProjectStatus) -> str:
    color = STATUS_COLORS.get(status.value, "white")
    return f"[{color}]{status.value}[/{color}]"


def _run(ctx: AppContext, work: Coroutine[Any, Any, T]) -> T:
    """Run an engine call, then release the HTTP client and the connection pool."""

    async def _wrapper() -> T:
        try:
            return await work
        finally:
            await ctx.notifier.close()
            await ctx.engine.dispose()

    return asyncio.run(_wrapper())


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        console.print(f"[red]Invalid project ID:[/red] {value}")
        raise typer.Exit(code=1)


@app.command("list")
def list_projects(
    status: Annotated[
        Optional[str],
        typer.Option("--status", "-s", help="Filter by status"),
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """List projects, newest first."""
    from teamdash.main import get_app_context

    ctx = get_app_context()

    status_filter = None
    if status is not None:
        try:
            status_filter = ProjectStatus(status)
        except ValueError:
            valid = ", ".join(s.value for s in ProjectStatus)
            console.print(f"[red]Invalid status:[/red] {status}. Valid values: {valid}")
            raise typer.Exit(code=1)

    projects = _run(ctx, ctx.staffing.list_projects(status_filter=status_filter))

    if format == "json":
        output = [
            {
                "id": str(p.id),
                "title": p.title,
                "status": p.status.value,
                "start_date": p.start_date.isoformat(),
                "created_at": p.created_at.isoformat(),
            }
            for p in projects
        ]
        console.print(json.dumps(output, indent=2))
        return

    if not projects:
        console.print("[yellow]No projects found[/yellow]")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Status")
    table.add_column("Start", style="dim")

    for p in projects:
        table.add_row(str(p.id), p.title, _colored(p.status), p.start_date.isoformat())

    console.print(table)


@app.command()
def show(
    project_id: Annotated[str, typer.Argument(help="Project ID")],
) -> None:
    """Show a project with its staffing slots."""
    from teamdash.main import get_app_context

    ctx = get_app_context()
    pid = _parse_uuid(project_id)

    try:
        snapshot = _run(ctx, ctx.staffing.project_snapshot(pid))
    except EngineError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    project = snapshot["project"]
    readiness = snapshot["readiness"]
    console.print(
        Panel(
            f"[bold]ID:[/bold] {project['id']}\n"
            f"[bold]Title:[/bold] {project['title']}\n"
            f"[bold]Status:[/bold] {_colored(ProjectStatus(project['status']))}\n"
            f"[bold]Accepted:[/bold] {readiness['accepted']} / {readiness['required']}",
            title="Project",
            border_style="cyan",
        )
    )

    table = Table(title="Assignments")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Profession")
    table.add_column("Seniority")
    table.add_column("Booking")
    table.add_column("Candidate", style="dim")

    for a in snapshot["assignments"]:
        booking = a["booking_status"]
        if a["is_automated"]:
            booking += " (automated)"
        table.add_row(
            a["assignment_id"],
            a["profession"],
            a["seniority"],
            booking,
            a["candidate_id"] or "-",
        )

    console.print(table)


@app.command()
def start(
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    kickoff_at: Annotated[
        Optional[datetime],
        typer.Option("--at", help="Kickoff meeting start (ISO format)"),
    ] = None,
    retry: Annotated[
        bool,
        typer.Option("--retry", help="Re-run the kickoff steps of a live project"),
    ] = False,
) -> None:
    """Kick off a fully staffed project, or finish an interrupted kickoff."""
    from teamdash.main import get_app_context

    ctx = get_app_context()
    pid = _parse_uuid(project_id)

    try:
        operation = ctx.staffing.retry_kickoff if retry else ctx.staffing.start_project
        report = _run(ctx, operation(pid, kickoff_at))
    except EngineError as e:
        console.print(f"[red]Kickoff rejected:[/red] {e}")
        raise typer.Exit(code=1)

    lines = [f"[bold]Meeting:[/bold] {report.meeting_url or '-'}"]
    for step in report.steps:
        mark = "[green]ok[/green]" if step.ok else f"[red]failed[/red] {step.error}"
        lines.append(f"[bold]{step.step}:[/bold] {mark} ({step.created} created)")

    console.print(
        Panel(
            "\n".join(lines),
            title="Project is live" if report.ok else "Project is live (with warnings)",
            border_style="green" if report.ok else "yellow",
        )
    )
