"""Main CLI entry point for TeamDash.

This module provides the main Typer application: the ``serve`` command that
runs the HTTP API, and the ``project`` sub-commands that operate on the
store through the staffing engine.

Usage:
    teamdash serve --port 8000
    teamdash project list --status awaiting_team
    teamdash project show <project-id>
    teamdash project start <project-id>
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console

from teamdash.cli import project as project_cli
from teamdash.config import TeamDashConfig, load_config
from teamdash.database.connection import get_engine, get_session_factory
from teamdash.integrations.webhook import WebhookNotifier
from teamdash.logging import setup_logging
from teamdash.orchestrator.engine import StaffingEngine

app = typer.Typer(
    name="teamdash",
    help="TeamDash: staffing lifecycle and project kickoff engine",
    no_args_is_help=True,
)

app.add_typer(project_cli.app, name="project", help="Inspect and kick off projects")

console = Console()


class AppContext:
    """Application context shared across CLI commands.

    Attributes:
        config: Loaded TeamDash configuration
        engine: Async SQLAlchemy engine
        session_factory: Factory for creating database sessions
        notifier: Webhook notifier
        staffing: Staffing engine bound to the session factory
    """

    def __init__(self, config: TeamDashConfig):
        self.config = config
        self.engine = get_engine(config.database)
        self.session_factory = get_session_factory(self.engine)
        self.notifier = WebhookNotifier(config.notifications)
        self.staffing = StaffingEngine(self.session_factory, config, notifier=self.notifier)


_app_context: AppContext | None = None


def get_app_context() -> AppContext:
    """Get the shared application context.

    Raises:
        RuntimeError: If context has not been initialized
    """
    if _app_context is None:
        raise RuntimeError("Application context not initialized. Call initialize_context first.")
    return _app_context


def initialize_context(config: TeamDashConfig) -> AppContext:
    """Initialize the global application context."""
    global _app_context
    _app_context = AppContext(config)
    return _app_context


@app.command()
def serve(
    host: Annotated[
        Optional[str],
        typer.Option("--host", "-h", help="Host to bind to (defaults to web.host)"),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to bind to (defaults to web.port)"),
    ] = None,
) -> None:
    """Start the TeamDash HTTP API with uvicorn."""
    import uvicorn

    from teamdash.web.app import create_app

    config = get_app_context().config
    bind_host = host or config.web.host
    bind_port = port or config.web.port

    console.print("[bold cyan]Starting TeamDash API[/bold cyan]")
    console.print(f"[dim]Host:[/dim] {bind_host}")
    console.print(f"[dim]Port:[/dim] {bind_port}")
    console.print()

    uvicorn.run(
        create_app(config),
        host=bind_host,
        port=bind_port,
        log_level=config.logging.level.lower(),
    )


@app.callback()
def main_callback(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (TOML format)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Load configuration, configure logging and build the application context."""
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=1)

    if verbose:
        config.logging.level = "DEBUG"
        config.logging.format = "console"
    setup_logging(config.logging)

    initialize_context(config)

    if verbose:
        console.print("[dim]Debug logging enabled[/dim]")


if __name__ == "__main__":
    app()
