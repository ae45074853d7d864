"""
Warp Gate - Main Entry Point
CLI for running the webhook server and checking its configuration.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from warpgate.config import get_settings
from warpgate.core.colours import ProductionColourResolver
from warpgate.core.errors import PropertiesError
from warpgate.core.logger import setup_logging
from warpgate.models.properties import Properties, load_properties
from warpgate.workflow.transitions import TransitionCode

# CLI app
app = typer.Typer(
    name="warpgate",
    help="FTL Warp Gate - fast-track releases from Jira to production",
    add_completion=False,
)

console = Console()


def print_header():
    console.print(Panel.fit(
        "[bold blue]FTL Warp Gate[/bold blue]\n"
        "[dim]Jira → Bamboo → blue/green production[/dim]",
        border_style="blue",
    ))


def _load_or_exit(path: Path) -> Properties:
    try:
        return load_properties(path)
    except PropertiesError as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        raise typer.Exit(1)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default from settings)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default from settings)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the webhook server."""
    settings = get_settings()
    print_header()
    uvicorn.run(
        "warpgate.api.server:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command("check-properties")
def check_properties(
    path: Optional[Path] = typer.Argument(None, help="Properties file (default from settings)"),
):
    """Validate the properties file and list the configured projects."""
    properties_path = path or Path(get_settings().properties_path)
    properties = _load_or_exit(properties_path)

    console.print(f"[bold green]✓ {properties_path} is valid[/bold green]")
    console.print(f"Label: [cyan]{properties.label}[/cyan]  Prelive: [cyan]{properties.environments.prelive}[/cyan]")

    table = Table(title="FTL Projects")
    table.add_column("Jira project", style="cyan")
    table.add_column("Build plan")
    table.add_column("Deployment id")
    table.add_column("Release branch")
    for project in properties.projects:
        table.add_row(
            project.jira_project_key,
            project.bamboo_build_plan_key,
            str(project.bamboo_deployment_id),
            project.release_branch,
        )
    console.print(table)

    required = (
        TransitionCode.DEPLOY_TO_PRELIVE,
        TransitionCode.DEPLOYED_TO_PRELIVE,
        TransitionCode.PASS,
        TransitionCode.FAIL,
        TransitionCode.DEPLOY_TO_PRODUCTION,
    )
    missing = [code for code in required if code not in properties.transitions]
    if missing:
        console.print(f"[yellow]⚠ No transition names for: {', '.join(missing)}[/yellow]")


@app.command()
def colour(
    path: Optional[Path] = typer.Argument(None, help="Properties file (default from settings)"),
):
    """Print the colour currently serving production."""
    settings = get_settings()
    setup_logging(settings.log_level)
    properties = _load_or_exit(path or Path(settings.properties_path))

    resolver = ProductionColourResolver(
        properties.production_colours_url,
        freshness_minutes=settings.colour_freshness_minutes,
    )
    current = asyncio.run(resolver.get_colour())
    if current is None:
        console.print("[bold red]✗ Production colour is unknown (signal missing, stale or ambiguous)[/bold red]")
        raise typer.Exit(1)

    console.print(f"Production is [bold]{current.value.upper()}[/bold]; next deployment targets "
                  f"[bold]{current.opposite.value.upper()}[/bold]")


if __name__ == "__main__":
    app()
