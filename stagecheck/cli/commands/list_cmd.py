"""``stagecheck list`` — show closed staging repositories."""

from __future__ import annotations

import typer
from rich.console import Console

from stagecheck.cli.state import get_services
from stagecheck.core.errors import StagecheckError
from stagecheck.monitor.renderer import ReportRenderer

console = Console()


def list_cmd() -> None:
    """List closed staging repositories with the releases they contain."""
    services = get_services()
    try:
        repositories = services.repository_service.list()
    except StagecheckError as e:
        console.print(f"[bold red]Unable to list staging repositories:[/bold red] {e}")
        raise typer.Exit(code=1)

    if not repositories:
        console.print("[dim]No closed staging repositories.[/dim]")
        return

    console.print(ReportRenderer(console).render_repositories(repositories))
