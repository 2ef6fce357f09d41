"""``stagecheck verify -r ID`` — verify every artifact of a staging repository.

Exit code 0 when every check passed, 1 when a check failed or the run was
aborted (repository not found, transport failure, unusable trust store).
"""

from __future__ import annotations

import typer
from rich.console import Console

from stagecheck.cli.state import get_services
from stagecheck.core.errors import StagecheckError
from stagecheck.monitor.renderer import ReportRenderer

console = Console()


def verify_cmd(
    repository: int = typer.Option(
        ...,
        "--repository",
        "-r",
        help="Nexus staging repository id (numeric suffix).",
    ),
) -> None:
    """Check signatures, checksums and CI status of a staged release."""
    services = get_services()
    try:
        report = services.pipeline.run(repository)
    except StagecheckError as e:
        console.print(f"[bold red]Verification aborted:[/bold red] {e}")
        raise typer.Exit(code=1)

    ReportRenderer(console).print_report(report)
    if not report.valid:
        raise typer.Exit(code=1)
