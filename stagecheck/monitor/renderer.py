"""Rich terminal renderer for verification reports and repository listings.

Color scheme
------------
- green     : PASSED
- red       : FAILED
- bold red  : ERROR (check could not be performed)
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stagecheck.models.artifacts import StagingRepository
from stagecheck.models.reports import CheckStatus, VerificationReport

_STATUS_LABELS: dict[CheckStatus, str] = {
    CheckStatus.PASSED: "[green]PASSED[/green]",
    CheckStatus.FAILED: "[red]FAILED[/red]",
    CheckStatus.ERROR: "[bold red]ERROR[/bold red]",
}


class ReportRenderer:
    """Renders stagecheck models as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Repository listing
    # ------------------------------------------------------------------

    def render_repositories(self, repositories: list[StagingRepository]) -> Table:
        table = Table(title="Staging Repositories")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Releases")

        for repo in repositories:
            releases = repo.releases
            label = ", ".join(r.full_name for r in releases) if releases else repo.description
            table.add_row(str(repo.numeric_id or repo.repository_id), label)
        return table

    # ------------------------------------------------------------------
    # Verification report
    # ------------------------------------------------------------------

    def render_report(self, report: VerificationReport) -> Table:
        """Per-artifact table with one row per check."""
        title = f"Verification of {report.repository_id}"
        if report.releases:
            title = f"{title} ({', '.join(report.releases)})"
        table = Table(title=title)
        table.add_column("Artifact", style="cyan")
        table.add_column("Check", no_wrap=True)
        table.add_column("Status", justify="center")
        table.add_column("Detail", overflow="fold")

        for artifact in report.artifacts:
            for index, check in enumerate(artifact.checks):
                table.add_row(
                    artifact.file_name if index == 0 else "",
                    check.name,
                    _STATUS_LABELS[check.status],
                    check.detail,
                )
            table.add_section()

        if report.ci_check is not None:
            table.add_row(
                "",
                report.ci_check.name,
                _STATUS_LABELS[report.ci_check.status],
                report.ci_check.detail,
            )
        return table

    def render_summary(self, report: VerificationReport) -> Panel:
        style = "green" if report.valid else "red"
        return Panel(
            f"[bold {style}]{report.summary}[/bold {style}]",
            title="Release Summary",
            border_style=style,
        )

    def print_report(self, report: VerificationReport) -> None:
        self.console.print(self.render_report(report))
        self.console.print(self.render_summary(report))
