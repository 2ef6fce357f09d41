"""Main Typer application — imports and registers all CLI commands.

Entry point: ``stagecheck`` (configured via pyproject.toml project.scripts).

Commands: list, verify, keys.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from stagecheck.cli.commands.keys import keys_cmd
from stagecheck.cli.commands.list_cmd import list_cmd
from stagecheck.cli.commands.verify import verify_cmd
from stagecheck.config import settings

app = typer.Typer(
    name="stagecheck",
    help="Stagecheck: verify staged Apache Sling releases before the vote.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


def configure_logging(level: str) -> None:
    """Route all log records through a single stderr ``RichHandler``."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    configure_logging("DEBUG" if verbose else settings.log_level)


# Register subcommands
app.command(name="list", help="List closed staging repositories.")(list_cmd)
app.command(name="verify", help="Verify signatures, checksums and CI status.")(verify_cmd)
app.command(name="keys", help="Load and show the trusted signing keys.")(keys_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
