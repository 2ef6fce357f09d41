"""``stagecheck keys`` — load the trusted key ring and show what it holds."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from stagecheck.bridge import crypto_bridge
from stagecheck.cli.state import get_services
from stagecheck.core.errors import StagecheckError

console = Console()


def keys_cmd(
    show_ids: bool = typer.Option(
        True,
        "--ids/--no-ids",
        help="List every trusted key, not only the count.",
    ),
) -> None:
    """Load (downloading if needed) the trusted signing keys."""
    services = get_services()
    try:
        ring = services.key_ring
    except StagecheckError as e:
        console.print(f"[bold red]Trusted keys unavailable:[/bold red] {e}")
        raise typer.Exit(code=1)

    console.print(
        f"[green]{len(ring)} trusted keys[/green] loaded from {services.settings.keys_file}"
    )
    if not show_ids:
        return

    table = Table(title="Trusted Keys")
    table.add_column("Key ID", style="cyan", no_wrap=True)
    table.add_column("User ID")
    for key in sorted(ring.primary_keys, key=lambda k: k.fingerprint.keyid):
        info = crypto_bridge.key_info(key)
        table.add_row(f"0x{info.key_id}", info.primary_user_id)
    console.print(table)
