"""decode command: show the repository a client ID points at."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from reg_notify_core.config import decode_client_id
from reg_notify_core.errors import InvalidClientIdError

console = Console()


@click.command("decode")
@click.argument("client_id")
def decode_cmd(client_id: str):
    """Decode CLIENT_ID and print its owner, repository and installation."""
    try:
        target = decode_client_id(client_id)
    except InvalidClientIdError as e:
        raise click.UsageError(str(e))

    table = Table(title="Client ID", show_header=True, header_style="bold cyan")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("owner", target["owner"])
    table.add_row("repository", target["repository"])
    table.add_row("installationId", target["installationId"])

    console.print(table)
