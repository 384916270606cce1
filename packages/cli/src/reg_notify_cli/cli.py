"""CLI entry point for reg-notify.

Commands:
  notify : report a comparison result to the GitHub app
  decode : show what a client ID decodes to
  init   : interactive setup wizard
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.logging import RichHandler

from reg_notify_cli.commands.decode import decode_cmd
from reg_notify_cli.commands.init import init_cmd
from reg_notify_cli.commands.notify import notify_cmd


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(message)s", handlers=[RichHandler(show_path=False)])
    logging.getLogger().setLevel(level)
    # httpx logs every request at INFO; keep that for --verbose only.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


@click.group()
@click.version_option(
    version=importlib.metadata.version("reg-notify-github"),
    prog_name="reg-notify",
)
@click.option(
    "--config",
    "config_path",
    default=".reg-notify.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REG_NOTIFY_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log outgoing requests.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Report visual regression results to GitHub commit statuses and PR comments."""
    ctx.ensure_object(dict)
    _configure_logging(verbose)
    ctx.obj["config_path"] = config_path


main.add_command(notify_cmd)
main.add_command(decode_cmd)
main.add_command(init_cmd)
