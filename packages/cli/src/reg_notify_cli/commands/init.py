"""init command: interactive setup wizard.

Writes .reg-notify.yml from a client ID issued by the GitHub app and can
generate a GitHub Actions workflow that reports after every push.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
import yaml
from rich.console import Console

from reg_notify_core.config import CLIENT_ID_ENV, PR_COMMENT_BEHAVIORS, decode_client_id
from reg_notify_core.errors import InvalidClientIdError

console = Console()
logger = logging.getLogger(__name__)

_WORKFLOW_TEMPLATE = """\
name: Visual Regression

on:
  push:
  pull_request:
    types: [opened, synchronize, reopened]

jobs:
  notify:
    runs-on: ubuntu-latest

    steps:
      - uses: actions/checkout@v4
        with:
          fetch-depth: 0

      # Run your comparison here; it must write {results_path}.

      - name: Set up Python
        uses: actions/setup-python@v5
        with:
          python-version: "3.12"

      - name: Install reg-notify
        run: pip install "reg-notify-github=={version}"

      - name: Notify GitHub
        env:
          {client_id_env}: ${{{{ secrets.{client_id_env} }}}}
        run: reg-notify notify --results {results_path}
"""


def _prompt_client_id() -> tuple[str, dict]:
    """Ask until the user enters a client ID that decodes."""
    while True:
        client_id = click.prompt("Client ID (from the GitHub app installation page)").strip()
        try:
            return client_id, decode_client_id(client_id)
        except InvalidClientIdError:
            console.print("[red]That client ID could not be decoded. Copy it again from the app page.[/red]")


@click.command("init")
@click.pass_context
def init_cmd(ctx):
    """Set up reg-notify for this repository.

    Creates the config file (see --config) and optionally a GitHub Actions workflow.
    """
    config_path = ctx.obj.get("config_path", ".reg-notify.yml") if ctx.obj else ".reg-notify.yml"
    console.print("\n[bold cyan]reg-notify init[/bold cyan]: setup wizard\n")

    client_id, target = _prompt_client_id()
    console.print(f"[dim]Client ID points at {target['owner']}/{target['repository']}[/dim]")

    pr_comment = click.confirm("Comment on pull requests?", default=True)
    behavior = "default"
    if pr_comment:
        console.print("\nPR comment behaviour:")
        console.print("  [bold]default[/bold]  update a single comment on every run")
        console.print("  [bold]once[/bold]     comment once and leave it alone")
        console.print("  [bold]new[/bold]      post a fresh comment on every run")
        behavior = click.prompt("Behaviour", type=click.Choice(list(PR_COMMENT_BEHAVIORS)), default="default")
    set_commit_status = click.confirm("Set the commit status?", default=True)

    store_client_id = click.confirm(
        f"Write the client ID into {config_path}? (No: read it from ${CLIENT_ID_ENV} instead)", default=True
    )

    config: dict = {
        "prComment": pr_comment,
        "prCommentBehavior": behavior,
        "setCommitStatus": set_commit_status,
    }
    if store_client_id:
        config["clientId"] = client_id

    _write_config(config, config_path, remove=() if store_client_id else ("clientId",))
    console.print(f"[green]Created {config_path}[/green]")

    if click.confirm("\nGenerate .github/workflows/reg-notify.yml for GitHub Actions?", default=True):
        _write_workflow(".reg/out.json")
        console.print("[green]Created .github/workflows/reg-notify.yml[/green]")
        console.print(
            f"\n[yellow]Remember to add [bold]{CLIENT_ID_ENV}[/bold] to your "
            "GitHub repository secrets (Settings → Secrets → Actions).[/yellow]"
        )

    console.print("\n[bold green]Setup complete![/bold green]")


def _write_config(config: dict, config_path: str, remove: tuple = ()) -> None:
    """Write or update the config file, preserving existing keys other than those in ``remove``."""
    path = Path(config_path)
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    for key in remove:
        existing.pop(key, None)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))


def _get_version() -> str:
    try:
        from importlib.metadata import version

        return version("reg-notify-github")
    except Exception:
        logger.debug("Package metadata unavailable; pinning workflow to the fallback version.")
        return "0.1.0"


def _write_workflow(results_path: str) -> None:
    workflow_dir = Path(".github/workflows")
    workflow_dir.mkdir(parents=True, exist_ok=True)
    (workflow_dir / "reg-notify.yml").write_text(
        _WORKFLOW_TEMPLATE.format(results_path=results_path, client_id_env=CLIENT_ID_ENV, version=_get_version())
    )
