"""notify command: send one comparison result to the GitHub app."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import click
from rich.console import Console

from reg_notify_core.git.head import Repository, find_git_dir
from reg_notify_core.models import ComparisonResult, NotificationReport, NotifyParams
from reg_notify_core.notifier import GitHubNotifier

console = Console()


def _load_results(results_path: str) -> ComparisonResult:
    path = Path(results_path)
    if not path.exists():
        raise click.UsageError(
            f"Comparison result not found: {results_path}. Run the comparison first or pass --results."
        )
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise click.UsageError(f"Could not parse {results_path}: {e}")
    if not isinstance(data, dict):
        raise click.UsageError(f"{results_path} does not contain a comparison result object.")
    return ComparisonResult.from_dict(data)


def _print_report(report: NotificationReport, dry_run: bool) -> None:
    if report.head is None:
        console.print("[yellow]Could not detect HEAD. Nothing was reported.[/yellow]")
        return

    branch = report.head.branch_name or "detached HEAD"
    console.print(f"[dim]Reporting {report.head.sha1[:7]} ({branch})[/dim]")

    if dry_run:
        console.print(f"[bold]Dry run: {len(report.requests)} request(s) would be sent.[/bold]")
        for request in report.requests:
            console.print(f"  {request.method} {request.uri}")
        return

    if not report.requests:
        console.print("[yellow]Commit status and PR comment are both disabled. Nothing to send.[/yellow]")
        return

    for result in report.results:
        if result.ok:
            console.print(f"  [green]sent[/green]    {result.request.uri}")
        else:
            console.print(f"  [red]failed[/red]  {result.request.uri}: {result.error}")


@click.command("notify")
@click.option(
    "--results",
    "results_path",
    default=".reg/out.json",
    show_default=True,
    help="Comparison result JSON (failedItems, newItems, deletedItems, passedItems).",
)
@click.option("--report-url", default=None, help="URL of the published HTML report.")
@click.option("--client-id", default=None, help="Client ID issued by the GitHub app. Overrides config file.")
@click.option("--endpoint", default=None, help="Custom notification service endpoint. Overrides config file.")
@click.option(
    "--behavior",
    type=click.Choice(["default", "once", "new"]),
    default=None,
    help="How PR comments are posted. Overrides config file.",
)
@click.option("--no-pr-comment", is_flag=True, help="Do not comment on the pull request.")
@click.option("--no-commit-status", is_flag=True, help="Do not set the commit status.")
@click.option("--dry-run", is_flag=True, help="Build the requests and print them without sending.")
@click.pass_context
def notify_cmd(
    ctx,
    results_path: str,
    report_url: str | None,
    client_id: str | None,
    endpoint: str | None,
    behavior: str | None,
    no_pr_comment: bool,
    no_commit_status: bool,
    dry_run: bool,
):
    """Send the commit status and PR comment for a comparison run.

    \b
    Environment variables:
      REG_NOTIFY_CLIENT_ID   Client ID when not set in the config file
      GITHUB_REF, GITHUB_SHA Used when HEAD is not on a branch (GitHub Actions)
    """
    from reg_notify_core.config import load_config

    config_path = ctx.obj.get("config_path", ".reg-notify.yml") if ctx.obj else ".reg-notify.yml"
    options = load_config(
        config_path,
        cli_overrides={
            "clientId": client_id,
            "customEndpoint": endpoint,
            "prCommentBehavior": behavior,
            "prComment": False if no_pr_comment else None,
            "setCommitStatus": False if no_commit_status else None,
        },
    )

    explicit_target = all(options.get(key) for key in ("owner", "repository", "installationId"))
    if not options.get("clientId") and not explicit_target:
        raise click.UsageError(
            "No client ID configured. Set clientId in .reg-notify.yml, pass --client-id, "
            "or export REG_NOTIFY_CLIENT_ID. Run `reg-notify init` to set one up."
        )

    comparison_result = _load_results(results_path)

    try:
        repo = Repository(find_git_dir())
    except FileNotFoundError as e:
        raise click.UsageError(f"Not inside a git repository: {e}")

    notifier = GitHubNotifier(console=console)
    try:
        notifier.init(options, no_emit=dry_run, repo=repo)
    except ValueError as e:  # InvalidClientIdError or an unknown prCommentBehavior
        raise click.UsageError(str(e))

    report = asyncio.run(notifier.notify(NotifyParams(comparison_result=comparison_result, report_url=report_url)))

    _print_report(report, dry_run)
