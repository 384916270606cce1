"""Report a comparison run to the GitHub app: commit status and PR comment."""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping

from rich.console import Console

from reg_notify_core.config import NotifierConfig, resolve_config
from reg_notify_core.errors import RemoteApiError, TransportError
from reg_notify_core.git.head import Repository, find_git_dir, resolve_head
from reg_notify_core.models import (
    ComparisonSummary,
    DispatchResult,
    HeadReference,
    NotificationReport,
    NotifyParams,
    OutboundRequest,
)
from reg_notify_core.transport import ApiClient

console = Console()
logger = logging.getLogger(__name__)

UPDATE_STATUS_PATH = "/api/update-status"
COMMENT_TO_PR_PATH = "/api/comment-to-pr"


class GitHubNotifier:
    """Notifier plugin: call init() once with the plugin options, then notify() per run."""

    def __init__(self, console: Console = console):
        self.console = console
        self.config: NotifierConfig | None = None
        self.no_emit = False
        self._repo: Repository | None = None
        self._env: Mapping[str, str] | None = None
        self._client: ApiClient | None = None

    def init(
        self,
        options: dict,
        *,
        no_emit: bool = False,
        repo: Repository | None = None,
        env: Mapping[str, str] | None = None,
        client: ApiClient | None = None,
    ) -> None:
        """Resolve options. Raises InvalidClientIdError for a malformed client ID."""
        self.config = resolve_config(options)
        self.no_emit = no_emit
        self._repo = repo
        self._env = env
        self._client = client

    @property
    def repo(self) -> Repository:
        if self._repo is None:
            self._repo = Repository(find_git_dir())
        return self._repo

    def _build_requests(self, head: HeadReference, summary: ComparisonSummary, report_url: str | None):
        config = self.config
        requests: list[OutboundRequest] = []

        status_body = {**config.target(), "sha1": head.sha1, "description": summary.description, "state": summary.state}
        if report_url:
            status_body["reportUrl"] = report_url
        # Counts ride on the status payload only while PR commenting is on, even if the comment itself is skipped.
        if config.pr_comment:
            status_body["metadata"] = summary.counts()

        if config.set_commit_status:
            request = OutboundRequest(uri=f"{config.endpoint}{UPDATE_STATUS_PATH}", body=status_body)
            logger.info("Update status for %s .", head.sha1)
            logger.debug("update-status: %s", request)
            requests.append(request)

        if config.pr_comment:
            if head.branch_name:
                comment_body = {
                    **config.target(),
                    "behavior": config.pr_comment_behavior,
                    "headOid": head.sha1,
                    "branchName": head.branch_name,
                    **summary.counts(),
                }
                if report_url:
                    comment_body["reportUrl"] = report_url
                request = OutboundRequest(uri=f"{config.endpoint}{COMMENT_TO_PR_PATH}", body=comment_body)
                logger.info("Comment to PR associated with %s .", head.branch_name)
                logger.debug("PR comment: %s", request)
                requests.append(request)
            else:
                logger.warning("HEAD is not attached into any branches.")

        return requests

    async def _send(self, client: ApiClient, request: OutboundRequest) -> DispatchResult:
        try:
            response = await client.send(request)
        except RemoteApiError as e:
            logger.error("%s", e.message)
            return DispatchResult(request=request, ok=False, error=e)
        except TransportError as e:
            logger.error("%s", e)
            return DispatchResult(request=request, ok=False, error=e)
        return DispatchResult(request=request, ok=True, response=response)

    async def notify(self, params: NotifyParams) -> NotificationReport:
        """Send the status update and PR comment for one comparison run.

        Never raises for a failed request: each failure is logged and recorded
        in the returned report while the other request runs to completion.
        """
        if self.config is None:
            raise RuntimeError("GitHubNotifier.notify() called before init().")

        head = resolve_head(self.repo.read_head(), self._env)
        if head is None:
            logger.error("Can't detect HEAD branch or commit.")
            return NotificationReport()

        summary = ComparisonSummary.from_result(params.comparison_result)
        report = NotificationReport(head=head, requests=self._build_requests(head, summary, params.report_url))

        if self.no_emit or not report.requests:
            return report

        owns_client = self._client is None
        client = self._client or ApiClient()
        try:
            with self.console.status("sending notification to GitHub..."):
                outcomes = await asyncio.gather(
                    *(self._send(client, r) for r in report.requests),
                    return_exceptions=True,
                )
        finally:
            if owns_client:
                await client.aclose()

        for request, outcome in zip(report.requests, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.error("Unexpected error sending %s", request.uri, exc_info=outcome)
                outcome = DispatchResult(request=request, ok=False, error=outcome)
            report.results.append(outcome)
        report.sent = True
        return report
