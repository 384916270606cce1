"""Data passed into and out of the notifier.

Request bodies use the camelCase keys the notification service expects;
everything else is plain snake_case Python.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ComparisonResult:
    """Item lists produced by the comparison engine. Only their lengths are reported."""

    failed_items: list = field(default_factory=list)
    new_items: list = field(default_factory=list)
    deleted_items: list = field(default_factory=list)
    passed_items: list = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> ComparisonResult:
        """Build from the comparison engine's JSON output (``failedItems``, ``newItems``, ...)."""
        return cls(
            failed_items=list(data.get("failedItems") or []),
            new_items=list(data.get("newItems") or []),
            deleted_items=list(data.get("deletedItems") or []),
            passed_items=list(data.get("passedItems") or []),
        )


@dataclass
class NotifyParams:
    comparison_result: ComparisonResult
    report_url: str | None = None


@dataclass(frozen=True)
class ComparisonSummary:
    failed: int
    new: int
    deleted: int
    passed: int

    @classmethod
    def from_result(cls, result: ComparisonResult) -> ComparisonSummary:
        return cls(
            failed=len(result.failed_items),
            new=len(result.new_items),
            deleted=len(result.deleted_items),
            passed=len(result.passed_items),
        )

    @property
    def state(self) -> str:
        # Passed items never affect the outcome; any change to the baseline does.
        return "success" if self.failed + self.new + self.deleted == 0 else "failure"

    @property
    def description(self) -> str:
        return "Regression testing passed" if self.state == "success" else "Regression testing failed"

    def counts(self) -> dict:
        return {
            "failedItemsCount": self.failed,
            "newItemsCount": self.new,
            "deletedItemsCount": self.deleted,
            "passedItemsCount": self.passed,
        }


@dataclass(frozen=True)
class HeadReference:
    """The commit to report against. ``branch_name`` is None for a detached head."""

    sha1: str
    branch_name: str | None = None


@dataclass
class OutboundRequest:
    uri: str
    body: dict
    method: str = "POST"
    expect_json: bool = True


@dataclass
class DispatchResult:
    """Outcome of sending one OutboundRequest."""

    request: OutboundRequest
    ok: bool
    response: Any = None
    error: Exception | None = None


@dataclass
class NotificationReport:
    """What a single notify() call built and, unless in dry-run mode, sent."""

    head: HeadReference | None = None
    requests: list[OutboundRequest] = field(default_factory=list)
    results: list[DispatchResult] = field(default_factory=list)
    sent: bool = False
