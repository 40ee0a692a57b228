"""Data model for CodeQL health scanning.

Records fetched from GitHub (repositories, workflows, runs) are immutable
snapshots. Verdicts are derived from them on every scan and never stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Run lifecycle status that marks a finished run
COMPLETED_STATUS = "completed"
# The only conclusion that counts as a passing run
SUCCESS_CONCLUSION = "success"


class RepoStatus(str, Enum):
    """Health status of a single repository."""

    OK = "OK"
    FAILING = "FAILING"
    NO_CODEQL = "NO_CODEQL"
    EXCLUDED = "EXCLUDED"


class VerdictReason(str, Enum):
    """Why a workflow verdict was reached."""

    FETCH_FAILED = "fetch_failed"
    NO_COMPLETED_RUN = "no_completed_run"
    UNSUCCESSFUL_CONCLUSION = "unsuccessful_conclusion"
    PASSED = "passed"


@dataclass(frozen=True)
class RepositoryRecord:
    """One non-archived repository of the scanned organization."""

    org: str
    name: str
    archived: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.org}/{self.name}"


@dataclass(frozen=True)
class WorkflowDefinition:
    """A workflow file registered in a repository."""

    id: int
    name: str
    path: str


@dataclass(frozen=True)
class WorkflowRun:
    """One execution of a workflow."""

    workflow_id: int
    status: str
    conclusion: str | None
    html_url: str
    created_at: str = ""
    run_number: int = 0

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED_STATUS


@dataclass(frozen=True)
class WorkflowVerdict:
    """Health of one CodeQL workflow, based on its latest completed run."""

    workflow: WorkflowDefinition
    failing: bool
    reason: VerdictReason
    failure_url: str | None = None


@dataclass(frozen=True)
class RepositoryVerdict:
    """Resolved status of one repository."""

    org: str
    repo: str
    status: RepoStatus
    codeql_workflows: int = 0
    failing_workflows: int = 0
    last_failure_url: str | None = None
    workflow_verdicts: tuple[WorkflowVerdict, ...] = field(default=(), compare=False)

    @property
    def excluded(self) -> bool:
        return self.status is RepoStatus.EXCLUDED

    def to_dict(self) -> dict[str, Any]:
        """Return the report row for this verdict."""
        return {
            "org": self.org,
            "repo": self.repo,
            "status": self.status.value,
            "codeql_workflows": self.codeql_workflows,
            "failing_workflows": self.failing_workflows,
            "last_failure_url": self.last_failure_url,
            "excluded": self.excluded,
        }


@dataclass(frozen=True)
class ScanSummary:
    """Organization-wide counts for one scan."""

    org: str
    total: int = 0
    scanned: int = 0
    excluded: int = 0
    ok: int = 0
    failing: int = 0
    no_codeql: int = 0

    @property
    def has_failures(self) -> bool:
        return self.failing > 0

    def as_outputs(self) -> dict[str, int]:
        """Return counts keyed the way CI step outputs expose them."""
        return {
            "total_repos": self.total,
            "scanned_repos": self.scanned,
            "excluded_repos": self.excluded,
            "ok_repos": self.ok,
            "failing_repos": self.failing,
            "no_codeql_repos": self.no_codeql,
        }
