"""Per-repository CodeQL health resolution across an organization."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Protocol

from integrations.github.models import GitHubAPIError

from .classifier import WorkflowPredicate, matches_codeql, select_codeql_workflows
from .evaluator import MIN_RUNS_WINDOW, evaluate_workflow
from .exclusions import is_excluded
from .models import (
    RepoStatus,
    RepositoryRecord,
    RepositoryVerdict,
    WorkflowDefinition,
    WorkflowRun,
    WorkflowVerdict,
)

DEFAULT_WORKERS = 4


class WorkflowSource(Protocol):
    """What the scanner needs from a GitHub client."""

    def list_workflows(self, org: str, repo: str) -> list[WorkflowDefinition]: ...

    def list_workflow_runs(
        self, org: str, repo: str, workflow_id: int, per_page: int = ...
    ) -> list[WorkflowRun]: ...


def resolve_repository(
    repo: RepositoryRecord,
    excluded: bool,
    workflow_verdicts: Sequence[WorkflowVerdict],
) -> RepositoryVerdict:
    """Combine exclusion and workflow verdicts into one repository status.

    Rules are applied in order: excluded, no CodeQL workflow, any failing
    workflow, otherwise OK. The reported failure URL is the first one found
    while walking the workflows in listing order.
    """
    if excluded:
        return RepositoryVerdict(org=repo.org, repo=repo.name, status=RepoStatus.EXCLUDED)

    if not workflow_verdicts:
        return RepositoryVerdict(org=repo.org, repo=repo.name, status=RepoStatus.NO_CODEQL)

    failing = [verdict for verdict in workflow_verdicts if verdict.failing]
    failure_url = next((v.failure_url for v in failing if v.failure_url), None)

    return RepositoryVerdict(
        org=repo.org,
        repo=repo.name,
        status=RepoStatus.FAILING if failing else RepoStatus.OK,
        codeql_workflows=len(workflow_verdicts),
        failing_workflows=len(failing),
        last_failure_url=failure_url,
        workflow_verdicts=tuple(workflow_verdicts),
    )


class CodeQLHealthScanner:
    """Resolve the CodeQL health of every repository handed to it."""

    def __init__(
        self,
        client: WorkflowSource,
        excluded: frozenset[str] | set[str] = frozenset(),
        predicate: WorkflowPredicate = matches_codeql,
        runs_window: int = MIN_RUNS_WINDOW,
        max_workers: int = DEFAULT_WORKERS,
        colors: Any = None,
        verbose: bool = False,
    ) -> None:
        if runs_window < MIN_RUNS_WINDOW:
            raise ValueError(f"runs_window must be at least {MIN_RUNS_WINDOW}, got: {runs_window}")
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got: {max_workers}")
        self.client = client
        self.excluded = excluded
        self.predicate = predicate
        self.runs_window = runs_window
        self.max_workers = max_workers
        self.colors = colors
        self.verbose = verbose

    def _print(self, color_name: str, message: str) -> None:
        if self.colors is None:
            return
        color = getattr(self.colors, color_name, "")
        print(f"{color}{message}{self.colors.RESET}")

    def _fetch_workflows(self, repo: RepositoryRecord) -> list[WorkflowDefinition]:
        try:
            return self.client.list_workflows(repo.org, repo.name)
        except GitHubAPIError as exc:
            self._print("WARNING", f"⚠️  Could not list workflows for {repo.full_name}: {exc}")
            return []

    def _fetch_runs(
        self, repo: RepositoryRecord, workflow: WorkflowDefinition
    ) -> list[WorkflowRun] | None:
        try:
            return self.client.list_workflow_runs(
                repo.org, repo.name, workflow.id, per_page=self.runs_window
            )
        except GitHubAPIError as exc:
            self._print(
                "WARNING",
                f"⚠️  Could not list runs of '{workflow.name}' in {repo.full_name}: {exc}",
            )
            return None

    def scan_repository(self, repo: RepositoryRecord) -> RepositoryVerdict:
        """Resolve one repository.

        Excluded repositories are not queried at all, and run histories are
        only fetched for workflows recognised as CodeQL workflows.
        """
        if is_excluded(repo.name, self.excluded):
            self._print("INFO", f"⏭️  Skipping excluded repository {repo.full_name}")
            return resolve_repository(repo, excluded=True, workflow_verdicts=())

        self._print("PROGRESS", f"🔍 Scanning {repo.full_name}...")
        codeql_workflows = select_codeql_workflows(self._fetch_workflows(repo), self.predicate)

        verdicts = []
        for workflow in codeql_workflows:
            verdict = evaluate_workflow(workflow, self._fetch_runs(repo, workflow))
            if self.verbose:
                self._print(
                    "INFO",
                    f"   • {workflow.name} ({workflow.path}): {verdict.reason.value}",
                )
            verdicts.append(verdict)

        return resolve_repository(repo, excluded=False, workflow_verdicts=verdicts)

    def scan(self, repositories: Iterable[RepositoryRecord]) -> list[RepositoryVerdict]:
        """Resolve every repository and return verdicts in input order.

        Repositories are evaluated on at most ``max_workers`` threads. Each
        evaluation only reads from the client, so results are simply
        collected and left for the caller to aggregate.
        """
        repos = list(repositories)
        if self.max_workers == 1 or len(repos) <= 1:
            return [self.scan_repository(repo) for repo in repos]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(self.scan_repository, repos))
