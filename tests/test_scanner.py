"""Tests for repository status resolution and organization scans."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from conftest import make_run, make_workflow

from integrations.github.models import GitHubNetworkError, GitHubRateLimitError
from tools.codeql.evaluator import evaluate_workflow
from tools.codeql.models import RepoStatus
from tools.codeql.scanner import CodeQLHealthScanner, resolve_repository


class TestResolveRepository:
    """Tests for the status decision table."""

    def test_excluded_wins(self, repo_factory):
        """Test exclusion takes precedence over any workflow data."""
        failing = evaluate_workflow(make_workflow(), [make_run(conclusion="failure")])

        verdict = resolve_repository(repo_factory("alpha"), excluded=True, workflow_verdicts=[failing])

        assert verdict.status is RepoStatus.EXCLUDED
        assert verdict.codeql_workflows == 0
        assert verdict.failing_workflows == 0
        assert verdict.last_failure_url is None
        assert verdict.excluded is True

    def test_no_codeql(self, repo_factory):
        """Test no matched workflows resolves to NO_CODEQL."""
        verdict = resolve_repository(repo_factory("alpha"), excluded=False, workflow_verdicts=[])

        assert verdict.status is RepoStatus.NO_CODEQL
        assert verdict.codeql_workflows == 0
        assert verdict.failing_workflows == 0
        assert verdict.last_failure_url is None
        assert verdict.excluded is False

    def test_ok(self, repo_factory):
        """Test all passing workflows resolve to OK."""
        passing = evaluate_workflow(make_workflow(), [make_run()])

        verdict = resolve_repository(repo_factory("alpha"), excluded=False, workflow_verdicts=[passing])

        assert verdict.status is RepoStatus.OK
        assert verdict.codeql_workflows == 1
        assert verdict.failing_workflows == 0

    def test_failing_first_url_in_listing_order(self, repo_factory):
        """Test the first failing workflow with a URL supplies the report URL."""
        no_runs = evaluate_workflow(make_workflow(1), None)
        first = evaluate_workflow(make_workflow(2), [make_run(2, conclusion="failure", url="https://x/2")])
        second = evaluate_workflow(make_workflow(3), [make_run(3, conclusion="cancelled", url="https://x/3")])

        verdict = resolve_repository(
            repo_factory("alpha"), excluded=False, workflow_verdicts=[no_runs, first, second]
        )

        assert verdict.status is RepoStatus.FAILING
        assert verdict.codeql_workflows == 3
        assert verdict.failing_workflows == 3
        assert verdict.last_failure_url == "https://x/2"

    def test_failing_without_url(self, repo_factory):
        """Test failing workflows without runs leave the URL empty."""
        verdict = resolve_repository(
            repo_factory("alpha"),
            excluded=False,
            workflow_verdicts=[evaluate_workflow(make_workflow(), [])],
        )

        assert verdict.status is RepoStatus.FAILING
        assert verdict.last_failure_url is None


class TestScannerInit:
    """Tests for scanner argument checks."""

    def test_runs_window_minimum(self, fake_client_factory):
        """Test a runs window below ten is rejected."""
        with pytest.raises(ValueError):
            CodeQLHealthScanner(fake_client_factory(), runs_window=5)

    def test_workers_minimum(self, fake_client_factory):
        """Test zero workers is rejected."""
        with pytest.raises(ValueError):
            CodeQLHealthScanner(fake_client_factory(), max_workers=0)


class TestScanRepository:
    """Tests for CodeQLHealthScanner.scan_repository."""

    def test_excluded_repository_not_fetched(self, fake_client_factory, repo_factory):
        """Test excluded repositories never hit the API."""
        client = fake_client_factory(workflows={"alpha": [make_workflow()]})
        scanner = CodeQLHealthScanner(client, excluded=frozenset({"alpha"}))

        verdict = scanner.scan_repository(repo_factory("alpha"))

        assert verdict.status is RepoStatus.EXCLUDED
        assert client.workflow_calls == []
        assert client.run_calls == []

    def test_zero_workflows(self, fake_client_factory, repo_factory):
        """Test a repository without workflows is NO_CODEQL."""
        client = fake_client_factory(workflows={"alpha": []})

        verdict = CodeQLHealthScanner(client).scan_repository(repo_factory("alpha"))

        assert verdict.status is RepoStatus.NO_CODEQL
        assert (verdict.codeql_workflows, verdict.failing_workflows) == (0, 0)
        assert verdict.last_failure_url is None

    def test_no_matching_workflows_skips_run_fetch(self, fake_client_factory, repo_factory):
        """Test runs are never fetched when nothing looks like CodeQL."""
        client = fake_client_factory(
            workflows={"alpha": [make_workflow(1, "CI", ".github/workflows/ci.yml")]}
        )

        verdict = CodeQLHealthScanner(client).scan_repository(repo_factory("alpha"))

        assert verdict.status is RepoStatus.NO_CODEQL
        assert client.run_calls == []

    def test_workflow_listing_error_is_no_codeql(self, fake_client_factory, repo_factory, api_error):
        """Test a failed workflow listing is treated like an empty one."""
        client = fake_client_factory(workflows={"alpha": api_error})

        verdict = CodeQLHealthScanner(client).scan_repository(repo_factory("alpha"))

        assert verdict.status is RepoStatus.NO_CODEQL

    def test_single_success(self, fake_client_factory, repo_factory):
        """Test one passing CodeQL workflow gives OK."""
        client = fake_client_factory(
            workflows={"alpha": [make_workflow(7)]},
            runs={("alpha", 7): [make_run(7, conclusion="success")]},
        )

        verdict = CodeQLHealthScanner(client).scan_repository(repo_factory("alpha"))

        assert verdict.status is RepoStatus.OK
        assert verdict.codeql_workflows == 1
        assert verdict.failing_workflows == 0

    def test_single_failure(self, fake_client_factory, repo_factory):
        """Test one failing CodeQL workflow gives FAILING with its URL."""
        url = "https://github.com/acme/alpha/actions/runs/99"
        client = fake_client_factory(
            workflows={"alpha": [make_workflow(7)]},
            runs={("alpha", 7): [make_run(7, conclusion="failure", url=url)]},
        )

        verdict = CodeQLHealthScanner(client).scan_repository(repo_factory("alpha"))

        assert verdict.status is RepoStatus.FAILING
        assert verdict.failing_workflows == 1
        assert verdict.last_failure_url == url

    def test_success_plus_never_completed(self, fake_client_factory, repo_factory):
        """Test a second workflow without completed runs makes the repo FAILING."""
        client = fake_client_factory(
            workflows={
                "alpha": [
                    make_workflow(1, "CodeQL", ".github/workflows/codeql.yml"),
                    make_workflow(2, "CodeQL Advanced", ".github/workflows/codeql-adv.yml"),
                ]
            },
            runs={
                ("alpha", 1): [make_run(1, conclusion="success")],
                ("alpha", 2): [make_run(2, status="queued", conclusion=None)],
            },
        )

        verdict = CodeQLHealthScanner(client).scan_repository(repo_factory("alpha"))

        assert verdict.status is RepoStatus.FAILING
        assert verdict.codeql_workflows == 2
        assert verdict.failing_workflows == 1
        assert verdict.last_failure_url is None

    def test_run_fetch_error_fails_closed(self, fake_client_factory, repo_factory):
        """Test an unreachable run history counts as failing."""
        client = fake_client_factory(
            workflows={"alpha": [make_workflow(1)]},
            runs={("alpha", 1): GitHubRateLimitError("Rate limit exceeded")},
        )

        verdict = CodeQLHealthScanner(client).scan_repository(repo_factory("alpha"))

        assert verdict.status is RepoStatus.FAILING
        assert verdict.failing_workflows == 1

    def test_runs_window_passed_to_client(self, fake_client_factory, repo_factory):
        """Test the configured window is requested from the client."""
        client = fake_client_factory(
            workflows={"alpha": [make_workflow(1)]},
            runs={("alpha", 1): [make_run(1)]},
        )

        CodeQLHealthScanner(client, runs_window=25).scan_repository(repo_factory("alpha"))

        assert client.run_calls == [("alpha", 1, 25)]

    def test_progress_printed_with_colors(self, fake_client_factory, repo_factory, mock_colors, capsys):
        """Test progress and warnings are printed when colors are given."""
        client = fake_client_factory(workflows={"alpha": GitHubNetworkError("boom")})

        CodeQLHealthScanner(client, colors=mock_colors).scan_repository(repo_factory("alpha"))

        captured = capsys.readouterr()
        assert "acme/alpha" in captured.out
        assert "boom" in captured.out


class TestScan:
    """Tests for CodeQLHealthScanner.scan."""

    @pytest.fixture
    def client(self, fake_client_factory, api_error):
        return fake_client_factory(
            workflows={
                "ok-repo": [make_workflow(1)],
                "failing-repo": [make_workflow(2)],
                "plain-repo": [make_workflow(3, "CI", ".github/workflows/ci.yml")],
                "broken-repo": api_error,
                "skipped": [make_workflow(4)],
            },
            runs={
                ("ok-repo", 1): [make_run(1)],
                ("failing-repo", 2): [make_run(2, conclusion="failure", url="https://x/2")],
            },
        )

    @pytest.fixture
    def repos(self, repo_factory):
        names = ["ok-repo", "failing-repo", "plain-repo", "broken-repo", "skipped"]
        return [repo_factory(name) for name in names]

    @pytest.mark.parametrize("workers", [1, 4])
    def test_statuses_in_input_order(self, client, repos, workers):
        """Test every repository gets a verdict, in input order."""
        scanner = CodeQLHealthScanner(client, excluded=frozenset({"skipped"}), max_workers=workers)

        verdicts = scanner.scan(repos)

        assert [v.repo for v in verdicts] == [r.name for r in repos]
        assert [v.status for v in verdicts] == [
            RepoStatus.OK,
            RepoStatus.FAILING,
            RepoStatus.NO_CODEQL,
            RepoStatus.NO_CODEQL,
            RepoStatus.EXCLUDED,
        ]

    def test_idempotent(self, client, repos):
        """Test the same snapshot yields identical verdicts."""
        scanner = CodeQLHealthScanner(client, excluded=frozenset({"skipped"}))

        first = [v.to_dict() for v in scanner.scan(repos)]
        second = [v.to_dict() for v in scanner.scan(repos)]

        assert first == second

    def test_empty(self, client):
        """Test scanning nothing returns nothing."""
        assert CodeQLHealthScanner(client).scan([]) == []

    def test_sibling_isolation(self, repo_factory):
        """Test an error on one repository leaves the others intact."""
        client = MagicMock()

        def list_workflows(org, repo):
            if repo == "bad":
                raise GitHubNetworkError("connection reset")
            return [make_workflow(1)]

        client.list_workflows.side_effect = list_workflows
        client.list_workflow_runs.return_value = [make_run(1)]

        verdicts = CodeQLHealthScanner(client, max_workers=2).scan(
            [repo_factory("bad"), repo_factory("good")]
        )

        assert [v.status for v in verdicts] == [RepoStatus.NO_CODEQL, RepoStatus.OK]
