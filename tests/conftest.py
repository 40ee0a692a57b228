"""Pytest configuration and shared fixtures for codeql-health tests."""

from __future__ import annotations

import os
import sys
from unittest.mock import MagicMock, patch

import pytest

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from integrations.github.models import GitHubAPIError  # noqa: E402
from tools.codeql.models import RepositoryRecord, WorkflowDefinition, WorkflowRun  # noqa: E402


class FakeGitHubClient:
    """In-memory stand-in for the REST client.

    ``workflows`` maps repository names to a workflow list or an exception to
    raise; ``runs`` maps ``(repo, workflow_id)`` the same way.
    """

    def __init__(self, workflows=None, runs=None):
        self.workflows = workflows or {}
        self.runs = runs or {}
        self.workflow_calls: list[str] = []
        self.run_calls: list[tuple[str, int, int]] = []

    def list_workflows(self, org, repo):
        self.workflow_calls.append(repo)
        result = self.workflows.get(repo, [])
        if isinstance(result, Exception):
            raise result
        return list(result)

    def list_workflow_runs(self, org, repo, workflow_id, per_page=10):
        self.run_calls.append((repo, workflow_id, per_page))
        result = self.runs.get((repo, workflow_id), [])
        if isinstance(result, Exception):
            raise result
        return list(result)


def make_workflow(workflow_id=1, name="CodeQL", path=".github/workflows/codeql.yml"):
    """Build a workflow definition."""
    return WorkflowDefinition(id=workflow_id, name=name, path=path)


def make_run(workflow_id=1, status="completed", conclusion="success", url=None, number=1):
    """Build a workflow run."""
    return WorkflowRun(
        workflow_id=workflow_id,
        status=status,
        conclusion=conclusion,
        html_url=url or f"https://github.com/acme/repo/actions/runs/{workflow_id}{number}",
        run_number=number,
    )


@pytest.fixture
def mock_github_token():
    """Provide a mock GitHub token."""
    return "ghp_test_token_1234567890"


@pytest.fixture
def mock_env_token(mock_github_token):
    """Set up environment with mock GitHub token."""
    with patch.dict(os.environ, {"GITHUB_TOKEN": mock_github_token}):
        yield mock_github_token


@pytest.fixture
def fake_client_factory():
    """Return the FakeGitHubClient class."""
    return FakeGitHubClient


@pytest.fixture
def api_error():
    """A representative upstream fetch error."""
    return GitHubAPIError("Request failed (status 502: Bad Gateway)")


@pytest.fixture
def repo_factory():
    """Build repository records for the ``acme`` org."""

    def _make(name, archived=False):
        return RepositoryRecord(org="acme", name=name, archived=archived)

    return _make


@pytest.fixture
def mock_colors():
    """Create a mock Colors class for testing."""
    mock = MagicMock()
    mock.HEADER = ""
    mock.SUCCESS = ""
    mock.WARNING = ""
    mock.ERROR = ""
    mock.INFO = ""
    mock.PROGRESS = ""
    mock.REPO_NAME = ""
    mock.URL = ""
    mock.RESET = ""
    return mock


@pytest.fixture
def mock_response():
    """Build a mock ``requests.Response``."""

    def _make(status_code=200, json_data=None, headers=None, links=None, text=""):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = json_data if json_data is not None else {}
        response.headers = headers or {}
        response.links = links or {}
        response.text = text
        return response

    return _make
