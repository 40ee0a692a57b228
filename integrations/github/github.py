#!/usr/bin/env python3

"""Helpers for interacting with GitHub's REST API."""

from __future__ import annotations

import os
import shutil
import subprocess
import time
from collections.abc import Iterator
from typing import Any

import requests

from tools.codeql.models import RepositoryRecord, WorkflowDefinition, WorkflowRun

from .models import (
    DEFAULT_PER_PAGE,
    DEFAULT_RUNS_PER_PAGE,
    DEFAULT_TIMEOUT,
    GITHUB_API_ACCEPT,
    GITHUB_API_BASE_URL,
    GITHUB_API_VERSION,
    MAX_RATE_LIMIT_WAIT,
    MAX_RETRIES,
    RATE_LIMIT_FALLBACK_DELAY,
    RETRY_BACKOFF,
    RETRY_DELAY,
    GitHubAPIError,
    GitHubAuthError,
    GitHubNetworkError,
    GitHubNotFoundError,
    GitHubRateLimitError,
)

TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


def _check_command_exists(cmd: str) -> bool:
    """Return True when *cmd* can be found in PATH."""
    return shutil.which(cmd) is not None


def token_from_gh_cli() -> str | None:
    """Return the token of an authenticated ``gh`` CLI session, if any."""
    if not _check_command_exists("gh"):
        return None
    try:
        result = subprocess.run(
            ["gh", "auth", "token"], check=True, capture_output=True, text=True
        )
    except (subprocess.CalledProcessError, OSError):
        return None
    return result.stdout.strip() or None


def resolve_token(token: str | None = None) -> str | None:
    """Pick a token from the argument, the environment, then the gh CLI."""
    if token:
        return token
    for name in TOKEN_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value
    return token_from_gh_cli()


class RestAPI:
    """Wrapper around the GitHub REST endpoints used by the health scan."""

    def __init__(
        self,
        token: str | None = None,
        base_url: str = GITHUB_API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
    ) -> None:
        self.token = token or next(
            (os.getenv(name) for name in TOKEN_ENV_VARS if os.getenv(name)), None
        )
        if not self.token:
            raise GitHubAuthError("GITHUB_TOKEN environment variable not set.")
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got: {max_retries}")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"token {self.token}",
            "Accept": GITHUB_API_ACCEPT,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    @staticmethod
    def _is_rate_limited(response: requests.Response) -> bool:
        if response.status_code == 429:
            return True
        if response.status_code != 403:
            return False
        headers = response.headers
        return headers.get("X-RateLimit-Remaining") == "0" or "Retry-After" in headers

    @staticmethod
    def _rate_limit_wait(response: requests.Response) -> float:
        """Return how long to wait before retrying a throttled request."""
        headers = response.headers
        retry_after = headers.get("Retry-After")
        if retry_after is not None:
            try:
                return min(max(float(retry_after), 0.0), MAX_RATE_LIMIT_WAIT)
            except ValueError:
                pass
        reset = headers.get("X-RateLimit-Reset")
        if reset is not None:
            try:
                wait = int(reset) - time.time() + 1
            except ValueError:
                return RATE_LIMIT_FALLBACK_DELAY
            return min(max(wait, 0.0), MAX_RATE_LIMIT_WAIT)
        return RATE_LIMIT_FALLBACK_DELAY

    def _request_with_retry(
        self,
        method: str,
        url: str,
        max_retries: int | None = None,
        **kwargs: Any,
    ) -> requests.Response:
        """Send a request, retrying network failures and throttled responses.

        Network failures are retried with exponential backoff. Rate-limited
        responses (403 with an exhausted quota, or 429) are retried after the
        wait GitHub asks for, capped at ``MAX_RATE_LIMIT_WAIT``.

        Args:
            method: ``"get"`` or ``"post"``
            url: Absolute request URL
            max_retries: Attempts before giving up (defaults to the client's)
            **kwargs: Passed through to :mod:`requests`

        Returns:
            The final response, whatever its status code

        Raises:
            ValueError: If *method* is not supported or *max_retries* is below 1
            GitHubNetworkError: If every attempt failed at the network level
            GitHubRateLimitError: If the request was still throttled after
                the last attempt
        """
        request_func = {"get": requests.get, "post": requests.post}.get(method.lower())
        if request_func is None:
            raise ValueError(f"Unsupported HTTP method: {method}")

        attempts = max_retries if max_retries is not None else self.max_retries
        if attempts < 1:
            raise ValueError(f"max_retries must be at least 1, got: {attempts}")
        kwargs.setdefault("headers", self._headers)
        kwargs.setdefault("timeout", self.timeout)

        last_error: GitHubAPIError = GitHubNetworkError(f"No attempt made for {url}")
        for attempt in range(attempts):
            is_last = attempt == attempts - 1
            try:
                response = request_func(url, **kwargs)
            except requests.exceptions.Timeout as exc:
                last_error = GitHubNetworkError(f"Request timeout for {url}: {exc}")
            except requests.exceptions.ConnectionError as exc:
                last_error = GitHubNetworkError(f"Connection error for {url}: {exc}")
            except requests.exceptions.RequestException as exc:
                last_error = GitHubNetworkError(f"Request failed for {url}: {exc}")
            else:
                if not self._is_rate_limited(response):
                    return response
                last_error = GitHubRateLimitError(
                    f"Rate limit exceeded for {url} (status {response.status_code})"
                )
                if not is_last:
                    time.sleep(self._rate_limit_wait(response))
                continue

            if not is_last:
                time.sleep(RETRY_DELAY * (RETRY_BACKOFF**attempt))

        raise last_error

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            message = response.json().get("message", "")
        except (ValueError, AttributeError):
            message = response.text
        return f"status {response.status_code}: {message}"

    def _get_json(
        self, url: str, params: dict[str, Any] | None = None
    ) -> tuple[Any, requests.Response]:
        """GET *url* and decode its JSON body.

        Raises:
            GitHubAuthError: On 401 or a non-throttling 403
            GitHubNotFoundError: On 404
            GitHubAPIError: On any other non-200 status or a malformed body
        """
        response = self._request_with_retry("get", url, params=params)
        if response.status_code in (401, 403):
            raise GitHubAuthError(f"Access denied for {url} ({self._error_message(response)})")
        if response.status_code == 404:
            raise GitHubNotFoundError(f"Not found: {url}")
        if response.status_code != 200:
            raise GitHubAPIError(f"Request to {url} failed ({self._error_message(response)})")
        try:
            return response.json(), response
        except ValueError as exc:
            raise GitHubAPIError(f"Malformed JSON from {url}: {exc}") from exc

    def _paginate(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        key: str | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Yield items across every page, following ``Link: rel="next"`` headers.

        List endpoints return a bare array; wrapped endpoints (like the
        workflows listing) hold the items under *key*.
        """
        next_url: str | None = url
        next_params = params
        while next_url:
            data, response = self._get_json(next_url, next_params)
            items = data.get(key) if key and isinstance(data, dict) else data
            if items is None:
                return
            if not isinstance(items, list):
                raise GitHubAPIError(f"Unexpected response shape from {next_url}")
            yield from items
            next_url = (response.links or {}).get("next", {}).get("url")
            # The next link already carries the query string
            next_params = None

    # ------------------------------------------------------------------
    # Record parsing
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_repository(org: str, item: dict[str, Any]) -> RepositoryRecord:
        return RepositoryRecord(
            org=org, name=item["name"], archived=bool(item.get("archived", False))
        )

    @staticmethod
    def _parse_workflow(item: dict[str, Any]) -> WorkflowDefinition:
        return WorkflowDefinition(
            id=item["id"], name=item.get("name") or "", path=item.get("path") or ""
        )

    @staticmethod
    def _parse_run(item: dict[str, Any], workflow_id: int) -> WorkflowRun:
        return WorkflowRun(
            workflow_id=item.get("workflow_id", workflow_id),
            status=item.get("status") or "",
            conclusion=item.get("conclusion"),
            html_url=item.get("html_url") or "",
            created_at=item.get("created_at") or "",
            run_number=item.get("run_number") or 0,
        )

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def verify_organization(self, org: str) -> dict[str, Any]:
        """Check the token can see *org* and return its metadata."""
        data, _ = self._get_json(self._url(f"/orgs/{org}"))
        return data

    def list_org_repositories(self, org: str) -> list[RepositoryRecord]:
        """Return every non-archived repository of *org*."""
        url = self._url(f"/orgs/{org}/repos")
        params = {"per_page": DEFAULT_PER_PAGE, "type": "all"}
        try:
            records = [self._parse_repository(org, item) for item in self._paginate(url, params)]
        except (KeyError, TypeError) as exc:
            raise GitHubAPIError(f"Malformed repository listing for {org}: {exc}") from exc
        return [record for record in records if not record.archived]

    def list_workflows(self, org: str, repo: str) -> list[WorkflowDefinition]:
        """Return the workflows registered in *org*/*repo*."""
        url = self._url(f"/repos/{org}/{repo}/actions/workflows")
        params = {"per_page": DEFAULT_PER_PAGE}
        try:
            items = self._paginate(url, params, key="workflows")
            return [self._parse_workflow(item) for item in items]
        except (KeyError, TypeError) as exc:
            raise GitHubAPIError(f"Malformed workflow listing for {org}/{repo}: {exc}") from exc

    def list_workflow_runs(
        self,
        org: str,
        repo: str,
        workflow_id: int,
        per_page: int = DEFAULT_RUNS_PER_PAGE,
    ) -> list[WorkflowRun]:
        """Return the most recent runs of a workflow, newest first."""
        url = self._url(f"/repos/{org}/{repo}/actions/workflows/{workflow_id}/runs")
        data, _ = self._get_json(url, {"per_page": per_page})
        if not isinstance(data, dict):
            raise GitHubAPIError(f"Unexpected response shape from {url}")
        runs = data.get("workflow_runs") or []
        try:
            return [self._parse_run(item, workflow_id) for item in runs]
        except (AttributeError, TypeError) as exc:
            raise GitHubAPIError(f"Malformed run listing from {url}: {exc}") from exc
