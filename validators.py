"""Input validation for scan settings."""

from __future__ import annotations

import re
from urllib.parse import urlparse

from tools.codeql.evaluator import MIN_RUNS_WINDOW

# GitHub logins: alphanumerics and hyphens, not starting with a hyphen.
# Legacy logins may hold repeated or trailing hyphens.
ORG_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9-]{0,38}$")
MAX_WORKERS = 32


def validate_org_name(org: str) -> str:
    """Validate a GitHub organization login.

    Args:
        org: Organization name to validate

    Returns:
        Validated organization name, stripped of surrounding whitespace

    Raises:
        ValueError: If the name is empty or not a valid GitHub login
    """
    org = (org or "").strip()
    if not org:
        raise ValueError("Organization name cannot be empty")
    if not ORG_NAME_PATTERN.match(org):
        raise ValueError(
            f"Invalid organization name: {org}. "
            "Expected up to 39 alphanumeric characters or hyphens"
        )
    return org


def validate_webhook_url(url: str | None) -> str | None:
    """Validate a notification webhook URL.

    Raises:
        ValueError: If the URL is not an absolute http(s) URL
    """
    if url is None:
        return None
    if not url:
        raise ValueError("Webhook URL cannot be empty string")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"Invalid URL scheme: {url}. Must be http:// or https://")
    if not parsed.netloc:
        raise ValueError(f"Invalid webhook URL: {url}. Missing host")
    return url


def validate_runs_window(runs_window: int) -> int:
    """Validate how many recent runs are inspected per workflow."""
    if runs_window < MIN_RUNS_WINDOW:
        raise ValueError(f"runs window must be at least {MIN_RUNS_WINDOW}, got: {runs_window}")
    if runs_window > 100:
        # GitHub caps per_page at 100
        raise ValueError(f"runs window must be at most 100, got: {runs_window}")
    return runs_window


def validate_workers(workers: int) -> int:
    """Validate the per-organization concurrency cap."""
    if workers < 1:
        raise ValueError(f"workers must be at least 1, got: {workers}")
    if workers > MAX_WORKERS:
        raise ValueError(f"workers must be at most {MAX_WORKERS}, got: {workers}")
    return workers
