"""
Models and constants for the GitHub integration.

This module contains exception classes, constants, and configuration
values used by the GitHub REST client.
"""

from __future__ import annotations

# =============================================================================
# Constants
# =============================================================================

GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_API_ACCEPT = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"

# Timeouts (seconds)
DEFAULT_TIMEOUT = 30

# Retry configuration
MAX_RETRIES = 3
RETRY_DELAY = 2.0  # Base delay between retries (seconds)
RETRY_BACKOFF = 2  # Exponential backoff multiplier

# Upper bound on a single rate-limit wait (seconds)
MAX_RATE_LIMIT_WAIT = 300.0
# Fallback wait when a throttled response carries no reset hint (seconds)
RATE_LIMIT_FALLBACK_DELAY = 60.0

# Pagination defaults
DEFAULT_PER_PAGE = 100
DEFAULT_RUNS_PER_PAGE = 10


# =============================================================================
# Exceptions
# =============================================================================


class GitHubAPIError(Exception):
    """Raised when a GitHub API request fails."""


class GitHubNetworkError(GitHubAPIError):
    """Raised when a network error occurs (DNS, connection, timeout)."""


class GitHubRateLimitError(GitHubAPIError):
    """Raised when GitHub API rate limit is exceeded."""


class GitHubAuthError(GitHubAPIError):
    """Raised when the token is missing, invalid or lacks access."""


class GitHubNotFoundError(GitHubAPIError):
    """Raised when the requested organization or resource does not exist."""
