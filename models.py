"""
Shared models, constants and configuration for codeql-health.

This module contains the terminal colour palette, default values and the
scan configuration used by the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass

from colorama import Fore, Style

# =============================================================================
# Constants
# =============================================================================

DEFAULT_EXCLUDE_FILE = "config/exclude_repos.txt"
DEFAULT_OUTPUT_DIR = "output"
DEFAULT_RUNS_WINDOW = 10
DEFAULT_WORKERS = 4


# =============================================================================
# Colors
# =============================================================================


class Colors:
    """Color and styling utilities for terminal output."""

    HEADER = Fore.CYAN + Style.BRIGHT
    SUCCESS = Fore.GREEN + Style.BRIGHT
    WARNING = Fore.YELLOW + Style.BRIGHT
    ERROR = Fore.RED + Style.BRIGHT
    INFO = Fore.BLUE + Style.BRIGHT
    PROGRESS = Fore.CYAN
    REPO_NAME = Fore.MAGENTA + Style.BRIGHT
    URL = Fore.BLUE + Style.DIM
    RESET = Style.RESET_ALL


# =============================================================================
# Exceptions
# =============================================================================


class ConfigurationError(Exception):
    """Raised when the scan cannot start because of missing or invalid settings."""


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class ScanConfig:
    """Configuration for one organization scan."""

    org: str
    token: str
    exclude_file: str = DEFAULT_EXCLUDE_FILE
    output_dir: str = DEFAULT_OUTPUT_DIR
    runs_window: int = DEFAULT_RUNS_WINDOW
    workers: int = DEFAULT_WORKERS
    webhook_url: str | None = None
    github_output: str | None = None
    verbose: bool = False
