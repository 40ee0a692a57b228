#!/usr/bin/env python3
"""Organization-wide CodeQL health scanner."""

from __future__ import annotations

import argparse
import os
import sys

from colorama import init

from integrations.github.github import RestAPI, resolve_token
from integrations.github.models import (
    GitHubAPIError,
    GitHubAuthError,
    GitHubNetworkError,
    GitHubNotFoundError,
)
from integrations.notify import notify_failures
from models import (
    DEFAULT_EXCLUDE_FILE,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_RUNS_WINDOW,
    DEFAULT_WORKERS,
    Colors,
    ConfigurationError,
    ScanConfig,
)
from tools.codeql.exclusions import load_exclusions
from tools.codeql.models import RepoStatus, RepositoryVerdict, ScanSummary
from tools.codeql.report import render_summary, write_github_outputs, write_reports
from tools.codeql.scanner import CodeQLHealthScanner
from tools.codeql.summary import summarize
from validators import (
    validate_org_name,
    validate_runs_window,
    validate_webhook_url,
    validate_workers,
)

# Initialize colorama for cross-platform color support
init(autoreset=True)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


class Display:
    """Terminal output helpers."""

    STATUS_COLORS = {
        RepoStatus.OK: Colors.SUCCESS,
        RepoStatus.FAILING: Colors.ERROR,
        RepoStatus.NO_CODEQL: Colors.WARNING,
        RepoStatus.EXCLUDED: Colors.INFO,
    }

    @staticmethod
    def print_banner() -> None:
        """Print a colorful banner for the tool"""
        banner = f"""
{Colors.HEADER}╔══════════════════════════════════════════════════════════════╗
║                      🛡️  CODEQL HEALTH                       ║
║           CodeQL Scanning Coverage for GitHub Orgs           ║
╚══════════════════════════════════════════════════════════════╝{Colors.RESET}
"""
        print(banner)

    @staticmethod
    def print_scan_info(config: ScanConfig, excluded_count: int) -> None:
        """Print scan parameters in a formatted way"""
        print(f"{Colors.INFO}🔍 Scan Parameters:{Colors.RESET}")
        print(f"   {Colors.INFO}•{Colors.RESET} Org: {Colors.REPO_NAME}{config.org}{Colors.RESET}")
        print(
            f"   {Colors.INFO}•{Colors.RESET} Exclude file: {Colors.WARNING}{config.exclude_file}"
            f"{Colors.RESET} ({excluded_count} repos)"
        )
        print(f"   {Colors.INFO}•{Colors.RESET} Output dir: {Colors.SUCCESS}{config.output_dir}{Colors.RESET}")
        print(f"   {Colors.INFO}•{Colors.RESET} Runs window: {Colors.WARNING}{config.runs_window}{Colors.RESET}")
        print(f"   {Colors.INFO}•{Colors.RESET} Workers: {Colors.WARNING}{config.workers}{Colors.RESET}")
        if config.webhook_url:
            print(f"   {Colors.INFO}•{Colors.RESET} Notifications: {Colors.SUCCESS}webhook{Colors.RESET}")
        print()

    @staticmethod
    def format_status(status: RepoStatus) -> str:
        """Return *status* wrapped in its colour."""
        color = Display.STATUS_COLORS.get(status, "")
        return f"{color}{status.value}{Colors.RESET}"

    @staticmethod
    def print_verdicts(verdicts: list[RepositoryVerdict]) -> None:
        """Print one line per repository that needs attention."""
        attention = [v for v in verdicts if v.status is not RepoStatus.OK and not v.excluded]
        if not attention:
            return
        print(f"{Colors.HEADER}{'─' * 80}{Colors.RESET}")
        for verdict in attention:
            name = f"{Colors.REPO_NAME}{verdict.org}/{verdict.repo}{Colors.RESET}"
            line = f"{Display.format_status(verdict.status)} {name}"
            if verdict.status is RepoStatus.FAILING:
                line += f" ({verdict.failing_workflows}/{verdict.codeql_workflows} workflows failing)"
            print(line)
            if verdict.last_failure_url:
                print(f"    {Colors.URL}🔗 {verdict.last_failure_url}{Colors.RESET}")
        print(f"{Colors.HEADER}{'─' * 80}{Colors.RESET}")
        print()

    @staticmethod
    def print_summary(summary: ScanSummary, summary_text: str) -> None:
        """Echo the plain-text summary, colouring its headline."""
        color = Colors.ERROR if summary.has_failures else Colors.SUCCESS
        print(f"{color}{summary_text.rstrip()}{Colors.RESET}")
        print()


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the command-line parser."""
    parser = argparse.ArgumentParser(
        description="Report whether every repository of a GitHub organization runs CodeQL, "
        "and whether its latest CodeQL scan succeeded.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:

    # Scan an organization (token from GITHUB_TOKEN, GH_TOKEN or `gh auth token`)
    codeql-health my-org

    # Organization from the environment
    ORG=my-org codeql-health

    # Custom skip-list and output directory
    codeql-health my-org --exclude-file config/exclude_repos.txt --output-dir reports

    # Post the summary to a chat webhook when repositories are failing
    codeql-health my-org --webhook-url https://hooks.slack.com/services/...
        """,
    )

    parser.add_argument(
        "org",
        nargs="?",
        default=None,
        help="GitHub organization to scan (also can be set via ORG env variable)",
    )
    parser.add_argument(
        "--org",
        dest="org_option",
        default=None,
        help="GitHub organization to scan (alternative to the positional argument)",
    )
    parser.add_argument(
        "--github-token",
        help="GitHub token (defaults to GITHUB_TOKEN, GH_TOKEN, then `gh auth token`)",
    )
    parser.add_argument(
        "--exclude-file",
        default=None,
        help=f"Repository skip-list, one name per line (default: {DEFAULT_EXCLUDE_FILE})",
    )
    parser.add_argument(
        "--output-dir",
        "-o",
        default=None,
        help=f"Directory for the CSV, JSON and summary reports (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--runs-window",
        type=int,
        default=DEFAULT_RUNS_WINDOW,
        help=f"Recent runs inspected per CodeQL workflow (default: {DEFAULT_RUNS_WINDOW}, min 10)",
    )
    parser.add_argument(
        "--workers",
        "-w",
        type=int,
        default=None,
        help=f"Repositories scanned in parallel (default: {DEFAULT_WORKERS}, 1 = sequential)",
    )
    parser.add_argument(
        "--webhook-url",
        default=None,
        help="Chat webhook notified when failing repositories are found "
        "(also can be set via NOTIFY_WEBHOOK_URL env variable)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Print the verdict of every CodeQL workflow",
    )
    return parser


def build_config_from_args(args: argparse.Namespace) -> ScanConfig:
    """Build the scan configuration from parsed arguments and the environment.

    Raises:
        ConfigurationError: If the organization or token is missing, or a
            setting is invalid
    """
    org = args.org_option or args.org or os.getenv("ORG", "")
    if not org:
        raise ConfigurationError(
            "GitHub org not specified. Set ORG env var or pass it as first argument."
        )

    token = resolve_token(args.github_token)
    if not token:
        raise ConfigurationError(
            "No GitHub token found. Set GITHUB_TOKEN / GH_TOKEN, pass --github-token, "
            "or run `gh auth login`."
        )

    webhook_url = args.webhook_url or os.getenv("NOTIFY_WEBHOOK_URL") or None

    try:
        workers = args.workers
        if workers is None:
            workers = int(os.getenv("SCAN_WORKERS") or DEFAULT_WORKERS)
        return ScanConfig(
            org=validate_org_name(org),
            token=token,
            exclude_file=args.exclude_file or os.getenv("EXCLUDE_FILE") or DEFAULT_EXCLUDE_FILE,
            output_dir=args.output_dir or os.getenv("OUTPUT_DIR") or DEFAULT_OUTPUT_DIR,
            runs_window=validate_runs_window(args.runs_window),
            workers=validate_workers(workers),
            webhook_url=validate_webhook_url(webhook_url),
            github_output=os.getenv("GITHUB_OUTPUT") or None,
            verbose=args.verbose,
        )
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


def run_scan(config: ScanConfig) -> int:
    """Scan the configured organization and publish the results."""
    try:
        client = RestAPI(token=config.token)
        client.verify_organization(config.org)
    except GitHubAuthError as exc:
        print(f"{Colors.ERROR}❌ Error: GitHub authentication failed: {exc}{Colors.RESET}")
        return EXIT_ERROR
    except GitHubNotFoundError:
        print(f"{Colors.ERROR}❌ Error: organization '{config.org}' not found or not visible.{Colors.RESET}")
        return EXIT_ERROR
    except GitHubNetworkError as exc:
        print(f"{Colors.ERROR}❌ Error: cannot reach the GitHub API: {exc}{Colors.RESET}")
        return EXIT_ERROR
    except GitHubAPIError as exc:
        print(f"{Colors.ERROR}❌ Error: {exc}{Colors.RESET}")
        return EXIT_ERROR

    if not os.path.isfile(config.exclude_file):
        print(f"{Colors.INFO}ℹ️  No exclude file at {config.exclude_file}; scanning every repository.{Colors.RESET}")
    excluded = load_exclusions(config.exclude_file)
    Display.print_scan_info(config, len(excluded))

    print(f"{Colors.INFO}📦 Fetching repositories for org '{config.org}'...{Colors.RESET}")
    try:
        repositories = client.list_org_repositories(config.org)
    except GitHubAPIError as exc:
        print(f"{Colors.ERROR}❌ Error: could not list repositories of '{config.org}': {exc}{Colors.RESET}")
        return EXIT_ERROR

    if not repositories:
        print(f"{Colors.WARNING}⚠️  No repositories found for org '{config.org}'.{Colors.RESET}")
    else:
        print(f"{Colors.SUCCESS}✓ Found {len(repositories)} active repositories{Colors.RESET}")
    print()

    scanner = CodeQLHealthScanner(
        client,
        excluded=excluded,
        runs_window=config.runs_window,
        max_workers=config.workers,
        colors=Colors,
        verbose=config.verbose,
    )
    verdicts = scanner.scan(repositories)
    summary = summarize(config.org, verdicts)
    summary_text = render_summary(summary, verdicts)

    print()
    Display.print_verdicts(verdicts)
    Display.print_summary(summary, summary_text)

    report = write_reports(config.output_dir, summary, verdicts)
    for path in report.written.values():
        print(f"{Colors.INFO}📄 Wrote {path}{Colors.RESET}")
    for message in report.errors.values():
        print(f"{Colors.ERROR}❌ {message}{Colors.RESET}")

    if config.github_output:
        try:
            write_github_outputs(config.github_output, summary)
        except OSError as exc:
            print(f"{Colors.ERROR}❌ Could not write GitHub Actions outputs: {exc}{Colors.RESET}")

    if config.webhook_url and summary.has_failures:
        result = notify_failures(config.webhook_url, summary, summary_text)
        if result.sent:
            print(f"{Colors.SUCCESS}📣 Notification sent ({result.detail}){Colors.RESET}")
        else:
            print(f"{Colors.WARNING}⚠️  Notification not sent: {result.detail}{Colors.RESET}")

    return EXIT_OK


def main() -> int:
    """Entry point for the ``codeql-health`` command."""
    parser = create_argument_parser()
    args = parser.parse_args()

    try:
        config = build_config_from_args(args)
    except ConfigurationError as exc:
        print(f"{Colors.ERROR}❌ Error: {exc}{Colors.RESET}")
        return EXIT_ERROR

    Display.print_banner()

    try:
        return run_scan(config)
    except KeyboardInterrupt:
        print(f"\n{Colors.WARNING}⚠️  Scan interrupted; partial results discarded.{Colors.RESET}")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
