"""Rendering and writing of CodeQL health reports.

Three renderings are produced from the same verdicts: a CSV table, a JSON
array, and a plain-text summary meant for humans and notifications.
"""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .models import RepositoryVerdict, ScanSummary
from .summary import failing_verdicts

CSV_FILENAME = "codeql_report.csv"
JSON_FILENAME = "codeql_report.json"
SUMMARY_FILENAME = "codeql_summary.txt"

CSV_FIELDS = [
    "org",
    "repo",
    "status",
    "codeql_workflows",
    "failing_workflows",
    "last_failure_url",
    "excluded",
]


@dataclass
class ReportResult:
    """Outcome of writing the report files."""

    written: dict[str, Path] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def render_csv(verdicts: Sequence[RepositoryVerdict]) -> str:
    """Render verdicts as CSV with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_FIELDS)
    for verdict in verdicts:
        writer.writerow(
            [
                verdict.org,
                verdict.repo,
                verdict.status.value,
                verdict.codeql_workflows,
                verdict.failing_workflows,
                verdict.last_failure_url or "",
                "true" if verdict.excluded else "false",
            ]
        )
    return buffer.getvalue()


def render_json(verdicts: Sequence[RepositoryVerdict]) -> str:
    """Render verdicts as a JSON array."""
    return json.dumps([verdict.to_dict() for verdict in verdicts], indent=2) + "\n"


def render_summary(summary: ScanSummary, verdicts: Sequence[RepositoryVerdict]) -> str:
    """Render the human-readable scan summary."""
    lines = [
        "===== CodeQL Health Summary =====",
        f"Org:              {summary.org}",
        f"Total repos:      {summary.total}",
        f"Scanned repos:    {summary.scanned}",
        f"Excluded repos:   {summary.excluded}",
        f"OK repos:         {summary.ok}",
        f"FAILING repos:    {summary.failing}",
        f"NO_CODEQL repos:  {summary.no_codeql}",
        "",
    ]

    failing = failing_verdicts(verdicts)
    if failing:
        lines.append("Failing repos:")
        for verdict in failing:
            url = verdict.last_failure_url or "n/a"
            lines.append(f"- {verdict.org}/{verdict.repo} (last_failure_url: {url})")
    else:
        lines.append("No failing CodeQL repos detected 🎉")

    return "\n".join(lines) + "\n"


def write_reports(
    output_dir: str | Path,
    summary: ScanSummary,
    verdicts: Sequence[RepositoryVerdict],
) -> ReportResult:
    """Write the CSV, JSON and summary files into *output_dir*.

    Each file is written on its own; a failure on one is recorded in the
    result and the remaining files are still attempted.

    Args:
        output_dir: Directory receiving the report files
        summary: Aggregated scan counts
        verdicts: Per-repository verdicts in report order

    Returns:
        Paths written and error messages keyed by report kind
    """
    result = ReportResult()
    directory = Path(output_dir)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        result.errors["output_dir"] = f"Could not create {directory}: {exc}"
        return result

    renderings = {
        "csv": (CSV_FILENAME, lambda: render_csv(verdicts)),
        "json": (JSON_FILENAME, lambda: render_json(verdicts)),
        "summary": (SUMMARY_FILENAME, lambda: render_summary(summary, verdicts)),
    }
    for kind, (filename, render) in renderings.items():
        path = directory / filename
        try:
            path.write_text(render(), encoding="utf-8")
        except OSError as exc:
            result.errors[kind] = f"Could not write {path}: {exc}"
        else:
            result.written[kind] = path

    return result


def write_github_outputs(output_path: str | Path, summary: ScanSummary) -> None:
    """Append scan counts as ``key=value`` lines to a GitHub Actions output file."""
    with Path(output_path).open("a", encoding="utf-8") as handle:
        for key, value in summary.as_outputs().items():
            handle.write(f"{key}={value}\n")
