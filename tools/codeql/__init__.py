"""CodeQL health scanning tools for codeql-health."""

from __future__ import annotations

from .classifier import matches_codeql, select_codeql_workflows
from .evaluator import evaluate_workflow
from .exclusions import load_exclusions
from .models import RepoStatus, RepositoryVerdict, ScanSummary
from .report import render_summary, write_reports
from .scanner import CodeQLHealthScanner, resolve_repository
from .summary import summarize

__all__ = [
    "CodeQLHealthScanner",
    "RepoStatus",
    "RepositoryVerdict",
    "ScanSummary",
    "evaluate_workflow",
    "load_exclusions",
    "matches_codeql",
    "render_summary",
    "resolve_repository",
    "select_codeql_workflows",
    "summarize",
    "write_reports",
]
