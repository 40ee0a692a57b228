"""Aggregation of repository verdicts into organization-wide counts."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from .models import RepoStatus, RepositoryVerdict, ScanSummary


def summarize(org: str, verdicts: Iterable[RepositoryVerdict]) -> ScanSummary:
    """Fold *verdicts* into a :class:`ScanSummary`.

    The result always satisfies ``total == scanned + excluded`` and
    ``scanned == ok + failing + no_codeql``.
    """
    counts = Counter(verdict.status for verdict in verdicts)
    total = sum(counts.values())
    excluded = counts[RepoStatus.EXCLUDED]
    return ScanSummary(
        org=org,
        total=total,
        scanned=total - excluded,
        excluded=excluded,
        ok=counts[RepoStatus.OK],
        failing=counts[RepoStatus.FAILING],
        no_codeql=counts[RepoStatus.NO_CODEQL],
    )


def failing_verdicts(verdicts: Iterable[RepositoryVerdict]) -> list[RepositoryVerdict]:
    """Return the FAILING verdicts, keeping their order."""
    return [verdict for verdict in verdicts if verdict.status is RepoStatus.FAILING]
