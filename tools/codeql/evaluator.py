"""Evaluation of a CodeQL workflow's recent run history."""

from __future__ import annotations

from collections.abc import Iterable

from .models import (
    SUCCESS_CONCLUSION,
    VerdictReason,
    WorkflowDefinition,
    WorkflowRun,
    WorkflowVerdict,
)

# Minimum number of recent runs worth inspecting
MIN_RUNS_WINDOW = 10


def latest_completed_run(runs: Iterable[WorkflowRun]) -> WorkflowRun | None:
    """Return the first completed run of a most-recent-first history.

    Newer queued or in-progress runs are skipped.
    """
    for run in runs:
        if run.is_completed:
            return run
    return None


def evaluate_workflow(
    workflow: WorkflowDefinition,
    runs: list[WorkflowRun] | None,
) -> WorkflowVerdict:
    """Decide whether *workflow* is failing.

    Args:
        workflow: The CodeQL workflow being evaluated
        runs: Its recent runs, most recent first. ``None`` or an empty list
            means the history could not be fetched or holds nothing.

    Returns:
        The workflow verdict. A workflow is healthy only when its latest
        completed run concluded with ``success``; a missing history or a
        history without any completed run counts as failing.
    """
    if not runs:
        return WorkflowVerdict(workflow=workflow, failing=True, reason=VerdictReason.FETCH_FAILED)

    last_run = latest_completed_run(runs)
    if last_run is None:
        return WorkflowVerdict(
            workflow=workflow, failing=True, reason=VerdictReason.NO_COMPLETED_RUN
        )

    if last_run.conclusion != SUCCESS_CONCLUSION:
        return WorkflowVerdict(
            workflow=workflow,
            failing=True,
            reason=VerdictReason.UNSUCCESSFUL_CONCLUSION,
            failure_url=last_run.html_url or None,
        )

    return WorkflowVerdict(workflow=workflow, failing=False, reason=VerdictReason.PASSED)
