"""Selection of CodeQL workflows among a repository's workflows."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from .models import WorkflowDefinition

CODEQL_MARKER = "codeql"

WorkflowPredicate = Callable[[WorkflowDefinition], bool]


def matches_codeql(workflow: WorkflowDefinition) -> bool:
    """Return True when the workflow name or path mentions CodeQL.

    Matching is a case-insensitive substring test, so both
    ``"Security Scan (CodeQL-Extended)"`` and ``ci/codeql/build.yml`` match.
    """
    name = (workflow.name or "").lower()
    path = (workflow.path or "").lower()
    return CODEQL_MARKER in name or CODEQL_MARKER in path


def select_codeql_workflows(
    workflows: Iterable[WorkflowDefinition] | None,
    predicate: WorkflowPredicate = matches_codeql,
) -> list[WorkflowDefinition]:
    """Return the CodeQL workflows in their original listing order."""
    if not workflows:
        return []
    return [workflow for workflow in workflows if predicate(workflow)]
