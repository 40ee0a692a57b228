"""Repository skip-list handling."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

COMMENT_MARKER = "#"


def parse_exclusions(lines: Iterable[str]) -> frozenset[str]:
    """Parse skip-list lines into a set of repository names.

    Everything after a ``#`` is a comment. Names are whitespace-trimmed and
    blank lines are ignored.

    Args:
        lines: Raw lines of the skip-list

    Returns:
        Set of excluded repository names
    """
    names = set()
    for line in lines:
        name = line.split(COMMENT_MARKER, 1)[0].strip()
        if name:
            names.add(name)
    return frozenset(names)


def load_exclusions(path: str | Path | None) -> frozenset[str]:
    """Load the skip-list from *path*.

    A missing file means no repository is excluded.
    """
    if path is None:
        return frozenset()
    exclude_path = Path(path)
    if not exclude_path.is_file():
        return frozenset()
    with exclude_path.open(encoding="utf-8") as handle:
        return parse_exclusions(handle)


def is_excluded(repo_name: str, excluded: frozenset[str] | set[str]) -> bool:
    """Return True when *repo_name* is on the skip-list."""
    return repo_name in excluded
