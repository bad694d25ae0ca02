"""Merge discovery results from several roots into one command table.

Collisions are never dropped: the winner goes into the table and every
other claimant is kept in a ``Conflict`` record. The tie-break is a total
order: root priority first, then real scripts before aliases, then scan
order (Python's sort is stable, so input order decides the rest).
"""

from __future__ import annotations

from typing import Iterable, Sequence

from utils import get_logger

from .scanner import scan
from .types import CommandPath, Conflict, ExtensionSource, ResolvedCommandTable, format_path

logger = get_logger(__name__)


def precedence(source: ExtensionSource) -> tuple[int, bool]:
    """Sort key: lower sorts first and wins."""
    return (source.priority, source.is_alias)


def pick_winner(
    claimants: Sequence[ExtensionSource],
) -> tuple[ExtensionSource, list[ExtensionSource]]:
    """Split claimants of one path into (winner, losers)."""
    ranked = sorted(claimants, key=precedence)
    return ranked[0], ranked[1:]


def log_conflict(conflict: Conflict) -> None:
    shadowed = ", ".join(loser.descriptor.script_path for loser in conflict.losers)
    logger.info(
        f"Conflict on '{format_path(conflict.path)}': using "
        f"{conflict.winner.descriptor.script_path}, shadowing {shadowed}"
    )


def resolve_sources(sources: Iterable[ExtensionSource]) -> ResolvedCommandTable:
    """Group sources by command path and pick one winner per path.

    Table entries keep the order in which each path was first seen.
    """
    groups: dict[CommandPath, list[ExtensionSource]] = {}
    for source in sources:
        groups.setdefault(source.path, []).append(source)

    table = ResolvedCommandTable()
    for path, members in groups.items():
        winner, losers = pick_winner(members)
        table.entries[path] = winner
        if losers:
            conflict = Conflict(path=path, winner=winner, losers=tuple(losers))
            table.conflicts.append(conflict)
            log_conflict(conflict)
    return table


def scan_roots(roots: Sequence[str]) -> list[ExtensionSource]:
    """Scan every root, tagging results with the root's index as priority."""
    sources: list[ExtensionSource] = []
    for priority, root in enumerate(roots):
        found = scan(root, priority=priority)
        logger.debug(f"Scanned {root} (priority {priority}): {len(found)} entries")
        sources.extend(found)
    return sources


def merge_roots(roots: Sequence[str]) -> ResolvedCommandTable:
    """Scan and merge an ordered list of roots (index 0 is highest priority)."""
    return resolve_sources(scan_roots(roots))


def match_command(
    table: ResolvedCommandTable, words: Sequence[str]
) -> tuple[ExtensionSource | None, int]:
    """Find the longest command path that prefixes ``words``.

    Returns:
        (source, number of words consumed). When no table entry matches but
        the words name a namespace, returns (None, depth of that namespace).
    """
    words = list(words)
    for length in range(len(words), 0, -1):
        source = table.get(tuple(words[:length]))
        if source is not None:
            return source, length

    depth = 0
    for length in range(1, len(words) + 1):
        if table.is_namespace(tuple(words[:length])):
            depth = length
        else:
            break
    return None, depth
