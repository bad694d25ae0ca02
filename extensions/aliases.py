"""Alias expansion.

An alias replaces the last segment of a command path, so ``npm show-scripts``
with ``aliases: [ss]`` also answers to ``npm ss``. The alias entry shares the
original descriptor. Aliases go through the same collision rule as real
paths; a real script beats an alias from the same root.
"""

from __future__ import annotations

from utils import get_logger

from .resolver import log_conflict, pick_winner
from .types import CommandPath, Conflict, ExtensionSource, ResolvedCommandTable

logger = get_logger(__name__)


def alias_sources(table: ResolvedCommandTable) -> dict[CommandPath, list[ExtensionSource]]:
    """Synthesize alias entries for every winning entry that declares aliases.

    Keyed by alias path; each list is in declaration (scan) order.
    """
    candidates: dict[CommandPath, list[ExtensionSource]] = {}
    for source in list(table.entries.values()):
        if source.is_alias or not source.path:
            continue
        for alias in source.descriptor.aliases:
            alias_path = source.path[:-1] + (alias,)
            if alias_path == source.path:
                continue
            candidates.setdefault(alias_path, []).append(
                ExtensionSource(
                    path=alias_path,
                    descriptor=source.descriptor,
                    source_dir=source.source_dir,
                    priority=source.priority,
                    alias_of=source.path,
                )
            )
    return candidates


def expand_aliases(table: ResolvedCommandTable) -> ResolvedCommandTable:
    """Return a new table with alias paths added and their collisions recorded."""
    candidates = alias_sources(table)
    if not candidates:
        return table

    entries = dict(table.entries)
    conflicts: dict[CommandPath, Conflict] = {c.path: c for c in table.conflicts}

    for alias_path, aliases in candidates.items():
        claimants: list[ExtensionSource] = []
        existing = entries.get(alias_path)
        if existing is not None:
            claimants.append(existing)
            prior = conflicts.get(alias_path)
            if prior is not None:
                claimants.extend(prior.losers)
        claimants.extend(aliases)

        winner, losers = pick_winner(claimants)
        entries[alias_path] = winner
        if losers:
            conflict = Conflict(path=alias_path, winner=winner, losers=tuple(losers))
            conflicts[alias_path] = conflict
            log_conflict(conflict)
        else:
            logger.debug(f"Alias {' '.join(alias_path)} -> {' '.join(winner.alias_of or ())}")

    return ResolvedCommandTable(entries=entries, conflicts=list(conflicts.values()))
