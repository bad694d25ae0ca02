"""Build the resolved command table from the configured roots."""

from __future__ import annotations

from typing import Sequence

from utils import get_logger

from .aliases import expand_aliases
from .resolver import merge_roots
from .types import ResolvedCommandTable

logger = get_logger(__name__)


class ExtensionLoader:
    """Scan, merge and alias-expand extension roots, cached per process."""

    def __init__(self, roots: Sequence[str] | None = None) -> None:
        """Initialize the loader.

        Args:
            roots: Extension directories, highest priority first
                   (default: Config.EXTENSIONS_DIRS)
        """
        if roots is None:
            from config import Config

            roots = Config.EXTENSIONS_DIRS
        self.roots = list(roots)
        self._table: ResolvedCommandTable | None = None

    def load(self) -> ResolvedCommandTable:
        """Return the resolved table, scanning the roots on first use."""
        if self._table is None:
            table = expand_aliases(merge_roots(self.roots))
            logger.debug(
                f"Resolved {len(table)} commands from {len(self.roots)} roots "
                f"({len(table.conflicts)} conflicts)"
            )
            self._table = table
        return self._table

    def invalidate_cache(self) -> None:
        self._table = None
