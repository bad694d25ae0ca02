"""Recursive discovery of extension scripts under one root directory."""

from __future__ import annotations

import os

from utils import get_logger

from .sidecar import load_metadata
from .types import (
    SCRIPT_EXTENSIONS,
    CommandPath,
    ExtensionSource,
    ScriptDescriptor,
    ScriptType,
)

logger = get_logger(__name__)


def script_type_for(filename: str) -> ScriptType | None:
    """Script type for a file name, or None if it is not an executable extension."""
    _, ext = os.path.splitext(filename)
    return SCRIPT_EXTENSIONS.get(ext)


def scan(
    root: str,
    prefix: CommandPath = (),
    priority: int = 0,
    source_dir: str | None = None,
    _ancestors: frozenset[str] = frozenset(),
) -> list[ExtensionSource]:
    """Walk ``root`` and return every command found below it.

    Directories become namespaces; a directory with its own sidecar
    (``<dir>/<dir>.yaml``) is also emitted as a virtual command. Entries are
    visited in sorted order so an unchanged tree always scans identically.

    Args:
        root: Directory to walk
        prefix: Command path of ``root`` itself (empty for a configured root)
        priority: Rank of the configured root (0 is highest)
        source_dir: Configured root the walk started from (defaults to ``root``)

    Returns:
        Extension sources in scan order
    """
    source_dir = source_dir or root
    results: list[ExtensionSource] = []

    if not os.path.isdir(root):
        if not prefix:
            logger.warning(f"Extensions directory does not exist: {root}")
        return results

    try:
        names = sorted(os.listdir(root))
    except OSError as e:
        logger.warning(f"Could not read directory {root}: {e}")
        return results

    ancestors = _ancestors | {os.path.realpath(root)}

    for name in names:
        child = os.path.join(root, name)

        if os.path.isdir(child):
            if os.path.realpath(child) in ancestors:
                logger.warning(f"Skipping symlink loop at {child}")
                continue
            child_prefix = prefix + (name,)
            metadata = load_metadata(child)
            if metadata is not None:
                results.append(
                    ExtensionSource(
                        path=child_prefix,
                        descriptor=ScriptDescriptor(
                            script_path=os.path.abspath(child),
                            script_type=ScriptType.VIRTUAL,
                            metadata=metadata,
                        ),
                        source_dir=source_dir,
                        priority=priority,
                    )
                )
            results.extend(scan(child, child_prefix, priority, source_dir, ancestors))
            continue

        script_type = script_type_for(name)
        if script_type is None or not os.path.isfile(child):
            continue

        stem, _ = os.path.splitext(name)
        results.append(
            ExtensionSource(
                path=prefix + (stem,),
                descriptor=ScriptDescriptor(
                    script_path=os.path.abspath(child),
                    script_type=script_type,
                    metadata=load_metadata(child),
                ),
                source_dir=source_dir,
                priority=priority,
            )
        )

    return results
