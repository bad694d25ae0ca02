"""Wrapper scripts that share a name with a system binary.

A wrapper for the ``git`` namespace is installed as ``git`` in the wrappers
directory. When called with one of the namespace's custom subcommands (or
with no arguments) it re-enters rc; otherwise it execs the next ``git`` on
PATH, skipping its own directory.
"""

from __future__ import annotations

import asyncio
import os
import shlex
from dataclasses import dataclass
from typing import Sequence

import aiofiles
import aiofiles.os
import yaml

from utils import get_logger

from .errors import ConfigurationError
from .types import CommandPath, ResolvedCommandTable, format_path

logger = get_logger(__name__)

WRAPPER_TEMPLATE = """\
#!/bin/sh
# Generated by rc for the '{namespace}' namespace. Do not edit.
# Regenerate with: rc wrap {namespace}
RC_BIN={self_binary}

if [ "$#" -eq 0 ]; then
    exec "$RC_BIN" {namespace_args}
fi

case "$1" in
    {patterns})
        exec "$RC_BIN" {namespace_args} "$@"
        ;;
esac

rc_self_dir=$(cd "$(dirname "$0")" && pwd -P)
rc_ifs=$IFS
IFS=:
for rc_dir in $PATH; do
    IFS=$rc_ifs
    [ -n "$rc_dir" ] || rc_dir=.
    rc_real_dir=$(cd "$rc_dir" 2>/dev/null && pwd -P) || continue
    [ "$rc_real_dir" = "$rc_self_dir" ] && continue
    if [ -x "$rc_dir"/{name} ] && [ ! -d "$rc_dir"/{name} ]; then
        exec "$rc_dir"/{name} "$@"
    fi
done
IFS=$rc_ifs

printf '%s: unknown subcommand "%s" and no system %s found on PATH\\n' {name} "$1" {name} >&2
printf '%s\\n' 'Custom subcommands:' >&2
printf '  %s\\n' {subcommands} >&2
exit 127
"""


@dataclass(frozen=True)
class WrapperArtifact:
    """A rendered wrapper and where it goes on disk."""

    name: str
    namespace: CommandPath
    subcommands: tuple[str, ...]
    script_path: str
    metadata_path: str
    script: str
    metadata: str


def wrapper_subcommands(namespace: CommandPath, table: ResolvedCommandTable) -> list[str]:
    """Custom subcommand names directly below ``namespace``, sorted."""
    return table.children(namespace)


def aliasable_namespaces(table: ResolvedCommandTable) -> list[CommandPath]:
    """Namespaces whose own metadata offers wrapper generation."""
    found = []
    for path in table.namespaces():
        source = table.get(path)
        metadata = source.descriptor.metadata if source else None
        if metadata is not None and metadata.aliasable:
            found.append(path)
    return found


def render_wrapper(namespace: CommandPath, subcommands: Sequence[str], self_binary: str) -> str:
    """Render the wrapper script text. Same inputs always give the same bytes."""
    quoted_subcommands = [shlex.quote(name) for name in sorted(set(subcommands))]
    return WRAPPER_TEMPLATE.format(
        namespace=format_path(namespace),
        self_binary=shlex.quote(self_binary),
        namespace_args=" ".join(shlex.quote(part) for part in namespace),
        patterns="|".join(quoted_subcommands),
        name=shlex.quote(namespace[-1]),
        subcommands=" ".join(quoted_subcommands),
    )


def render_wrapper_metadata(namespace: CommandPath) -> str:
    data = {
        "description": (
            f"Routes '{format_path(namespace)}' subcommands to rc and everything "
            f"else to the system {namespace[-1]}"
        ),
        "aliasable": True,
    }
    return yaml.safe_dump(data, sort_keys=True, default_flow_style=False)


def find_real_binary(
    name: str,
    path_env: str | None = None,
    exclude_dir: str | None = None,
) -> str | None:
    """Locate ``name`` on PATH the way the wrapper does, skipping ``exclude_dir``."""
    if path_env is None:
        path_env = os.environ.get("PATH", "")
    excluded = os.path.realpath(exclude_dir) if exclude_dir else None

    for directory in path_env.split(os.pathsep):
        directory = directory or "."
        if not os.path.isdir(directory):
            continue
        if excluded is not None and os.path.realpath(directory) == excluded:
            continue
        candidate = os.path.join(directory, name)
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
    return None


class WrapperSynthesizer:
    """Render and install wrapper artifacts into one directory."""

    def __init__(self, wrappers_dir: str) -> None:
        self.wrappers_dir = wrappers_dir

    def plan(
        self,
        namespace: CommandPath,
        table: ResolvedCommandTable,
        self_binary: str,
    ) -> WrapperArtifact:
        """Render the artifact for ``namespace`` without touching the disk.

        Raises:
            ConfigurationError: If the namespace has no commands below it
        """
        namespace = tuple(namespace)
        subcommands = wrapper_subcommands(namespace, table) if namespace else []
        if not subcommands:
            available = [format_path(path) for path in table.namespaces()]
            target = format_path(namespace) or "(empty)"
            source = table.get(namespace)
            if source is not None and not source.descriptor.is_virtual:
                message = f"'{target}' is a command, not a namespace; nothing to wrap"
            else:
                message = f"Namespace '{target}' does not resolve to any commands"
            raise ConfigurationError(message, available)

        name = namespace[-1]
        return WrapperArtifact(
            name=name,
            namespace=namespace,
            subcommands=tuple(subcommands),
            script_path=os.path.join(self.wrappers_dir, name),
            metadata_path=os.path.join(self.wrappers_dir, f"{name}.yaml"),
            script=render_wrapper(namespace, subcommands, self_binary),
            metadata=render_wrapper_metadata(namespace),
        )

    async def synthesize(
        self,
        namespace: CommandPath,
        table: ResolvedCommandTable,
        self_binary: str,
    ) -> WrapperArtifact:
        """Render the wrapper for ``namespace`` and write it, executable, to disk."""
        artifact = self.plan(namespace, table, self_binary)
        await aiofiles.os.makedirs(self.wrappers_dir, exist_ok=True)
        await self._write(artifact.script_path, artifact.script, mode=0o755)
        await self._write(artifact.metadata_path, artifact.metadata, mode=0o644)
        logger.info(
            f"Wrote wrapper {artifact.script_path} for '{format_path(artifact.namespace)}' "
            f"({len(artifact.subcommands)} subcommands)"
        )
        return artifact

    async def _write(self, path: str, content: str, mode: int) -> None:
        tmp_path = f"{path}.tmp"
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as handle:
            await handle.write(content)
        await asyncio.to_thread(os.chmod, tmp_path, mode)
        await asyncio.to_thread(os.replace, tmp_path, path)

    def pass_through_target(
        self, artifact: WrapperArtifact, path_env: str | None = None
    ) -> str | None:
        """The real binary the installed wrapper would exec for unknown subcommands."""
        return find_real_binary(artifact.name, path_env, exclude_dir=self.wrappers_dir)
