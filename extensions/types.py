"""Data types for extension discovery and resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

# Ordered path segments, e.g. ("aws", "s3", "sync")
CommandPath = tuple[str, ...]


def format_path(path: CommandPath) -> str:
    """Render a command path the way it is typed."""
    return " ".join(path)


class ScriptType(Enum):
    """Interpreter family of a discovered script."""

    JS = "js"
    TS = "ts"
    SH = "sh"
    PY = "py"
    RB = "rb"
    PHP = "php"
    VIRTUAL = "virtual"  # Directory node with metadata but no backing file


# File extension -> script type. Only these files become commands.
SCRIPT_EXTENSIONS: dict[str, ScriptType] = {
    ".js": ScriptType.JS,
    ".cjs": ScriptType.JS,
    ".ts": ScriptType.TS,
    ".sh": ScriptType.SH,
    ".py": ScriptType.PY,
    ".rb": ScriptType.RB,
    ".php": ScriptType.PHP,
}


class OptionType(Enum):
    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"


@dataclass(frozen=True)
class OptionDeclaration:
    """One option accepted by an extension."""

    name: str
    type: OptionType = OptionType.STRING
    short: str | None = None
    description: str | None = None
    suggestions: tuple[str, ...] = ()
    required: bool = False
    default: Any = None


@dataclass(frozen=True)
class MetadataDocument:
    """Sidecar metadata for a script or directory.

    Every field is optional; consumers check presence themselves.
    """

    description: str | None = None
    runner: str | None = None
    pass_context: bool = False
    aliasable: bool = False
    aliases: tuple[str, ...] = ()
    options: tuple[OptionDeclaration, ...] = ()
    source_path: str | None = None  # File the document was read from


@dataclass(frozen=True)
class ScriptDescriptor:
    """A discovered executable, or a virtual directory node."""

    script_path: str
    script_type: ScriptType
    metadata: MetadataDocument | None = None

    @property
    def is_virtual(self) -> bool:
        return self.script_type is ScriptType.VIRTUAL

    @property
    def description(self) -> str | None:
        return self.metadata.description if self.metadata else None

    @property
    def aliases(self) -> tuple[str, ...]:
        return self.metadata.aliases if self.metadata else ()

    @property
    def options(self) -> tuple[OptionDeclaration, ...]:
        return self.metadata.options if self.metadata else ()


@dataclass(frozen=True)
class ExtensionSource:
    """A descriptor at a command path, tagged with the root it came from.

    ``priority`` is the root's index in the configured list (0 is highest).
    ``alias_of`` is set on entries synthesized by alias expansion.
    """

    path: CommandPath
    descriptor: ScriptDescriptor
    source_dir: str
    priority: int
    alias_of: CommandPath | None = None

    @property
    def is_alias(self) -> bool:
        return self.alias_of is not None


@dataclass(frozen=True)
class Conflict:
    """Two or more sources claiming the same command path."""

    path: CommandPath
    winner: ExtensionSource
    losers: tuple[ExtensionSource, ...]


@dataclass
class ResolvedCommandTable:
    """Command path -> winning source, plus every recorded conflict.

    Built once per resolution pass and treated as read-only afterwards.
    """

    entries: dict[CommandPath, ExtensionSource] = field(default_factory=dict)
    conflicts: list[Conflict] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, path: object) -> bool:
        return path in self.entries

    def __iter__(self) -> Iterator[ExtensionSource]:
        for path in sorted(self.entries):
            yield self.entries[path]

    def get(self, path: CommandPath) -> ExtensionSource | None:
        return self.entries.get(tuple(path))

    def conflict_for(self, path: CommandPath) -> Conflict | None:
        path = tuple(path)
        for conflict in self.conflicts:
            if conflict.path == path:
                return conflict
        return None

    def paths(self) -> list[CommandPath]:
        return sorted(self.entries)

    def children(self, prefix: CommandPath) -> list[str]:
        """Distinct next segments below ``prefix``, sorted."""
        prefix = tuple(prefix)
        depth = len(prefix)
        names = {
            path[depth]
            for path in self.entries
            if len(path) > depth and path[:depth] == prefix
        }
        return sorted(names)

    def is_namespace(self, path: CommandPath) -> bool:
        return bool(self.children(path))

    def namespaces(self) -> list[CommandPath]:
        """Every path that has at least one command below it."""
        found = {path[:i] for path in self.entries for i in range(1, len(path))}
        return sorted(found)

    def ending_with(self, name: str) -> list[ExtensionSource]:
        return [source for source in self if source.path and source.path[-1] == name]


@dataclass
class ExecutionContext:
    """Snapshot piped to a script's stdin when passContext is set."""

    command: str
    options: dict[str, Any]
    args: list[str]
    env: dict[str, str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "command": self.command,
            "options": self.options,
            "args": self.args,
            "env": self.env,
        }
