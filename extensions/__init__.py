"""Extension resolution engine for rc.

Discovers scripts under the configured roots, merges them into one command
table with recorded conflicts, expands aliases, runs commands and writes
wrapper scripts.
"""

import logging

from .aliases import expand_aliases
from .errors import ConfigurationError, ExecutionError, ExtensionError, UsageError
from .executor import CommandExecutor
from .loader import ExtensionLoader
from .resolver import match_command, merge_roots, resolve_sources
from .scanner import scan
from .sidecar import load_metadata
from .types import (
    CommandPath,
    Conflict,
    ExtensionSource,
    MetadataDocument,
    OptionDeclaration,
    OptionType,
    ResolvedCommandTable,
    ScriptDescriptor,
    ScriptType,
)
from .wrapper import WrapperArtifact, WrapperSynthesizer

# Discovery warnings stay silent until setup_logger() installs handlers
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CommandExecutor",
    "CommandPath",
    "ConfigurationError",
    "Conflict",
    "ExecutionError",
    "ExtensionError",
    "ExtensionLoader",
    "ExtensionSource",
    "MetadataDocument",
    "OptionDeclaration",
    "OptionType",
    "ResolvedCommandTable",
    "ScriptDescriptor",
    "ScriptType",
    "UsageError",
    "WrapperArtifact",
    "WrapperSynthesizer",
    "expand_aliases",
    "load_metadata",
    "match_command",
    "merge_roots",
    "resolve_sources",
    "scan",
]
