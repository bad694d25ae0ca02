"""Sidecar metadata loading for scripts and directories.

A script ``gen/uuid.sh`` may carry ``gen/uuid.yaml`` or ``gen/uuid.json``.
A directory ``aws/`` may carry ``aws/aws.yaml`` or ``aws/aws.json``.
YAML is tried first; the first existing file wins.
"""

from __future__ import annotations

import json
import os
from typing import Any

import yaml

from utils import get_logger

from .types import MetadataDocument, OptionDeclaration, OptionType

logger = get_logger(__name__)

# Tried in order; first existing file wins
SIDECAR_EXTENSIONS = (".yaml", ".json")


def _coerce_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        v = value.strip().lower()
        if v in {"true", "1", "yes", "y", "on"}:
            return True
        if v in {"false", "0", "no", "n", "off"}:
            return False
    return default


def _coerce_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_str_list(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return ()
    items = []
    for item in value:
        text = _coerce_str(item)
        if text and text not in items:
            items.append(text)
    return tuple(items)


def _parse_option(raw: Any, config_path: str) -> OptionDeclaration | None:
    if not isinstance(raw, dict):
        logger.warning(f"Ignoring non-mapping option in {config_path}: {raw!r}")
        return None

    name = _coerce_str(raw.get("name"))
    if not name:
        logger.warning(f"Ignoring option without a name in {config_path}")
        return None

    type_name = str(raw.get("type", "string")).strip().lower()
    try:
        option_type = OptionType(type_name)
    except ValueError:
        logger.warning(
            f"Unknown type '{type_name}' for option '{name}' in {config_path}, using string"
        )
        option_type = OptionType.STRING

    short = _coerce_str(raw.get("short"))
    if short is not None and len(short) != 1:
        logger.warning(f"Ignoring short form '{short}' for option '{name}' in {config_path}")
        short = None

    return OptionDeclaration(
        name=name,
        type=option_type,
        short=short,
        description=_coerce_str(raw.get("description")),
        suggestions=_coerce_str_list(raw.get("suggestions")),
        required=_coerce_bool(raw.get("required"), False),
        default=raw.get("default"),
    )


def _parse_options(raw: Any, config_path: str) -> tuple[OptionDeclaration, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        logger.warning(f"'options' must be a list in {config_path}")
        return ()

    options: list[OptionDeclaration] = []
    seen: set[str] = set()
    for item in raw:
        option = _parse_option(item, config_path)
        if option is None:
            continue
        if option.name in seen:
            logger.warning(f"Duplicate option '{option.name}' in {config_path}, keeping the first")
            continue
        seen.add(option.name)
        options.append(option)
    return tuple(options)


def parse_metadata(data: Any, config_path: str) -> MetadataDocument | None:
    """Build a MetadataDocument from a decoded YAML/JSON value."""
    if data is None:
        # Empty file: present but carries nothing
        return MetadataDocument(source_path=config_path)
    if not isinstance(data, dict):
        logger.warning(f"Could not parse config file {config_path}: expected a mapping")
        return None

    pass_context = data.get("passContext", data.get("pass_context"))
    return MetadataDocument(
        description=_coerce_str(data.get("description")),
        runner=_coerce_str(data.get("runner")),
        pass_context=_coerce_bool(pass_context, False),
        aliasable=_coerce_bool(data.get("aliasable"), False),
        aliases=_coerce_str_list(data.get("aliases")),
        options=_parse_options(data.get("options"), config_path),
        source_path=config_path,
    )


def _read_document(config_path: str) -> Any:
    with open(config_path, encoding="utf-8") as f:
        content = f.read()
    if config_path.endswith(".json"):
        return json.loads(content)
    return yaml.safe_load(content)


def candidate_paths(path: str) -> list[str]:
    """Sidecar locations for a script file or a directory, in priority order."""
    if os.path.isdir(path):
        name = os.path.basename(os.path.normpath(path))
        return [os.path.join(path, f"{name}{ext}") for ext in SIDECAR_EXTENSIONS]
    stem, _ = os.path.splitext(path)
    return [f"{stem}{ext}" for ext in SIDECAR_EXTENSIONS]


def load_metadata(path: str) -> MetadataDocument | None:
    """Load the metadata document for a script file or a directory.

    Never raises. A missing sidecar returns None silently; a malformed one
    returns None and logs a warning.
    """
    for config_path in candidate_paths(path):
        if not os.path.isfile(config_path):
            continue
        try:
            data = _read_document(config_path)
        except (OSError, UnicodeDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
            logger.warning(f"Could not parse config file {config_path}: {e}")
            return None
        return parse_metadata(data, config_path)
    return None
