"""Configuration management for rc."""

import os

from utils.runtime import get_config_file, get_extensions_dir, get_wrappers_dir

_CONFIG_FILE = get_config_file()

# Default configuration template
_DEFAULT_CONFIG = """\
# rc Configuration

# Directories scanned for extensions, separated by "{sep}".
# The first directory has the highest priority when two of them
# provide the same command.
EXTENSIONS_DIRS={extensions_dir}

# Where `rc wrap` writes generated wrapper scripts. Put this directory
# early on your PATH so the wrappers shadow the real binaries.
WRAPPERS_DIR={wrappers_dir}

# Show discovery warnings (malformed sidecar files, missing directories)
# even without --verbose
ENABLE_LOGGING=false

# Level for the --verbose log file
LOG_LEVEL=DEBUG

# Terminal theme: dark or light
THEME=dark
"""

_THEMES = ("dark", "light")


def _load_config(path: str) -> dict[str, str]:
    """Parse a KEY=VALUE config file, skipping comments and blank lines."""
    cfg: dict[str, str] = {}
    if not os.path.isfile(path):
        return cfg
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            # Strip inline comments (# ...) from the value
            if "#" in value:
                value = value[: value.index("#")]
            cfg[key.strip()] = value.strip()
    return cfg


def _expand(path: str) -> str:
    return os.path.expandvars(os.path.expanduser(path))


def _split_dirs(value: str) -> list[str]:
    return [_expand(part.strip()) for part in value.split(os.pathsep) if part.strip()]


def _resolve_extensions_dirs(cfg: dict[str, str]) -> list[str]:
    dirs = cfg.get("EXTENSIONS_DIRS")
    legacy = cfg.get("EXTENSIONS_DIR")
    if dirs:
        if legacy:
            # Logged lazily: logging is configured after import.
            _DEPRECATIONS.append(
                "Both EXTENSIONS_DIR and EXTENSIONS_DIRS are set. "
                "Using EXTENSIONS_DIRS and ignoring EXTENSIONS_DIR."
            )
        return _split_dirs(dirs)
    if legacy:
        return [_expand(legacy)]
    return [get_extensions_dir()]


def ensure_config() -> bool:
    """Write the default config file if it does not exist.

    Returns:
        True if a new file was written
    """
    if os.path.exists(_CONFIG_FILE):
        return False
    os.makedirs(os.path.dirname(_CONFIG_FILE), exist_ok=True)
    with open(_CONFIG_FILE, "w", encoding="utf-8") as f:
        f.write(
            _DEFAULT_CONFIG.format(
                sep=os.pathsep,
                extensions_dir=get_extensions_dir(),
                wrappers_dir=get_wrappers_dir(),
            )
        )
    return True


_DEPRECATIONS: list[str] = []
_cfg = _load_config(_CONFIG_FILE)


class Config:
    """Configuration for rc.

    All configuration is centralized here. Access config values directly via Config.XXX.
    """

    CONFIG_FILE = _CONFIG_FILE

    # Extension roots, highest priority first
    EXTENSIONS_DIRS = _resolve_extensions_dirs(_cfg)

    WRAPPERS_DIR = _expand(_cfg.get("WRAPPERS_DIR") or get_wrappers_dir())

    # Logging Configuration
    # Note: file logging is controlled via --verbose; ENABLE_LOGGING only
    # surfaces discovery warnings on the console.
    ENABLE_LOGGING = _cfg.get("ENABLE_LOGGING", "false").lower() == "true"
    LOG_LEVEL = _cfg.get("LOG_LEVEL", "DEBUG").upper()

    THEME = _cfg.get("THEME", "dark").lower()

    DEPRECATIONS = list(_DEPRECATIONS)

    @classmethod
    def validate(cls):
        """Validate configuration.

        Raises:
            ValueError: If a value is out of range
        """
        if cls.THEME not in _THEMES:
            raise ValueError(
                f"THEME must be one of {', '.join(_THEMES)} (got '{cls.THEME}'). "
                f"Please fix it in {cls.CONFIG_FILE}."
            )
        if not cls.EXTENSIONS_DIRS:
            raise ValueError(f"EXTENSIONS_DIRS is empty. Please set it in {cls.CONFIG_FILE}.")
