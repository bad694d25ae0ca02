"""Runtime directory management for rc.

Paths follow the XDG base directory layout:
- $XDG_CONFIG_HOME/rc/config: Configuration file
- $XDG_DATA_HOME/rc/extensions/: Default extensions root
- $XDG_DATA_HOME/rc/wrappers/: Generated wrapper scripts
- $XDG_STATE_HOME/rc/logs/: Log files (only created with --verbose)
"""

import os

APP_NAME = "rc"


def _xdg_home(env_var: str, *default_parts: str) -> str:
    value = os.environ.get(env_var)
    if value:
        return value
    return os.path.join(os.path.expanduser("~"), *default_parts)


def get_config_home() -> str:
    return _xdg_home("XDG_CONFIG_HOME", ".config")


def get_data_home() -> str:
    return _xdg_home("XDG_DATA_HOME", ".local", "share")


def get_state_home() -> str:
    return _xdg_home("XDG_STATE_HOME", ".local", "state")


def get_config_dir() -> str:
    """Get the application configuration directory.

    Returns:
        Path to $XDG_CONFIG_HOME/rc
    """
    return os.path.join(get_config_home(), APP_NAME)


def get_config_file() -> str:
    """Get the configuration file path.

    Returns:
        Path to $XDG_CONFIG_HOME/rc/config
    """
    return os.path.join(get_config_dir(), "config")


def get_data_dir() -> str:
    return os.path.join(get_data_home(), APP_NAME)


def get_extensions_dir() -> str:
    """Get the default extensions root.

    Returns:
        Path to $XDG_DATA_HOME/rc/extensions/
    """
    return os.path.join(get_data_dir(), "extensions")


def get_wrappers_dir() -> str:
    """Get the default directory for generated wrapper scripts.

    Returns:
        Path to $XDG_DATA_HOME/rc/wrappers/
    """
    return os.path.join(get_data_dir(), "wrappers")


def get_log_dir() -> str:
    """Get the log directory path.

    Returns:
        Path to $XDG_STATE_HOME/rc/logs/
    """
    return os.path.join(get_state_home(), APP_NAME, "logs")


def get_all_dirs() -> dict[str, str]:
    """All application directories, for display in `rc config`."""
    return {
        "config": get_config_dir(),
        "data": get_data_dir(),
        "extensions": get_extensions_dir(),
        "wrappers": get_wrappers_dir(),
        "logs": get_log_dir(),
        "config_file": get_config_file(),
    }


def ensure_runtime_dirs(create_logs: bool = False) -> None:
    """Ensure runtime directories exist.

    Creates:
    - $XDG_CONFIG_HOME/rc/
    - $XDG_STATE_HOME/rc/logs/ (only if create_logs=True)

    Args:
        create_logs: Whether to create the logs directory (for --verbose mode)
    """
    os.makedirs(get_config_dir(), exist_ok=True)

    if create_logs:
        os.makedirs(get_log_dir(), exist_ok=True)
