"""Utility modules for rc."""

from .logger import get_log_file_path, get_logger, setup_logger

# Note: terminal_ui is NOT imported here because it imports config, and
# config imports utils.runtime. Import it directly:
#   from utils import terminal_ui

__all__ = [
    "setup_logger",
    "get_logger",
    "get_log_file_path",
]
