"""Exceptions raised by the extension engine.

Discovery problems are never raised; they are logged and the affected item
is treated as absent. Conflicts are data (see ``Conflict``), not errors.
"""

from __future__ import annotations

from typing import Sequence


class ExtensionError(Exception):
    """Base class for extension engine errors."""


class UsageError(ExtensionError):
    """The user asked for something that cannot be done as stated."""


class ExecutionError(ExtensionError):
    """A script could not be spawned, or exited with a non-zero status."""

    def __init__(
        self,
        command: str,
        exit_code: int | None = None,
        os_error: OSError | None = None,
    ) -> None:
        self.command = command
        self.exit_code = exit_code
        self.os_error = os_error
        if os_error is not None:
            message = f"Could not run '{command}': {os_error}"
        else:
            message = f"'{command}' exited with code {exit_code}"
        super().__init__(message)

    @property
    def exit_status(self) -> int:
        """Status the invoking shell should see."""
        if self.exit_code is not None:
            # Negative codes mean the child was killed by a signal
            return 128 - self.exit_code if self.exit_code < 0 else self.exit_code
        if isinstance(self.os_error, FileNotFoundError):
            return 127
        return 126


class ConfigurationError(ExtensionError):
    """A wrapper namespace does not resolve to any commands."""

    def __init__(self, message: str, available: Sequence[str] = ()) -> None:
        self.available = list(available)
        if self.available:
            message = f"{message}\nResolvable namespaces: {', '.join(self.available)}"
        super().__init__(message)
