"""Custom exceptions for the workstation setup tool."""

from __future__ import annotations

from typing import Sequence


class SetupError(RuntimeError):
    """Base class for errors raised by the setup tool."""


class ConfigurationError(SetupError):
    """Raised when configuration files or payloads are invalid."""


class RegistryError(SetupError):
    """Raised when the action registry encounters an invalid operation."""


class CommandError(SetupError):
    """Raised when an external command exits with a nonzero status."""

    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command failed ({returncode}): {' '.join(self.argv)}"
        if stderr:
            message += f"\n{stderr.strip()}"
        super().__init__(message)


class ActionFailed(SetupError):
    """Raised when an installer action reports failure."""

    def __init__(self, identifier: str, exit_code: int, reason: str = "") -> None:
        self.identifier = identifier
        self.exit_code = exit_code
        self.reason = reason
        message = f"Action '{identifier}' failed (exit code: {exit_code})"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class FatalSelectionError(SetupError):
    """Raised when the operator makes a choice the run cannot recover from."""


class RunAborted(SetupError):
    """Raised when the operator aborts the run from a prompt."""
