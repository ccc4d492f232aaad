"""Exceptions raised by readterm."""

from __future__ import annotations


class TerminalError(Exception):
    """Base class for all readterm errors."""


class SpawnError(TerminalError, OSError):
    """The shell process could not be started."""


class WriteError(TerminalError, OSError):
    """Writing to the session's input failed."""


class SessionFinished(TerminalError):
    """The session's process has already exited or was closed."""


class UnsupportedOperation(TerminalError, NotImplementedError):
    """The driver cannot express the requested operation."""

    def __init__(self, driver: str, operation: str) -> None:
        super().__init__(f"{operation} is not supported by {driver}")
        self.driver = driver
        self.operation = operation
