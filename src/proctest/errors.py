"""Exception classes for proctest.

Spawn-time and conversion errors are setup failures and should fail a test
immediately. ``TimeoutException`` is the expected way a misbehaving child
under test shows up.
"""

from __future__ import annotations

__all__ = [
    "ProctestError",
    "RunException",
    "CommandNotFound",
    "InvalidTimeoutError",
    "TimeoutException",
]


class ProctestError(Exception):
    """Base class for all proctest errors."""
    pass


class RunException(ProctestError):
    """A program could not be started."""
    pass


class CommandNotFound(RunException):
    """The command to run does not exist.

    Attributes:
        command: The command name or path that was passed to ``run``
    """

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(f"Command not found: {command}")


class InvalidTimeoutError(ProctestError, ValueError):
    """A numeric value does not fit into a ``Timeout``.

    Attributes:
        message: Description naming the offending value and unit
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TimeoutException(ProctestError):
    """A bounded wait exceeded its deadline."""
    pass
