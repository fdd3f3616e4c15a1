"""Failure taxonomy shared by the buffer, resolver, and command layers.

Every failure is raised to the immediate caller as an ``EdError`` subclass.
The driver prints ``?`` and remembers ``str(error)`` for the ``h``/``H``
commands, mirroring the terse diagnostics of GNU ed.
"""

from __future__ import annotations

from typing import Optional


class EdError(RuntimeError):
    """Base class for every editor diagnostic."""

    default_message = "Unknown error"
    exit_code = 1

    def __init__(self, message: Optional[str] = None, *, address: int | None = None) -> None:
        super().__init__(message or self.default_message)
        self.address = address

    @property
    def message(self) -> str:
        return str(self)


class InvalidAddress(EdError):
    default_message = "Invalid address"


class InvalidCommand(EdError):
    default_message = "Invalid command"


class InvalidFilename(EdError):
    default_message = "Invalid filename"


class IOFailure(EdError):
    default_message = "Cannot open input file"


class NoMatch(EdError):
    default_message = "No match"


class PatternNotFound(EdError):
    default_message = "Pattern not found"


class NoPreviousPattern(EdError):
    default_message = "No previous pattern"


class NoPreviousSubstitution(EdError):
    default_message = "No previous substitution"


class PatternCompileError(EdError):
    default_message = "Invalid regular expression"


class NothingToUndo(EdError):
    default_message = "Nothing to undo"


class NothingToPut(EdError):
    default_message = "Nothing to put"


class UnsavedChangesWarning(EdError):
    """Soft failure raised on the first quit/edit attempt with a dirty buffer."""

    default_message = "Warning: buffer modified"


class Quit(EdError):
    """Control-flow signal: the session asked to terminate."""

    default_message = "Quit"
    exit_code = 0


class Interrupted(EdError):
    default_message = "Interrupt"


__all__ = [
    "EdError",
    "IOFailure",
    "Interrupted",
    "InvalidAddress",
    "InvalidCommand",
    "InvalidFilename",
    "NoMatch",
    "NoPreviousPattern",
    "NoPreviousSubstitution",
    "NothingToPut",
    "NothingToUndo",
    "PatternCompileError",
    "PatternNotFound",
    "Quit",
    "UnsavedChangesWarning",
]
