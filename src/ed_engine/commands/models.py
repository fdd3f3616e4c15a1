"""Command kinds and parsed command records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ed_engine.address import AddressResult
from ed_engine.errors import InvalidCommand


class CommandKind(str, Enum):
    APPEND = "a"
    CHANGE = "c"
    DELETE = "d"
    EDIT = "e"
    EDIT_FORCE = "E"
    FILENAME = "f"
    GLOBAL = "g"
    GLOBAL_INTERACTIVE = "G"
    HELP = "h"
    HELP_VERBOSE = "H"
    INSERT = "i"
    JOIN = "j"
    MARK = "k"
    LIST = "l"
    MOVE = "m"
    NUMBER = "n"
    PRINT = "p"
    PROMPT = "P"
    QUIT = "q"
    QUIT_FORCE = "Q"
    READ = "r"
    SUBSTITUTE = "s"
    TRANSFER = "t"
    UNDO = "u"
    INVERT_GLOBAL = "v"
    INVERT_GLOBAL_INTERACTIVE = "V"
    WRITE = "w"
    WRITE_APPEND = "W"
    PUT = "x"
    YANK = "y"
    SCROLL = "z"
    LINE_NUMBER = "="
    SHELL = "!"
    COMMENT = "#"
    NULL = ""

    @classmethod
    def from_char(cls, char: str) -> "CommandKind":
        try:
            return cls(char)
        except ValueError:
            raise InvalidCommand(f"Unknown command '{char}'") from None

    @property
    def is_global(self) -> bool:
        return self in GLOBAL_KINDS


GLOBAL_KINDS = frozenset(
    {
        CommandKind.GLOBAL,
        CommandKind.GLOBAL_INTERACTIVE,
        CommandKind.INVERT_GLOBAL,
        CommandKind.INVERT_GLOBAL_INTERACTIVE,
    }
)

ADDRESS_FREE = frozenset(
    {
        CommandKind.EDIT,
        CommandKind.EDIT_FORCE,
        CommandKind.FILENAME,
        CommandKind.HELP,
        CommandKind.HELP_VERBOSE,
        CommandKind.PROMPT,
        CommandKind.QUIT,
        CommandKind.QUIT_FORCE,
        CommandKind.UNDO,
    }
)


@dataclass(slots=True)
class ParsedCommand:
    kind: CommandKind
    addresses: AddressResult
    tail: str
    source: str

    @property
    def first(self) -> int:
        return self.addresses.first

    @property
    def second(self) -> int:
        return self.addresses.second

    @property
    def given(self) -> bool:
        return self.addresses.given


__all__ = ["ADDRESS_FREE", "CommandKind", "GLOBAL_KINDS", "ParsedCommand"]
