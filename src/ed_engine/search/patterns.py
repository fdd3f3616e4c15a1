"""Delimited pattern parsing, the shared pattern cache, and line search."""

from __future__ import annotations

from dataclasses import dataclass
from re import Pattern
from typing import TYPE_CHECKING, Optional, Sequence

from ed_engine.errors import (
    InvalidCommand,
    NoPreviousPattern,
    PatternCompileError,
    PatternNotFound,
)

from .regex import PosixRegexEngine, RegexEngine, bracket_end

if TYPE_CHECKING:  # pragma: no cover
    from ed_engine.substitute import ReplacementTemplate


@dataclass(slots=True)
class Delimited:
    body: str
    rest: str
    closed: bool


def read_delimited(text: str, delimiter: str, *, brackets: bool = True) -> Delimited:
    """Split ``text`` at the first unescaped ``delimiter``.

    Backslash escapes are kept verbatim in ``body``. With ``brackets`` the
    delimiter is not recognised inside a ``[...]`` expression. A missing
    closing delimiter is reported through ``closed``; a newline always ends
    the body.
    """

    index = 0
    while index < len(text):
        char = text[index]
        if char == delimiter:
            return Delimited(text[:index], text[index + 1 :], True)
        if char == "\n":
            return Delimited(text[:index], text[index:], False)
        if char == "\\":
            if index + 1 >= len(text):
                raise PatternCompileError("Trailing backslash (\\)")
            index += 2
            continue
        if brackets and char == "[":
            index = bracket_end(text, index)
            continue
        index += 1
    return Delimited(text, "", False)


def check_delimiter(char: str) -> str:
    if not char or char in " \n":
        raise InvalidCommand("Invalid pattern delimiter")
    return char


class PatternCache:
    """Remembers the last search regex and the last substitution pieces.

    Every successful compile becomes the "last search pattern"; an empty
    pattern in any command reuses it.
    """

    def __init__(self, engine: Optional[RegexEngine] = None) -> None:
        self.engine: RegexEngine = engine or PosixRegexEngine()
        self.last_search: Optional[Pattern[str]] = None
        self.last_substitution: Optional[Pattern[str]] = None
        self.replacement: Optional["ReplacementTemplate"] = None

    def compile(self, source: str, *, ignore_case: bool = False) -> Pattern[str]:
        if source == "":
            if self.last_search is None:
                raise NoPreviousPattern()
            return self.last_search
        compiled = self.engine.compile(source, ignore_case=ignore_case)
        self.last_search = compiled
        return compiled

    def take_pattern(self, text: str) -> tuple[Pattern[str], str]:
        """Parse ``/re/[I]`` (any delimiter) from ``text`` and compile it."""

        delimiter = check_delimiter(text[:1])
        piece = read_delimited(text[1:], delimiter)
        rest = piece.rest
        ignore_case = False
        if piece.closed and rest[:1] == "I":
            ignore_case = True
            rest = rest[1:]
        return self.compile(piece.body, ignore_case=ignore_case), rest


def search_lines(
    lines: Sequence[str],
    regex: Pattern[str],
    start: int,
    *,
    forward: bool = True,
) -> int:
    """Wrap-around search beginning after (or before) address ``start``.

    The line at ``start`` itself is examined last.
    """

    last = len(lines)
    if last == 0:
        raise PatternNotFound()
    address = start
    for _ in range(last + 1):
        if forward:
            address = address + 1 if address < last else 0
        else:
            address = address - 1 if address > 0 else last
        if address and regex.search(lines[address - 1]):
            return address
    raise PatternNotFound()


__all__ = [
    "Delimited",
    "PatternCache",
    "check_delimiter",
    "read_delimited",
    "search_lines",
]
