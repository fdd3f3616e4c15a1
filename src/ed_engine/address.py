"""Address prefix parsing.

``AddressResolver.resolve`` consumes the address part of a command line
(``1,$``, ``.-2``, ``'a;/re/``, ``?re?+1`` ...) and returns the resolved
pair together with the unconsumed command body.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ed_engine.buffer import LineBuffer
from ed_engine.errors import InvalidAddress, InvalidCommand
from ed_engine.search import PatternCache, search_lines

_DIGITS = "0123456789"
_BLANKS = " \t"


@dataclass(slots=True)
class AddressResult:
    first: int
    second: int
    count: int
    rest: str

    @property
    def given(self) -> bool:
        return self.count > 0


def _skip_blanks(text: str, index: int) -> int:
    while index < len(text) and text[index] in _BLANKS:
        index += 1
    return index


def _digits_end(text: str, index: int) -> int:
    while index < len(text) and text[index] in _DIGITS:
        index += 1
    return index


class AddressResolver:
    def __init__(self, buffer: LineBuffer, patterns: PatternCache) -> None:
        self.buffer = buffer
        self.patterns = patterns

    def resolve(self, text: str) -> AddressResult:
        buffer = self.buffer
        first: Optional[int] = None
        second: Optional[int] = None
        fresh = True  # the next base term starts a new address
        paired = False
        index = 0

        while True:
            index = _skip_blanks(text, index)
            if index >= len(text):
                break
            char = text[index]

            if char in _DIGITS:
                end = _digits_end(text, index)
                value = int(text[index:end])
                index = end
            elif char == ".":
                value = buffer.current_address
                index += 1
            elif char == "$":
                value = buffer.last_address
                index += 1
            elif char == "'":
                key = text[index + 1 : index + 2]
                if not key:
                    raise InvalidCommand("Mark name expected")
                value = buffer.resolve_mark(key)
                index += 2
            elif char in "/?":
                regex, rest = self.patterns.take_pattern(text[index:])
                index = len(text) - len(rest)
                value = search_lines(
                    buffer.lines, regex, buffer.current_address, forward=char == "/"
                )
            elif char in "+-":
                if fresh or second is None:
                    second = buffer.current_address
                    fresh = False
                end = _digits_end(text, index + 1)
                magnitude = int(text[index + 1 : end]) if end > index + 1 else 1
                second += magnitude if char == "+" else -magnitude
                index = end
                continue
            elif char in ",%;":
                if fresh:
                    if second is None:
                        first = buffer.current_address if char == ";" else 1
                        second = buffer.last_address
                    else:
                        second = first
                else:
                    assert second is not None
                    self._check(second)
                    if char == ";":
                        buffer.current_address = second
                    first = second
                    fresh = True
                paired = True
                index += 1
                continue
            else:
                break

            if fresh:
                second = value
                fresh = False
            else:
                first, second = second, value
                paired = True

        rest = text[index:]
        if second is None:
            current = buffer.current_address
            return AddressResult(current, current, 0, rest)
        if not paired or first is None:
            first = second
        self._check(first)
        self._check(second)
        return AddressResult(first, second, 2 if paired else 1, rest)

    def resolve_destination(self, text: str, *, required: bool = False) -> tuple[int, str]:
        """Parse the third address of ``m``/``t``; defaults to ``.``."""

        result = self.resolve(text)
        if not result.given:
            if required:
                raise InvalidAddress("Destination expected")
            return self.buffer.current_address, result.rest
        return result.second, result.rest

    def _check(self, address: int) -> None:
        if address < 0 or address > self.buffer.last_address:
            raise InvalidAddress(address=address)


__all__ = ["AddressResolver", "AddressResult"]
