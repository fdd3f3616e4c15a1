"""The ``s`` command: syntax parsing and per-line rewriting."""

from __future__ import annotations

from dataclasses import dataclass, replace
from re import Match, Pattern
from typing import List, Optional, Tuple, Union

from ed_engine.buffer import LineBuffer, ensure_range
from ed_engine.display import PrintMode
from ed_engine.errors import (
    EdError,
    InvalidCommand,
    NoMatch,
    NoPreviousPattern,
    NoPreviousSubstitution,
)
from ed_engine.runtime import telemetry
from ed_engine.search import PatternCache, check_delimiter, read_delimited

_REPEAT_FLAGS = "gpr0123456789"


@dataclass(slots=True, frozen=True)
class ReplacementTemplate:
    """Parsed replacement text: literals interleaved with group numbers."""

    parts: Tuple[Union[str, int], ...]
    source: str = ""

    @classmethod
    def parse(cls, text: str) -> "ReplacementTemplate":
        parts: List[Union[str, int]] = []
        literal: List[str] = []

        def flush() -> None:
            if literal:
                parts.append("".join(literal))
                literal.clear()

        index = 0
        while index < len(text):
            char = text[index]
            if char == "&":
                flush()
                parts.append(0)
            elif char == "\\" and index + 1 < len(text):
                escaped = text[index + 1]
                if escaped in "123456789":
                    flush()
                    parts.append(int(escaped))
                else:
                    literal.append(escaped)
                index += 2
                continue
            else:
                literal.append(char)
            index += 1
        flush()
        return cls(parts=tuple(parts), source=text)

    @property
    def max_group(self) -> int:
        return max((part for part in self.parts if isinstance(part, int)), default=0)

    def expand(self, match: Match[str]) -> str:
        return "".join(
            part if isinstance(part, str) else (match.group(part) or "")
            for part in self.parts
        )


@dataclass(slots=True, frozen=True)
class Substitution:
    regex: Pattern[str]
    template: ReplacementTemplate
    replace_all: bool = False
    occurrence: int = 1
    print_mode: PrintMode = PrintMode.NONE


class SubstitutionEngine:
    def __init__(self, buffer: LineBuffer, patterns: PatternCache) -> None:
        self.buffer = buffer
        self.patterns = patterns
        self.last: Optional[Substitution] = None

    # -- parsing ---------------------------------------------------------

    def parse(self, text: str) -> Tuple[Substitution, str]:
        """Parse everything after the ``s``; returns the command and leftovers."""

        if not text or text[0] == "\n" or text[0] in _REPEAT_FLAGS:
            return self._parse_repeat(text)

        delimiter = check_delimiter(text[0])
        pattern = read_delimited(text[1:], delimiter)
        if not pattern.closed:
            raise InvalidCommand("Missing pattern delimiter")
        body = read_delimited(pattern.rest, delimiter, brackets=False)

        if body.body == "%":
            if self.patterns.replacement is None:
                raise NoPreviousSubstitution()
            template = self.patterns.replacement
        else:
            template = ReplacementTemplate.parse(body.body)

        if body.closed:
            replace_all, occurrence, print_mode, ignore_case, rest = _parse_flags(body.rest)
        else:
            replace_all, occurrence, ignore_case = False, 1, False
            print_mode, rest = PrintMode.PRINT, body.rest

        regex = self.patterns.compile(pattern.body, ignore_case=ignore_case)
        if template.max_group > regex.groups:
            raise InvalidCommand("Invalid back reference")
        self.patterns.last_substitution = regex
        self.patterns.replacement = template
        command = Substitution(regex, template, replace_all, occurrence, print_mode)
        self.last = command
        return command, rest

    def _parse_repeat(self, text: str) -> Tuple[Substitution, str]:
        if self.last is None:
            raise NoPreviousSubstitution()
        command = replace(self.last, print_mode=PrintMode.NONE)
        index = 0
        while index < len(text) and text[index] in _REPEAT_FLAGS:
            char = text[index]
            if char == "g":
                command = replace(command, replace_all=not command.replace_all)
            elif char == "p":
                toggled = PrintMode.NONE if command.print_mode else PrintMode.PRINT
                command = replace(command, print_mode=toggled)
            elif char == "r":
                if self.patterns.last_search is None:
                    raise NoPreviousPattern()
                command = replace(command, regex=self.patterns.last_search)
            else:
                end = index
                while end < len(text) and text[end].isdigit():
                    end += 1
                count = int(text[index:end])
                if count <= 0:
                    raise InvalidCommand("Invalid count")
                command = replace(command, occurrence=count)
                index = end
                continue
            index += 1
        self.last = command
        return command, text[index:]

    # -- execution -------------------------------------------------------

    def apply(
        self, command: Substitution, first: int, second: int, *, in_global: bool = False
    ) -> Optional[int]:
        """Rewrite ``first..second``; returns the last changed address.

        Raises ``NoMatch`` when nothing changed, unless running under a global
        command, where a miss leaves the buffer alone and returns ``None``.
        """

        buffer = self.buffer
        ensure_range(first, second, buffer.last_address)
        last_changed: Optional[int] = None
        with telemetry.span(
            "substitute",
            component="substitute",
            metadata={"first": first, "second": second, "global": command.replace_all},
        ) as handle:
            with buffer.guard.critical():
                address, end = first, second
                while address <= end:
                    rewritten = self.rewrite(command, buffer.get_line(address))
                    if rewritten is None:
                        address += 1
                        continue
                    pieces = rewritten.split("\n")
                    last_changed = buffer.replace_line(address, pieces)
                    end += len(pieces) - 1
                    address = last_changed + 1
            handle.add_metadata("changed", last_changed is not None)

        if last_changed is None:
            if in_global:
                return None
            raise NoMatch()
        buffer.current_address = last_changed
        return last_changed

    @staticmethod
    def rewrite(command: Substitution, text: str) -> Optional[str]:
        """Return the rewritten line, or ``None`` if no replacement happened.

        An empty match right after a non-empty one is skipped, so ``x*`` on
        ``abxd`` yields ``-a-b-d-`` rather than ``-a-b--d-``.
        """

        regex = command.regex
        pieces: List[str] = []
        position = 0
        seen = 0
        changed = False
        previous_end = -1
        while position <= len(text):
            match = regex.search(text, position)
            if match is None:
                break
            start, end = match.span()
            if start == end and start == previous_end:
                if start < len(text):
                    pieces.append(text[start])
                position = start + 1
                continue
            seen += 1
            if command.replace_all or seen == command.occurrence:
                pieces.append(text[position:start])
                pieces.append(command.template.expand(match))
                changed = True
            else:
                pieces.append(text[position:end])
            previous_end = end
            if start == end:
                if end < len(text):
                    pieces.append(text[end])
                position = end + 1
            else:
                position = end
            if changed and not command.replace_all:
                break
        if not changed:
            return None
        pieces.append(text[position:])
        return "".join(pieces)


def _parse_flags(text: str) -> Tuple[bool, int, PrintMode, bool, str]:
    replace_all = False
    occurrence = 0
    print_mode = PrintMode.NONE
    ignore_case = False
    index = 0
    while index < len(text):
        char = text[index]
        if char == "g":
            replace_all = True
        elif char.isdigit():
            end = index
            while end < len(text) and text[end].isdigit():
                end += 1
            occurrence = int(text[index:end])
            if occurrence <= 0:
                raise InvalidCommand("Invalid count")
            index = end
            continue
        elif char in "pln":
            print_mode |= PrintMode.from_suffix(char)
        elif char in "Ii":
            ignore_case = True
        else:
            break
        index += 1
    if replace_all and occurrence:
        raise InvalidCommand("Invalid command suffix")
    return replace_all, occurrence or 1, print_mode, ignore_case, text[index:]


def replacement_continues(text: str) -> bool:
    """True when an ``s`` argument stops on an escaped newline in its replacement."""

    if not text or text[0] in _REPEAT_FLAGS or text[0] in " \n":
        return False
    try:
        pattern = read_delimited(text[1:], text[0])
    except EdError:
        return False
    if not pattern.closed:
        return False
    try:
        read_delimited(pattern.rest, text[0], brackets=False)
    except EdError:
        # only a lone trailing backslash fails inside the replacement
        return True
    return False


__all__ = ["ReplacementTemplate", "Substitution", "SubstitutionEngine", "replacement_continues"]
