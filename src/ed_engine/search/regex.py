"""POSIX regular expression syntax on top of Python's ``re`` module.

ed patterns are POSIX basic regular expressions by default: ``\\(`` groups,
``\\{m,n\\}`` intervals, and bare ``+ ? | ( ) { }`` are literals. The
translator rewrites them into ``re`` syntax; extended mode keeps operators
as they are and only rewrites bracket classes and word anchors.
"""

from __future__ import annotations

import re
from re import Pattern
from typing import Dict, List, Protocol, Tuple

from ed_engine.errors import PatternCompileError

_CHARACTER_CLASSES: Dict[str, str] = {
    "alpha": "a-zA-Z",
    "digit": "0-9",
    "alnum": "a-zA-Z0-9",
    "upper": "A-Z",
    "lower": "a-z",
    "space": " \\t\\n\\r\\f\\v",
    "blank": " \\t",
    "punct": re.escape("!\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~"),
    "print": "\\x20-\\x7e",
    "graph": "\\x21-\\x7e",
    "cntrl": "\\x00-\\x1f\\x7f",
    "xdigit": "0-9A-Fa-f",
}

_BASIC_OPERATORS = {"(": "(", ")": ")", "{": "{", "}": "}", "|": "|", "+": "+", "?": "?"}
_GNU_ESCAPES = {"<": r"\b", ">": r"\b", "`": r"\A", "'": r"\Z"}
_PASSTHROUGH = set("bBwWsS")


class RegexEngine(Protocol):
    def compile(self, pattern: str, *, ignore_case: bool = False) -> Pattern[str]:
        ...


def bracket_end(pattern: str, start: int) -> int:
    """Index just past the bracket expression opening at ``start``."""

    index = start + 1
    if index < len(pattern) and pattern[index] == "^":
        index += 1
    if index < len(pattern) and pattern[index] == "]":
        index += 1
    while index < len(pattern):
        char = pattern[index]
        if char == "[" and index + 1 < len(pattern) and pattern[index + 1] in ":.=":
            closing = pattern.find(pattern[index + 1] + "]", index + 2)
            if closing < 0:
                raise PatternCompileError("Unbalanced brackets ([)")
            index = closing + 2
            continue
        if char == "]":
            return index + 1
        index += 1
    raise PatternCompileError("Unbalanced brackets ([)")


def _translate_bracket(pattern: str, start: int) -> Tuple[str, int]:
    end = bracket_end(pattern, start)
    body = pattern[start + 1 : end - 1]
    out: List[str] = ["["]
    index = 0
    if body.startswith("^"):
        out.append("^")
        index = 1
    if body[index : index + 1] == "]":
        out.append("\\]")
        index += 1
    while index < len(body):
        char = body[index]
        if char == "[" and body[index + 1 : index + 2] in (":", ".", "="):
            kind = body[index + 1]
            closing = body.index(kind + "]", index + 2)
            name = body[index + 2 : closing]
            if kind == ":":
                if name not in _CHARACTER_CLASSES:
                    raise PatternCompileError(f"Invalid character class '{name}'")
                out.append(_CHARACTER_CLASSES[name])
            else:
                out.append(re.escape(name))
            index = closing + 2
            continue
        if char in "\\[":
            out.append("\\" + char)
        else:
            out.append(char)
        index += 1
    out.append("]")
    return "".join(out), end


def translate(pattern: str, *, extended: bool = False) -> str:
    """Rewrite a POSIX pattern into Python ``re`` syntax."""

    out: List[str] = []
    index = 0
    length = len(pattern)
    # positions where an anchor or leading '*' counts as "start of expression"
    expression_start = True
    while index < length:
        char = pattern[index]
        if char == "\\":
            if index + 1 >= length:
                raise PatternCompileError("Trailing backslash (\\)")
            nxt = pattern[index + 1]
            index += 2
            if not extended and nxt in _BASIC_OPERATORS:
                out.append(_BASIC_OPERATORS[nxt])
                expression_start = nxt in "(|"
                continue
            if nxt in _GNU_ESCAPES:
                out.append(_GNU_ESCAPES[nxt])
            elif nxt.isdigit() and nxt != "0":
                out.append("\\" + nxt)
            elif nxt in _PASSTHROUGH:
                out.append("\\" + nxt)
            elif nxt == "n":
                out.append("\\n")
            else:
                out.append(re.escape(nxt))
            expression_start = False
            continue
        if char == "[":
            translated, index = _translate_bracket(pattern, index)
            out.append(translated)
            expression_start = False
            continue
        index += 1
        if extended:
            out.append(char)
            expression_start = char in "(|"
            continue
        if char in "(){}|+?":
            out.append("\\" + char)
        elif char == "*" and expression_start:
            out.append("\\*")
        elif char == "^" and not expression_start:
            out.append("\\^")
        elif char == "$" and not _at_expression_end(pattern, index):
            out.append("\\$")
        else:
            out.append(char)
        expression_start = char == "^" and expression_start
    return "".join(out)


def _at_expression_end(pattern: str, index: int) -> bool:
    return index >= len(pattern) or pattern.startswith(("\\)", "\\|"), index)


class PosixRegexEngine:
    """Default search capability: POSIX syntax compiled by ``re``."""

    def __init__(self, *, extended: bool = False) -> None:
        self.extended = extended

    def compile(self, pattern: str, *, ignore_case: bool = False) -> Pattern[str]:
        source = translate(pattern, extended=self.extended)
        flags = re.IGNORECASE if ignore_case else 0
        try:
            return re.compile(source, flags)
        except re.error as exc:
            raise PatternCompileError(f"Invalid regular expression: {exc.msg}") from exc


__all__ = ["PosixRegexEngine", "RegexEngine", "bracket_end", "translate"]
