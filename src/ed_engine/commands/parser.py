"""Splitting a command line into addresses, command kind, and arguments."""

from __future__ import annotations

from typing import Optional

from ed_engine.address import AddressResolver
from ed_engine.display import PrintMode
from ed_engine.errors import InvalidCommand, InvalidFilename

from .models import CommandKind, ParsedCommand


def parse_command(line: str, resolver: AddressResolver) -> ParsedCommand:
    addresses = resolver.resolve(line)
    rest = addresses.rest
    char = rest[:1]
    if char == "\n":
        char = ""
    kind = CommandKind.from_char(char)
    return ParsedCommand(kind=kind, addresses=addresses, tail=rest[1:], source=line)


def parse_suffix(tail: str) -> PrintMode:
    """Accept any combination of the ``p``, ``l`` and ``n`` print suffixes."""

    mode = PrintMode.NONE
    for char in tail:
        if char == "\n":
            break
        if char not in "pln":
            raise InvalidCommand("Invalid command suffix")
        mode |= PrintMode.from_suffix(char)
    return mode


def parse_filename(tail: str, *, restricted: bool = False) -> Optional[str]:
    """Return the filename argument of ``e``/``f``/``r``/``w``, if any."""

    if not tail or tail == "\n":
        return None
    if tail[0] not in " \t":
        raise InvalidCommand("Unexpected command suffix")
    name = tail.lstrip(" \t").rstrip("\n")
    if not name:
        return None
    if restricted and (name.startswith("!") or "/" in name or name == ".."):
        raise InvalidFilename("Shell access restricted" if name.startswith("!") else None)
    return name


def expand_shell_command(
    text: str, *, previous: Optional[str], filename: Optional[str]
) -> tuple[str, bool]:
    """Expand ``!!`` and unescaped ``%``; returns the command and whether it changed."""

    expanded: list[str] = []
    changed = False
    index = 0
    if text.startswith("!"):
        if previous is None:
            raise InvalidCommand("No previous command")
        expanded.append(previous)
        changed = True
        index = 1
    while index < len(text):
        char = text[index]
        if char == "\\" and text[index + 1 : index + 2] == "%":
            expanded.append("%")
            index += 2
            continue
        if char == "%":
            if not filename:
                raise InvalidFilename("No current filename")
            expanded.append(filename)
            changed = True
        else:
            expanded.append(char)
        index += 1
    return "".join(expanded), changed


__all__ = ["expand_shell_command", "parse_command", "parse_filename", "parse_suffix"]
