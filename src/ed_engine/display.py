"""Line rendering for the ``p``, ``n`` and ``l`` print modes."""

from __future__ import annotations

import enum
from typing import List

_LIST_ESCAPES = {
    "\\": "\\\\",
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    "$": "\\$",
}


class PrintMode(enum.IntFlag):
    NONE = 0
    PRINT = 1
    LIST = 2
    NUMBER = 4

    @classmethod
    def from_suffix(cls, char: str) -> "PrintMode":
        return {"p": cls.PRINT, "l": cls.LIST, "n": cls.NUMBER}.get(char, cls.NONE)


def escape_for_list(text: str) -> List[str]:
    """Escape one line unambiguously; one entry per visible character."""

    pieces: List[str] = []
    for char in text:
        if char in _LIST_ESCAPES:
            pieces.append(_LIST_ESCAPES[char])
        elif char.isprintable():
            pieces.append(char)
        else:
            raw = char.encode("utf-8", errors="surrogateescape")
            pieces.append("".join(f"\\{byte:03o}" for byte in raw))
    return pieces


def list_line(text: str, columns: int) -> List[str]:
    """Render ``text`` for ``l``: escaped, ``$``-terminated, wrapped with ``\\``."""

    rows: List[str] = []
    row = ""
    width = max(columns, 2)
    for piece in escape_for_list(text):
        if len(row) + len(piece) > width - 1:
            rows.append(row + "\\")
            row = ""
        row += piece
    rows.append(row + "$")
    return rows


def render_line(text: str, address: int, mode: PrintMode, *, columns: int = 76) -> List[str]:
    if mode & PrintMode.LIST:
        rows = list_line(text, columns)
    else:
        rows = [text]
    if mode & PrintMode.NUMBER:
        rows[0] = f"{address}\t{rows[0]}"
    return rows


__all__ = ["PrintMode", "escape_for_list", "list_line", "render_line"]
