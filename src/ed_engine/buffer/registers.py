"""Yank register holding lines copied by ``y`` and pasted by ``x``."""

from __future__ import annotations

from typing import Iterable, Tuple


class YankRegister:
    """Single unnamed register with value semantics."""

    def __init__(self) -> None:
        self._lines: Tuple[str, ...] = ()

    def store(self, lines: Iterable[str]) -> None:
        self._lines = tuple(lines)

    def contents(self) -> Tuple[str, ...]:
        return self._lines

    def clear(self) -> None:
        self._lines = ()

    def __len__(self) -> int:
        return len(self._lines)

    def __bool__(self) -> bool:
        return bool(self._lines)
