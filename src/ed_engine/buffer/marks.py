"""The 26 single-letter line marks (``ka`` .. ``kz``)."""

from __future__ import annotations

import string
from typing import Dict, List, Optional, Tuple

from ed_engine.errors import InvalidAddress, InvalidCommand

MARK_KEYS = string.ascii_lowercase


def mark_slot(key: str) -> int:
    if len(key) != 1 or key not in MARK_KEYS:
        raise InvalidCommand(f"Invalid mark character '{key}'" if key else None)
    return ord(key) - ord("a")


class MarkTable:
    """Fixed table of optional line addresses.

    The table never validates against the buffer by itself; ``LineBuffer``
    keeps it consistent by reporting every insertion and removal.
    """

    def __init__(self) -> None:
        self._slots: List[Optional[int]] = [None] * len(MARK_KEYS)

    def set(self, key: str, address: int) -> None:
        self._slots[mark_slot(key)] = address

    def get(self, key: str) -> int:
        address = self._slots[mark_slot(key)]
        if address is None:
            raise InvalidAddress(f"Mark '{key}' is not set")
        return address

    def peek(self, key: str) -> Optional[int]:
        return self._slots[mark_slot(key)]

    def clear(self) -> None:
        self._slots = [None] * len(MARK_KEYS)

    def lines_inserted(self, address: int, count: int) -> None:
        """``count`` lines now start at ``address``; later marks move down."""

        for index, value in enumerate(self._slots):
            if value is not None and value >= address:
                self._slots[index] = value + count

    def lines_removed(self, first: int, last: int) -> None:
        count = last - first + 1
        for index, value in enumerate(self._slots):
            if value is None or value < first:
                continue
            self._slots[index] = None if value <= last else value - count

    def within(self, first: int, last: int) -> List[Tuple[str, int]]:
        return [
            (MARK_KEYS[index], value)
            for index, value in enumerate(self._slots)
            if value is not None and first <= value <= last
        ]

    def as_dict(self) -> Dict[str, int]:
        return {
            MARK_KEYS[index]: value
            for index, value in enumerate(self._slots)
            if value is not None
        }
