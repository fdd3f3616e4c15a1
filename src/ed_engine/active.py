"""The active-line set consumed by global commands.

Members are plain addresses captured before the command list runs. While
the set is attached to a buffer it follows structural changes: members whose
lines disappear are tombstoned and the rest are renumbered.
"""

from __future__ import annotations

from re import Pattern
from typing import Iterator, List, Optional

from ed_engine.buffer import LineBuffer
from ed_engine.errors import InvalidCommand

_TOMBSTONE = None


class ActiveLineSet:
    def __init__(self, addresses: Optional[List[int]] = None) -> None:
        self._entries: List[Optional[int]] = list(addresses or [])
        self._cursor = 0

    @classmethod
    def build(
        cls,
        buffer: LineBuffer,
        first: int,
        second: int,
        regex: Pattern[str],
        *,
        want_match: bool = True,
    ) -> "ActiveLineSet":
        members: List[int] = []
        for address, text in enumerate(buffer.get_lines(first, second), start=first):
            if bool(regex.search(text)) == want_match:
                members.append(address)
                if len(members) > buffer.max_lines:
                    raise InvalidCommand("Too many active lines")
        return cls(members)

    def __len__(self) -> int:
        return sum(1 for entry in self._entries if entry is not _TOMBSTONE)

    def __bool__(self) -> bool:
        return len(self) > 0

    def members(self) -> List[int]:
        return [entry for entry in self._entries if entry is not _TOMBSTONE]

    def next_active(self) -> Optional[int]:
        """Consume and return the next live member, or ``None`` when drained."""

        while self._cursor < len(self._entries):
            entry = self._entries[self._cursor]
            self._entries[self._cursor] = _TOMBSTONE
            self._cursor += 1
            if entry is not _TOMBSTONE:
                return entry
        return None

    def __iter__(self) -> Iterator[int]:
        while True:
            address = self.next_active()
            if address is None:
                return
            yield address

    def drain_descending(self) -> List[int]:
        pending = sorted(self.members(), reverse=True)
        self._entries = [_TOMBSTONE] * len(self._entries)
        self._cursor = len(self._entries)
        return pending

    def unset(self, lo: int, hi: int) -> None:
        """Tombstone members whose address falls in ``[lo, hi)``."""

        for index, entry in enumerate(self._entries):
            if entry is not _TOMBSTONE and lo <= entry < hi:
                self._entries[index] = _TOMBSTONE

    def shift(self, from_address: int, delta: int) -> None:
        for index, entry in enumerate(self._entries):
            if entry is not _TOMBSTONE and entry >= from_address:
                self._entries[index] = entry + delta

    # LineObserver
    def lines_inserted(self, address: int, count: int) -> None:
        self.shift(address, count)

    def lines_removed(self, first: int, last: int) -> None:
        self.unset(first, last + 1)
        self.shift(last + 1, -(last - first + 1))


__all__ = ["ActiveLineSet"]
