"""Address and flag state tied to a LineBuffer."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class BufferState:
    """Mutable cursor and dirty-tracking info for one buffer.

    ``warned`` is only meaningful while ``modified`` is set; marking the
    buffer modified again clears it so the next quit attempt warns anew.
    """

    current_address: int = 0
    modified: bool = False
    warned: bool = False
    binary: bool = False
    unterminated: bool = False

    def set_modified(self, flag: bool) -> None:
        self.modified = flag
        self.warned = False


@dataclass(slots=True, frozen=True)
class UndoSnapshot:
    current_address: int
    last_address: int
    modified: bool
