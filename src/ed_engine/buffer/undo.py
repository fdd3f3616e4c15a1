"""Single-level undo journal with toggle semantics.

The journal records one atom per raw line operation performed since it was
last cleared. Undo replays the atoms backwards through the buffer, which in
turn records the inverse atoms, so undoing twice restores the original.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Union

from ed_engine.errors import NothingToUndo

from .state import UndoSnapshot

if TYPE_CHECKING:  # pragma: no cover
    from .buffer import LineBuffer


@dataclass(slots=True, frozen=True)
class LineAdded:
    position: int  # 0-based index the line was inserted at


@dataclass(slots=True, frozen=True)
class LineDeleted:
    position: int
    text: str


@dataclass(slots=True, frozen=True)
class LineChanged:
    position: int
    old_text: str


UndoAtom = Union[LineAdded, LineDeleted, LineChanged]


class UndoJournal:
    def __init__(self) -> None:
        self._atoms: List[UndoAtom] = []
        self._snapshot: Optional[UndoSnapshot] = None

    @property
    def atoms(self) -> tuple[UndoAtom, ...]:
        return tuple(self._atoms)

    @property
    def snapshot(self) -> Optional[UndoSnapshot]:
        return self._snapshot

    def __len__(self) -> int:
        return len(self._atoms)

    def record(self, atom: UndoAtom) -> None:
        self._atoms.append(atom)

    def clear(self, snapshot: UndoSnapshot) -> None:
        self._atoms = []
        self._snapshot = snapshot

    def reset(self) -> None:
        """Forget everything; ``undo`` fails until the next ``clear``."""

        self._atoms = []
        self._snapshot = None

    def can_undo(self) -> bool:
        return self._snapshot is not None and bool(self._atoms)

    def undo(self, buffer: "LineBuffer") -> UndoSnapshot:
        """Roll ``buffer`` back and return the snapshot that was restored."""

        if not self.can_undo():
            raise NothingToUndo()
        assert self._snapshot is not None
        restored = self._snapshot
        live = UndoSnapshot(
            current_address=buffer.state.current_address,
            last_address=buffer.last_address,
            modified=buffer.state.modified,
        )
        pending, self._atoms = self._atoms, []
        for atom in reversed(pending):
            if isinstance(atom, LineAdded):
                buffer._remove_block(atom.position, 1)
            elif isinstance(atom, LineDeleted):
                buffer._insert_block(atom.position, [atom.text])
            else:
                buffer._replace_at(atom.position, atom.old_text)

        self._snapshot = live
        buffer.state.current_address = min(restored.current_address, buffer.last_address)
        buffer.state.modified = restored.modified
        return restored


__all__ = ["LineAdded", "LineChanged", "LineDeleted", "UndoAtom", "UndoJournal"]
