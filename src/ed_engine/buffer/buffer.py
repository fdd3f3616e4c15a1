"""Line buffer façade combining line storage, marks, yank register, and undo."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import ContextManager, Iterable, List, Optional, Protocol, Sequence, Tuple

from ed_engine.errors import InvalidAddress, InvalidCommand, NothingToPut
from ed_engine.runtime import telemetry
from ed_engine.runtime.config import DEFAULT_MAX_LINES
from ed_engine.runtime.interrupts import InterruptGuard

from .marks import MarkTable
from .registers import YankRegister
from .state import BufferState, UndoSnapshot
from .undo import LineAdded, LineChanged, LineDeleted, UndoJournal
from .validation import ensure_address, ensure_range


class LineObserver(Protocol):
    """Receives structural changes; addresses are 1-based and post-change."""

    def lines_inserted(self, address: int, count: int) -> None:
        ...

    def lines_removed(self, first: int, last: int) -> None:
        ...


class LineBuffer:
    """Ordered, 1-addressed sequence of text lines.

    Every public mutation runs inside a ``Mutation`` so it is profiled,
    shielded from interrupts, journaled for ``undo`` and flips ``modified``.
    """

    def __init__(
        self,
        lines: Iterable[str] = (),
        *,
        name: str = "main",
        filename: Optional[str] = None,
        max_lines: int = DEFAULT_MAX_LINES,
        max_line_length: int = 0,
        guard: Optional[InterruptGuard] = None,
    ) -> None:
        self.name = name
        self.filename = filename
        self.max_lines = max_lines
        self.max_line_length = max_line_length
        self.guard = guard or InterruptGuard()
        self._lines: List[str] = list(lines)
        self.state = BufferState(current_address=len(self._lines))
        self.marks = MarkTable()
        self.register = YankRegister()
        self.journal = UndoJournal()
        self._observers: List[LineObserver] = []

    @classmethod
    def from_text(cls, text: str, *, name: str = "main") -> "LineBuffer":
        lines = text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        return cls(lines, name=name)

    # -- inspection -----------------------------------------------------

    @property
    def lines(self) -> Tuple[str, ...]:
        return tuple(self._lines)

    @property
    def last_address(self) -> int:
        return len(self._lines)

    @property
    def current_address(self) -> int:
        return self.state.current_address

    @current_address.setter
    def current_address(self, address: int) -> None:
        self.state.current_address = ensure_address(
            address, self.last_address, allow_zero=True
        )

    @property
    def current_line(self) -> str:
        return self.get_line(self.state.current_address)

    @property
    def modified(self) -> bool:
        return self.state.modified

    def get_line(self, address: int) -> str:
        return self._lines[ensure_address(address, self.last_address) - 1]

    def get_lines(self, first: int, second: int) -> List[str]:
        ensure_range(first, second, self.last_address)
        return self._lines[first - 1 : second]

    def add_observer(self, observer: LineObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: LineObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    # -- undo ----------------------------------------------------------

    def clear_undo(self) -> None:
        """Start a new undo unit at the current state."""

        self.journal.clear(
            UndoSnapshot(
                current_address=self.state.current_address,
                last_address=self.last_address,
                modified=self.state.modified,
            )
        )

    def undo(self) -> int:
        with telemetry.span(
            "buffer::undo",
            component="buffer",
            metadata={"buffer": self.name, "atoms": len(self.journal)},
        ):
            with self.guard.critical():
                self.journal.undo(self)
        telemetry.record_event(
            "buffer.undo", level="debug", data={"current": self.state.current_address}
        )
        return self.state.current_address

    # -- mutations -----------------------------------------------------

    def insert(self, at: int, lines: Sequence[str]) -> int:
        """Insert ``lines`` after address ``at`` (0 inserts at the top)."""

        ensure_address(at, self.last_address, allow_zero=True)
        self._check_capacity(len(lines), lines)
        with Mutation(self, "insert", count=len(lines)):
            self._insert_block(at, lines)
            if lines:
                self.state.current_address = at + len(lines)
        return self.state.current_address

    def delete(self, first: int, second: int) -> int:
        ensure_range(first, second, self.last_address)
        with Mutation(self, "delete", first=first, second=second):
            self.register.store(self._remove_block(first - 1, second - first + 1))
            self.state.current_address = min(first, self.last_address)
        return self.state.current_address

    def move(self, first: int, second: int, dest: int) -> int:
        ensure_range(first, second, self.last_address)
        ensure_address(dest, self.last_address, allow_zero=True)
        if first <= dest < second:
            raise InvalidAddress("Invalid destination", address=dest)
        if dest in (first - 1, second):
            self.state.current_address = second
            return second

        count = second - first + 1
        with Mutation(self, "move", first=first, second=second, dest=dest):
            carried = self.marks.within(first, second)
            texts = self._remove_block(first - 1, count)
            after = dest if dest < first else dest - count
            self._insert_block(after, texts)
            for key, address in carried:
                self.marks.set(key, address - first + after + 1)
            self.state.current_address = after + count
        return self.state.current_address

    def copy(self, first: int, second: int, dest: int) -> int:
        """Duplicate ``first..second`` after ``dest``.

        When ``dest`` falls inside the source range the copy runs in two
        passes: the lines up to ``dest`` first, then the lines that now
        follow the freshly inserted block. ``1,3t2`` on ``a b c`` yields
        ``a b a b c c``.
        """

        ensure_range(first, second, self.last_address)
        ensure_address(dest, self.last_address, allow_zero=True)
        if first <= dest < second:
            passes = [(first, dest - first + 1), (None, second - dest)]
        else:
            passes = [(first, second - first + 1)]
        self._check_capacity(second - first + 1)

        with Mutation(self, "copy", first=first, second=second, dest=dest):
            current = dest
            for source, count in passes:
                start = current + 1 if source is None else source
                texts = self._lines[start - 1 : start - 1 + count]
                self._insert_block(current, texts)
                current += count
            self.state.current_address = current
        return current

    def join(self, first: int, second: int) -> int:
        if not 1 <= first < second <= self.last_address:
            raise InvalidAddress(address=second)
        joined = "".join(self._lines[first - 1 : second])
        self._check_length(joined)
        with Mutation(self, "join", first=first, second=second):
            self.register.store(self._remove_block(first - 1, second - first + 1))
            self._insert_block(first - 1, [joined])
            self.state.current_address = first
        return first

    def modify(self, address: int, text: str) -> int:
        ensure_address(address, self.last_address)
        self._check_length(text)
        with Mutation(self, "modify", address=address):
            self._replace_at(address - 1, text)
            self.state.current_address = address
        return address

    def replace_line(self, address: int, texts: Sequence[str]) -> int:
        """Replace one line by one or more lines; returns the last new address."""

        if len(texts) == 1:
            return self.modify(address, texts[0])
        ensure_address(address, self.last_address)
        self._check_capacity(len(texts) - 1, texts)
        with Mutation(self, "replace", address=address, count=len(texts)):
            self._replace_at(address - 1, texts[0])
            self._insert_block(address, texts[1:])
            self.state.current_address = address + len(texts) - 1
        return self.state.current_address

    def yank(self, first: int, second: int) -> int:
        """Copy a range into the register; the current address is unchanged."""

        self.register.store(self.get_lines(first, second))
        return self.state.current_address

    def put(self, at: int) -> int:
        if not self.register:
            raise NothingToPut()
        ensure_address(at, self.last_address, allow_zero=True)
        return self.insert(at, self.register.contents())

    def mark(self, address: int, key: str) -> None:
        ensure_address(address, self.last_address)
        self.marks.set(key, address)

    def resolve_mark(self, key: str) -> int:
        return self.marks.get(key)

    def replace_all(self, lines: Iterable[str]) -> int:
        """Load a fresh buffer for ``e``; marks and undo history are dropped."""

        texts = list(lines)
        if len(texts) > self.max_lines:
            raise InvalidCommand("Too many lines in buffer")
        with telemetry.span(
            "buffer::replace_all",
            component="buffer",
            metadata={"buffer": self.name, "count": len(texts)},
        ):
            self._lines = texts
            self.marks.clear()
            self.journal.reset()
            self.state = BufferState(current_address=len(texts))
        return self.state.current_address

    def reset(self) -> None:
        self.replace_all(())

    def mark_saved(self) -> None:
        self.state.set_modified(False)

    # -- raw operations (journaled, no validation) -----------------------

    def _insert_block(self, index: int, texts: Sequence[str]) -> None:
        if not texts:
            return
        self._lines[index:index] = texts
        for offset in range(len(texts)):
            self.journal.record(LineAdded(index + offset))
        self.marks.lines_inserted(index + 1, len(texts))
        for observer in list(self._observers):
            observer.lines_inserted(index + 1, len(texts))

    def _remove_block(self, index: int, count: int) -> List[str]:
        removed = self._lines[index : index + count]
        del self._lines[index : index + count]
        for text in removed:
            self.journal.record(LineDeleted(index, text))
        self.marks.lines_removed(index + 1, index + count)
        for observer in list(self._observers):
            observer.lines_removed(index + 1, index + count)
        return removed

    def _replace_at(self, index: int, text: str) -> str:
        previous = self._lines[index]
        self._lines[index] = text
        self.journal.record(LineChanged(index, previous))
        return previous

    def _check_capacity(self, count: int, texts: Sequence[str] = ()) -> None:
        if self.last_address + count > self.max_lines:
            raise InvalidCommand("Too many lines in buffer")
        for text in texts:
            self._check_length(text)

    def _check_length(self, text: str) -> None:
        if self.max_line_length and len(text) > self.max_line_length:
            raise InvalidCommand("Line too long")


class Mutation(AbstractContextManager["Mutation"]):
    """Profiled, interrupt-shielded unit of buffer change."""

    def __init__(self, buffer: LineBuffer, label: str, **metadata: object) -> None:
        self.buffer = buffer
        self.label = label
        self.metadata = metadata
        self._span_cm: Optional[ContextManager[object]] = None
        self._atoms_before = 0

    def __enter__(self) -> "Mutation":
        self._atoms_before = len(self.buffer.journal)
        self._span_cm = telemetry.span(
            name=f"buffer::{self.label}",
            component="buffer",
            metadata={"buffer": self.buffer.name, **self.metadata},
        )
        self._span_cm.__enter__()
        self.buffer.guard.disable()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if len(self.buffer.journal) != self._atoms_before:
            self.buffer.state.set_modified(True)
        if self._span_cm is not None:
            self._span_cm.__exit__(exc_type, exc, tb)
        self.buffer.guard.enable(deliver=exc_type is None)
        return False


__all__ = ["LineBuffer", "LineObserver", "Mutation"]
