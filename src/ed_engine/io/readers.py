"""Line sources for command input: in-memory queues and text streams."""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, Optional, Protocol, TextIO, Union


class LineReader(Protocol):
    def read_line(self) -> Optional[str]:
        """Return the next input line without its newline, or ``None`` at EOF."""
        ...


class QueueReader:
    """In-memory line source for scripts, tests, and global command lists."""

    def __init__(self, lines: Iterable[str] = ()) -> None:
        self._lines: Deque[str] = deque(lines)

    def feed(self, source: Union[str, Iterable[str]]) -> None:
        if isinstance(source, str):
            lines = source.split("\n")
            if lines and lines[-1] == "":
                lines.pop()
            self._lines.extend(lines)
        else:
            self._lines.extend(source)

    def read_line(self) -> Optional[str]:
        return self._lines.popleft() if self._lines else None

    def __len__(self) -> int:
        return len(self._lines)


class StreamReader:
    def __init__(self, stream: TextIO) -> None:
        self.stream = stream

    def read_line(self) -> Optional[str]:
        line = self.stream.readline()
        if not line:
            return None
        return line[:-1] if line.endswith("\n") else line


__all__ = ["LineReader", "QueueReader", "StreamReader"]
