"""Reading and writing buffers to files or ``!command`` pipes."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from ed_engine.errors import IOFailure
from ed_engine.runtime import telemetry

from .shell import ShellRunner


@dataclass(slots=True)
class ReadResult:
    lines: List[str]
    byte_count: int
    unterminated: bool = False
    binary: bool = False


@dataclass(slots=True)
class WriteResult:
    byte_count: int
    output: List[str] = field(default_factory=list)


def is_shell_target(name: str) -> bool:
    return name.startswith("!")


def decode_lines(data: bytes, *, strip_cr: bool = False) -> ReadResult:
    """Split raw bytes into lines; undecodable bytes survive a round trip."""

    binary = b"\0" in data
    chunks = data.split(b"\n")
    unterminated = bool(data) and not data.endswith(b"\n")
    if not unterminated:
        chunks.pop()
    if strip_cr:
        chunks = [chunk[:-1] if chunk.endswith(b"\r") else chunk for chunk in chunks]
    lines = [chunk.decode("utf-8", errors="surrogateescape") for chunk in chunks]
    return ReadResult(lines, len(data), unterminated=unterminated, binary=binary)


def encode_lines(lines: Sequence[str], *, keep_unterminated: bool = False) -> bytes:
    if not lines:
        return b""
    data = "\n".join(lines).encode("utf-8", errors="surrogateescape")
    return data if keep_unterminated else data + b"\n"


class FileIO:
    """File and pipe access used by ``e``, ``r``, ``w`` and ``W``."""

    def __init__(
        self,
        *,
        runner: Optional[ShellRunner] = None,
        strip_cr: bool = False,
    ) -> None:
        self.runner = runner or ShellRunner()
        self.strip_cr = strip_cr

    def read_lines(self, source: str) -> ReadResult:
        if is_shell_target(source):
            data = self.runner.capture(source[1:])
        else:
            try:
                data = Path(source).read_bytes()
            except FileNotFoundError as exc:
                raise IOFailure(f"{source}: No such file or directory") from exc
            except IsADirectoryError as exc:
                raise IOFailure(f"{source}: Is a directory") from exc
            except OSError as exc:
                raise IOFailure(f"Cannot open input file: {exc.strerror or exc}") from exc
        result = decode_lines(data, strip_cr=self.strip_cr)
        telemetry.record_event(
            "io.read",
            level="debug",
            data={"source": source, "bytes": result.byte_count, "lines": len(result.lines)},
        )
        return result

    def write_lines(
        self,
        target: str,
        lines: Sequence[str],
        *,
        append: bool = False,
        keep_unterminated: bool = False,
    ) -> WriteResult:
        data = encode_lines(lines, keep_unterminated=keep_unterminated)
        if is_shell_target(target):
            output = self.runner.feed(target[1:], data)
            return WriteResult(len(data), output)
        try:
            with open(target, "ab" if append else "wb") as handle:
                handle.write(data)
        except OSError as exc:
            raise IOFailure(f"Cannot open output file: {exc.strerror or exc}") from exc
        telemetry.record_event(
            "io.write",
            level="debug",
            data={"target": target, "bytes": len(data), "append": append},
        )
        return WriteResult(len(data))


__all__ = ["FileIO", "ReadResult", "WriteResult", "decode_lines", "encode_lines", "is_shell_target"]
