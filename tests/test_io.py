from __future__ import annotations

from pathlib import Path

import pytest

from ed_engine.errors import IOFailure
from ed_engine.io import FileIO, QueueReader, ShellRunner, WriteResult, decode_lines, encode_lines


def test_decode_lines_splits_terminated_text() -> None:
    result = decode_lines(b"one\ntwo\n")

    assert result.lines == ["one", "two"]
    assert result.byte_count == 8
    assert result.unterminated is False


def test_decode_lines_flags_missing_newline() -> None:
    result = decode_lines(b"one\ntwo")

    assert result.lines == ["one", "two"]
    assert result.unterminated is True


def test_decode_lines_strips_carriage_returns() -> None:
    result = decode_lines(b"a\r\nb\r\n", strip_cr=True)

    assert result.lines == ["a", "b"]


def test_undecodable_bytes_survive_round_trip() -> None:
    raw = b"caf\xe9\n"

    assert encode_lines(decode_lines(raw).lines) == raw


def test_encode_lines() -> None:
    assert encode_lines([]) == b""
    assert encode_lines(["a", "b"]) == b"a\nb\n"
    assert encode_lines(["a"], keep_unterminated=True) == b"a"


def test_missing_file_raises_io_failure(tmp_path: Path) -> None:
    files = FileIO()

    with pytest.raises(IOFailure):
        files.read_lines(str(tmp_path / "missing.txt"))


def test_write_then_append(tmp_path: Path) -> None:
    files = FileIO()
    target = str(tmp_path / "out.txt")

    assert files.write_lines(target, ["a"]) == WriteResult(2)
    files.write_lines(target, ["b"], append=True)

    assert files.read_lines(target).lines == ["a", "b"]


def test_shell_runner_run_and_filter() -> None:
    runner = ShellRunner()

    assert runner.run("echo hi") == ["hi"]
    assert runner.filter("tr a-z A-Z", b"abc\n") == b"ABC\n"


def test_read_from_command() -> None:
    result = FileIO().read_lines("!printf 'x\\ny\\n'")

    assert result.lines == ["x", "y"]
    assert result.byte_count == 4


def test_write_to_command_returns_its_output() -> None:
    assert FileIO().write_lines("!cat", ["a"]) == WriteResult(2, ["a"])


def test_queue_reader_feeds_lines_in_order() -> None:
    reader = QueueReader(["one"])
    reader.feed("two\nthree\n")

    assert len(reader) == 3
    assert [reader.read_line() for _ in range(4)] == ["one", "two", "three", None]
