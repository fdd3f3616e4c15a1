from __future__ import annotations

import io
from pathlib import Path

import pytest

from ed_engine.cli import _parse_args, build_config, load_initial, run, save_hangup
from ed_engine.runtime.config import EngineConfig
from ed_engine.session import EditingSession


def test_build_config_maps_flags() -> None:
    args = _parse_args(["-s", "-p", ">", "-E", "notes.txt"])

    config = build_config(args, environ={})

    assert config.scripted is True
    assert config.prompt == ">"
    assert config.prompt_on is True
    assert config.extended_regexp is True
    assert args.file == "notes.txt"


def test_run_reads_commands_from_stream() -> None:
    session = EditingSession.from_lines(["one", "two"], config=EngineConfig(scripted=True))
    out = io.StringIO()
    printed = []
    session.printer = printed.append

    status = run(session, io.StringIO("2p\nq\n"), out)

    assert status == 0
    assert printed == ["two"]
    assert out.getvalue() == ""


def test_run_shows_prompt_and_reports_failure() -> None:
    config = EngineConfig(scripted=True, prompt_on=True, prompt=":")
    session = EditingSession(config=config)
    out = io.StringIO()

    status = run(session, io.StringIO("1p\n"), out)

    assert status == 1
    assert out.getvalue() == ":" * 2


def test_load_initial_remembers_missing_filename(tmp_path: Path) -> None:
    session = EditingSession(config=EngineConfig(scripted=True))
    target = str(tmp_path / "new.txt")

    load_initial(session, target)

    assert session.buffer.filename == target
    assert session.error_seen


def test_save_hangup_writes_modified_buffer(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    session = EditingSession(config=EngineConfig(scripted=True))
    session.run_script("a\nkeep me\n.\n")

    target = save_hangup(session)

    assert target == tmp_path / "ed.hup"
    assert target.read_text() == "keep me\n"


def test_save_hangup_skips_clean_buffer() -> None:
    session = EditingSession.from_lines(["x"], config=EngineConfig(scripted=True))

    assert save_hangup(session) is None
