from __future__ import annotations

from pathlib import Path
from typing import Any, List

import pytest

from ed_engine.errors import InvalidCommand, Quit
from ed_engine.runtime.config import EngineConfig
from ed_engine.session import EditingSession


def make_session(*lines: str, **overrides: Any) -> EditingSession:
    overrides.setdefault("scripted", True)
    config = EngineConfig().with_overrides(**overrides)
    return EditingSession.from_lines(lines, config=config)


def run(session: EditingSession, script: str) -> List[str]:
    return session.run_script(script).output


def test_append_reads_until_dot() -> None:
    session = make_session("one")

    output = run(session, "a\ntwo\nthree\n.\n,p\n")

    assert output == ["one", "two", "three"]
    assert session.buffer.current_address == 3


def test_insert_before_addressed_line() -> None:
    session = make_session("b")

    output = run(session, "1i\na\n.\n,p\n")

    assert output == ["a", "b"]


def test_change_replaces_range() -> None:
    session = make_session("a", "b", "c")

    result = session.run_script("2c\nB\n.\n,p\nQ\n")

    assert result.output == ["a", "B", "c"]
    assert result.quit is True


def test_delete_then_undo() -> None:
    session = make_session("a", "b", "c", "d")

    output = run(session, "2,3d\n,p\nu\n,p\n.=\n")

    assert output == ["a", "d", "a", "b", "c", "d", "4"]


def test_undo_toggles() -> None:
    session = make_session("a")

    output = run(session, "s/a/b/\nu\nu\np\n")

    assert output == ["b"]


def test_move_and_transfer() -> None:
    session = make_session("a", "b", "c")

    assert run(session, "1m$\n,p\n") == ["b", "c", "a"]
    assert run(session, "1,3t2\n,p\n") == ["b", "c", "b", "c", "a", "a"]


def test_join_default_range() -> None:
    session = make_session("ab", "cd", "ef")

    output = run(session, "1\nj\n,p\n")

    assert output == ["ab", "abcd", "ef"]


def test_print_modes() -> None:
    session = make_session("x", "a\tb$")

    output = run(session, "1,2n\n2l\n")

    assert output == ["1\tx", "2\ta\tb$", "a\\tb\\$$"]


def test_null_command_advances() -> None:
    session = make_session("a", "b", "c")

    output = run(session, "1\n\n")

    assert output == ["a", "b"]


def test_line_number_defaults_to_last() -> None:
    session = make_session("a", "b")

    assert run(session, "=\n1=\n") == ["2", "1"]


def test_marks_as_addresses() -> None:
    session = make_session("a", "b", "c")

    output = run(session, "2ka\n'a,$p\n")

    assert output == ["b", "c"]


def test_yank_and_put() -> None:
    session = make_session("a", "b")

    output = run(session, "1y\n$x\n,p\n")

    assert output == ["a", "b", "a"]


def test_search_address_prints_match() -> None:
    session = make_session("alpha", "beta", "gamma")

    assert run(session, "?alp?p\n/mm/\n") == ["alpha", "gamma"]


def test_substitute_repeat_and_print_suffix() -> None:
    session = make_session("aaa")

    output = run(session, "s/a/b/\ns\np\ns/b/c/gp\n")

    assert output == ["bba", "cca"]


def test_substitute_newline_in_replacement() -> None:
    session = make_session("ab")

    output = run(session, "s/a/x\\\n/\n,p\n")

    assert output == ["x", "b"]


def test_scroll_uses_window_size() -> None:
    session = make_session(*[str(number) for number in range(1, 31)])

    output = run(session, "1z5\nz\n")

    assert output == [str(number) for number in range(1, 11)]
    assert session.window_lines == 5


def test_errors_print_question_mark_and_help() -> None:
    session = make_session("a")

    result = session.run_script("5p\nh\n")

    assert result.output == ["?", "Invalid address"]
    assert result.exit_status == 1


def test_verbose_mode_explains_errors() -> None:
    session = make_session("a")

    output = run(session, "H\nZ\n")

    assert output == ["?", "Unknown command 'Z'"]


def test_loose_exit_status() -> None:
    session = make_session("a", loose_exit_status=True)

    assert session.run_script("5p\n").exit_status == 0


def test_address_on_address_free_command() -> None:
    session = make_session("a")

    assert run(session, "1q\n") == ["?"]
    assert session.last_error == "Unexpected address"


def test_bad_suffix_is_rejected() -> None:
    session = make_session("a")

    assert run(session, "px\n") == ["?"]
    assert session.last_error == "Invalid command suffix"


def test_quit_warns_once_on_unsaved_changes() -> None:
    session = make_session("a", scripted=False)

    result = session.run_script("d\nq\nq\n")

    assert result.output == ["?"]
    assert result.quit is True
    assert session.last_error == "Warning: buffer modified"


def test_end_of_input_warns_when_interactive() -> None:
    session = make_session("a", scripted=False)

    result = session.run_script("d\n")

    assert result.output == ["?"]
    assert result.quit is True


def test_force_quit_skips_warning() -> None:
    session = make_session("a")
    session.buffer.clear_undo()
    session.buffer.delete(1, 1)

    with pytest.raises(Quit):
        session.execute("Q")


def test_execute_raises_editor_errors() -> None:
    session = make_session("a")

    with pytest.raises(InvalidCommand):
        session.execute("Z")


def test_execute_returns_result() -> None:
    session = make_session("a", "b")

    result = session.execute("1p")

    assert result.ok
    assert result.output == ["a"]
    assert result.current_address == 1


def test_prompt_toggle() -> None:
    session = make_session("a")

    run(session, "P\n")

    assert session.prompt_on is True


def test_write_and_quit(tmp_path: Path) -> None:
    target = tmp_path / "out.txt"
    session = make_session("a", scripted=False)

    result = session.run_script(f"a\nb\n.\nw {target}\nq\n")

    assert result.output == ["4"]
    assert result.quit is True
    assert target.read_bytes() == b"a\nb\n"
    assert session.buffer.filename == str(target)
    assert session.buffer.modified is False


def test_wq_writes_then_quits(tmp_path: Path) -> None:
    target = tmp_path / "out.txt"
    session = make_session("x", scripted=False)

    result = session.run_script(f"wq {target}\n")

    assert result.output == ["2"]
    assert result.quit is True
    assert target.read_text() == "x\n"


def test_write_append(tmp_path: Path) -> None:
    target = tmp_path / "out.txt"
    target.write_text("first\n")
    session = make_session("second")

    run(session, f"W {target}\n")

    assert target.read_text() == "first\nsecond\n"


def test_partial_write_keeps_buffer_modified(tmp_path: Path) -> None:
    target = tmp_path / "part.txt"
    session = make_session("a", "b")

    run(session, f"1s/a/A/\nf {target}\n1w\n")

    assert target.read_text() == "A\n"
    assert session.buffer.modified is True


def test_read_appends_file(tmp_path: Path) -> None:
    source = tmp_path / "in.txt"
    source.write_text("x\ny\n")
    session = make_session("a", scripted=False)

    output = run(session, f"r {source}\n,p\nQ\n")

    assert output == ["4", "a", "x", "y"]
    assert session.buffer.filename == str(source)


def test_edit_warns_then_loads(tmp_path: Path) -> None:
    source = tmp_path / "in.txt"
    source.write_text("one\n")
    session = make_session("a", scripted=False)

    result = session.run_script(f"s/a/b/\ne {source}\ne {source}\n,p\n")

    assert result.output == ["?", "4", "one"]
    assert session.buffer.modified is False


def test_edit_missing_file_reports_error(tmp_path: Path) -> None:
    session = make_session("a")

    assert run(session, f"e {tmp_path / 'missing.txt'}\n") == ["?"]
    assert "No such file" in (session.last_error or "")


def test_filename_command(tmp_path: Path) -> None:
    session = make_session("a")

    assert run(session, "f\n") == ["?"]
    assert run(session, f"f {tmp_path / 'name.txt'}\nf\n") == [
        str(tmp_path / "name.txt"),
        str(tmp_path / "name.txt"),
    ]


def test_shell_escape_prints_output() -> None:
    session = make_session("a", scripted=False)

    assert run(session, "!echo hi\n") == ["hi", "!"]


def test_shell_filter_replaces_range() -> None:
    session = make_session("b", "a", scripted=False)

    output = run(session, "1,2!sort\n,p\nQ\n")

    assert output == ["4", "a", "b"]


def test_shell_repeat_and_filename_expansion(tmp_path: Path) -> None:
    session = make_session("a", scripted=False)
    session.buffer.filename = str(tmp_path / "doc.txt")

    output = run(session, "!echo %\n!!\n")

    expected = f"echo {tmp_path / 'doc.txt'}"
    assert output == [expected, str(tmp_path / "doc.txt"), "!", expected, str(tmp_path / "doc.txt"), "!"]


def test_read_from_command() -> None:
    session = make_session("a", scripted=False)

    output = run(session, "r !echo hi\n,p\nQ\n")

    assert output == ["3", "a", "hi"]
    assert session.buffer.filename is None


def test_restricted_mode_blocks_shell() -> None:
    session = make_session("a", restricted=True)

    assert run(session, "!ls\n") == ["?"]
    assert run(session, "r !ls\n") == ["?"]
    assert run(session, "e ../x\n") == ["?"]
