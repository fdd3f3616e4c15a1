from __future__ import annotations

from typing import Any, List

from ed_engine.runtime.config import EngineConfig
from ed_engine.session import EditingSession


def make_session(*lines: str, **overrides: Any) -> EditingSession:
    overrides.setdefault("scripted", True)
    config = EngineConfig().with_overrides(**overrides)
    return EditingSession.from_lines(lines, config=config)


def run(session: EditingSession, script: str) -> List[str]:
    return session.run_script(script).output


def test_global_delete_uses_snapshot() -> None:
    session = make_session("foo", "bar", "foo", "baz")

    output = run(session, "g/foo/d\n,p\n")

    assert output == ["bar", "baz"]


def test_inverted_global() -> None:
    session = make_session("a1", "b", "a2")

    assert run(session, "v/a/d\n,p\n") == ["a1", "a2"]


def test_default_command_list_prints() -> None:
    session = make_session("foo", "bar", "food")

    assert run(session, "g/foo/\n") == ["foo", "food"]
    assert session.buffer.current_address == 3


def test_global_substitution_reuses_pattern() -> None:
    session = make_session("foo", "bar", "foo baz")

    output = run(session, "g/foo/s//X/\n,p\n")

    assert output == ["X", "bar", "X baz"]


def test_multi_line_command_list() -> None:
    session = make_session("a", "b")

    output = run(session, "g/./s/$/!/\\\np\n")

    assert output == ["a!", "b!"]


def test_global_with_range() -> None:
    session = make_session("x", "x", "x")

    run(session, "2,3g/x/s//y/\n")

    assert session.buffer.lines == ("x", "y", "y")


def test_deleted_lines_leave_the_active_set() -> None:
    session = make_session("a", "b", "a", "c", "d")

    output = run(session, "g/a/.,+1d\n,p\n")

    assert output == ["d"]


def test_global_is_one_undo_unit() -> None:
    session = make_session("foo", "bar", "foo")

    output = run(session, "g/foo/s/o/0/g\nu\n,p\n")

    assert output == ["foo", "bar", "foo"]


def test_global_append_reads_text_from_command_list() -> None:
    session = make_session("a", "b")

    output = run(session, "g/a/a\\\nnew\\\n.\n,p\n")

    assert output == ["a", "new", "b"]


def test_nested_global_is_rejected() -> None:
    session = make_session("a")

    assert run(session, "g/a/g/a/p\n") == ["?"]
    assert session.last_error == "Cannot nest global commands"


def test_global_without_match_leaves_buffer() -> None:
    session = make_session("a")

    assert run(session, "g/zzz/d\n,p\n") == ["a"]


def test_interactive_global_runs_commands_per_line() -> None:
    session = make_session("a", "b", "c")

    output = run(session, "G/[ab]/\ns/$/X/\n&\n,p\n")

    assert output == ["a", "b", "aX", "bX", "c"]


def test_interactive_global_skips_empty_lines() -> None:
    session = make_session("a", "b")

    output = run(session, "V/zzz/\n\ns/$/!/\n,p\n")

    assert output == ["a", "b", "a", "b!"]


def test_interactive_repeat_needs_previous_command() -> None:
    session = make_session("a")

    assert run(session, "G/a/\n&\n") == ["a", "?"]


def test_substitution_in_command_list_splits_on_escaped_newline() -> None:
    session = make_session("a b", "c")

    output = run(session, "g/ /s/ /\\\n/\n,p\n")

    assert output == ["a", "b", "c"]


def test_escaped_newline_substitution_followed_by_more_commands() -> None:
    session = make_session("a b")

    output = run(session, "g/ /s/ /\\\n/\\\n,p\n")

    assert output == ["a", "b"]
    assert session.buffer.lines == ("a", "b")


def test_text_terminator_may_continue_command_list() -> None:
    session = make_session("a", "b")

    output = run(session, "g/a/a\\\nnew\\\n.\\\ns/new/NEW/\n,p\n")

    assert output == ["a", "NEW", "b"]
