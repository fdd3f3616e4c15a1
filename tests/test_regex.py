from __future__ import annotations

import pytest

from ed_engine.errors import PatternCompileError
from ed_engine.search import PosixRegexEngine, translate


@pytest.mark.parametrize(
    ("pattern", "expected"),
    [
        (r"\(ab\)*", "(ab)*"),
        ("a+b?", r"a\+b\?"),
        ("(x|y)", r"\(x\|y\)"),
        ("*a", r"\*a"),
        (r"a\{2\}", "a{2}"),
        ("[[:digit:]]x", "[0-9]x"),
        (r"\<the\>", r"\bthe\b"),
        ("a^b", r"a\^b"),
        ("a$b", r"a\$b"),
        ("^a$", "^a$"),
    ],
)
def test_basic_translation(pattern: str, expected: str) -> None:
    assert translate(pattern) == expected


def test_extended_mode_keeps_operators() -> None:
    assert translate("(a|b)+", extended=True) == "(a|b)+"


def test_compile_matches_posix_semantics() -> None:
    engine = PosixRegexEngine()

    regex = engine.compile(r"^\([a-z]*\)[[:space:]]\1$")

    assert regex.search("echo echo")
    assert not regex.search("echo Echo")


def test_compile_ignore_case() -> None:
    regex = PosixRegexEngine().compile("abc", ignore_case=True)

    assert regex.search("xABCx")


def test_invalid_pattern_raises() -> None:
    with pytest.raises(PatternCompileError):
        PosixRegexEngine().compile(r"\(")


def test_unbalanced_bracket_raises() -> None:
    with pytest.raises(PatternCompileError):
        translate("[abc")
