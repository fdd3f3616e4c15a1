from __future__ import annotations

from typing import Optional

import pytest

from ed_engine.address import AddressResolver
from ed_engine.buffer import LineBuffer
from ed_engine.errors import InvalidAddress, PatternNotFound
from ed_engine.search import PatternCache


def make_resolver(*lines: str, current: Optional[int] = None) -> AddressResolver:
    buffer = LineBuffer(lines)
    if current is not None:
        buffer.current_address = current
    return AddressResolver(buffer, PatternCache())


def test_no_address_defaults_to_current_line() -> None:
    resolver = make_resolver("a", "b", "c", current=2)

    result = resolver.resolve("p")

    assert (result.first, result.second, result.count) == (2, 2, 0)
    assert result.given is False
    assert result.rest == "p"


@pytest.mark.parametrize("prefix", [",", "%"])
def test_comma_and_percent_mean_whole_buffer(prefix: str) -> None:
    resolver = make_resolver("a", "b", "c", current=1)

    result = resolver.resolve(prefix + "p")

    assert (result.first, result.second) == (1, 3)
    assert result.rest == "p"


def test_semicolon_alone_runs_from_current_to_last() -> None:
    resolver = make_resolver("a", "b", "c", current=2)

    result = resolver.resolve(";p")

    assert (result.first, result.second) == (2, 3)


def test_semicolon_after_address_updates_current() -> None:
    resolver = make_resolver("a", "b", "c", current=1)

    result = resolver.resolve("2;+1p")

    assert (result.first, result.second) == (2, 3)
    assert resolver.buffer.current_address == 2


def test_offsets_apply_to_running_value() -> None:
    resolver = make_resolver("a", "b", "c", current=3)

    assert resolver.resolve(".-1").second == 2
    assert resolver.resolve("-").second == 2
    assert resolver.resolve("$--").second == 1
    assert resolver.resolve("1+2").second == 3


def test_explicit_pair() -> None:
    resolver = make_resolver("a", "b", "c")

    result = resolver.resolve("2,3n")

    assert (result.first, result.second, result.count) == (2, 3, 2)
    assert result.rest == "n"


def test_address_zero_is_resolved() -> None:
    resolver = make_resolver("a")

    result = resolver.resolve("0a")

    assert (result.first, result.second) == (0, 0)


def test_address_past_last_line_fails() -> None:
    resolver = make_resolver("a", "b", "c")

    with pytest.raises(InvalidAddress):
        resolver.resolve("5p")
    with pytest.raises(InvalidAddress):
        resolver.resolve("1-2p")


def test_forward_and_backward_search() -> None:
    resolver = make_resolver("alpha", "beta", "gamma", current=3)

    assert resolver.resolve("/et/").second == 2
    assert resolver.resolve("?alp?").second == 1


def test_search_tests_current_line_last() -> None:
    resolver = make_resolver("x", "y", "x", current=1)

    assert resolver.resolve("/x/").second == 3


def test_empty_search_reuses_last_pattern() -> None:
    resolver = make_resolver("x", "y", "x", current=1)

    resolver.resolve("/x/")
    resolver.buffer.current_address = 3

    assert resolver.resolve("//").second == 1


def test_search_without_match_fails() -> None:
    resolver = make_resolver("a", "b")

    with pytest.raises(PatternNotFound):
        resolver.resolve("/zzz/")


def test_mark_address() -> None:
    resolver = make_resolver("a", "b", "c")
    resolver.buffer.mark(2, "q")

    result = resolver.resolve("'q,$p")

    assert (result.first, result.second) == (2, 3)


def test_unset_mark_fails() -> None:
    resolver = make_resolver("a")

    with pytest.raises(InvalidAddress):
        resolver.resolve("'z")


def test_destination_defaults_to_current() -> None:
    resolver = make_resolver("a", "b", "c", current=2)

    assert resolver.resolve_destination("") == (2, "")
    assert resolver.resolve_destination("0p") == (0, "p")
    with pytest.raises(InvalidAddress):
        resolver.resolve_destination("", required=True)
