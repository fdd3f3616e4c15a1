from __future__ import annotations

import pytest

from ed_engine.buffer import LineBuffer
from ed_engine.errors import Interrupted
from ed_engine.runtime.config import EngineConfig
from ed_engine.runtime.interrupts import InterruptGuard
from ed_engine.session import EditingSession


def test_deliver_outside_critical_raises() -> None:
    guard = InterruptGuard()

    with pytest.raises(Interrupted):
        guard.deliver()
    assert guard.pending is None


def test_interrupt_latched_until_critical_section_closes() -> None:
    guard = InterruptGuard()
    reached_end = False

    with pytest.raises(Interrupted):
        with guard.critical():
            with guard.critical():
                guard.deliver("SIGINT")
            assert guard.pending == "SIGINT"
            reached_end = True

    assert reached_end
    assert guard.depth == 0
    assert guard.pending is None


def test_latch_survives_exception_and_poll_raises() -> None:
    guard = InterruptGuard()

    with pytest.raises(ValueError):
        with guard.critical():
            guard.deliver()
            raise ValueError("boom")

    assert guard.pending == "SIGINT"
    with pytest.raises(Interrupted):
        guard.poll()


def test_poll_without_pending_is_quiet() -> None:
    guard = InterruptGuard()

    guard.poll()


def test_unbalanced_enable_is_an_error() -> None:
    with pytest.raises(RuntimeError):
        InterruptGuard().enable()


def test_buffer_mutation_completes_before_interrupt() -> None:
    guard = InterruptGuard()
    buffer = LineBuffer()
    buffer.guard = guard

    with pytest.raises(Interrupted):
        with guard.critical():
            guard.deliver()
            buffer.insert(0, ["a", "b"])

    assert buffer.lines == ("a", "b")


class _InterruptOnRemoval:
    def __init__(self, guard: InterruptGuard) -> None:
        self.guard = guard
        self.fired = False

    def lines_inserted(self, address: int, count: int) -> None:
        pass

    def lines_removed(self, first: int, last: int) -> None:
        if not self.fired:
            self.fired = True
            self.guard.deliver()


def _session_interrupted_on_removal(*lines: str) -> EditingSession:
    session = EditingSession.from_lines(lines, config=EngineConfig(scripted=True))
    session.buffer.add_observer(_InterruptOnRemoval(session.guard))
    return session


def test_change_finishes_before_interrupt_is_delivered() -> None:
    session = _session_interrupted_on_removal("a", "b", "c")

    output = session.run_script("2c\nNEW\n.\n").output

    assert output == ["?"]
    assert session.buffer.lines == ("a", "NEW", "c")
    assert session.last_error == "Interrupt"


def test_filter_finishes_before_interrupt_is_delivered() -> None:
    session = _session_interrupted_on_removal("b", "a")

    output = session.run_script("1,2!sort\n").output

    assert output == ["?"]
    assert session.buffer.lines == ("a", "b")
