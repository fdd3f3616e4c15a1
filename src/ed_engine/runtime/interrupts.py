"""Nestable critical sections with latched interrupt re-delivery.

Signal handlers never unwind the interpreter in the middle of a buffer
mutation. ``InterruptGuard.deliver`` latches the interrupt while any
critical section is open and the outermost ``critical()`` block raises
``Interrupted`` on the way out.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from ed_engine.errors import Interrupted
from ed_engine.runtime import telemetry


class InterruptGuard:
    """Per-session interrupt counter."""

    def __init__(self) -> None:
        self._depth = 0
        self._pending: Optional[str] = None

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def pending(self) -> Optional[str]:
        return self._pending

    def disable(self) -> None:
        self._depth += 1

    def enable(self, *, deliver: bool = True) -> None:
        if self._depth == 0:
            raise RuntimeError("enable() called without matching disable()")
        self._depth -= 1
        if deliver and self._depth == 0 and self._pending is not None:
            self._redeliver()

    @contextmanager
    def critical(self) -> Iterator["InterruptGuard"]:
        self.disable()
        try:
            yield self
        except BaseException:
            # already unwinding; the latch survives until the next poll
            self.enable(deliver=False)
            raise
        self.enable()

    def deliver(self, reason: str = "SIGINT") -> None:
        """Called from a signal handler (or a UI) to request cancellation."""

        if self._depth > 0:
            self._pending = reason
            telemetry.record_event(
                "interrupt.latched", level="debug", data={"reason": reason, "depth": self._depth}
            )
            return
        self._pending = reason
        self._redeliver()

    def poll(self) -> None:
        """Raise a pending interrupt if no critical section is open."""

        if self._depth == 0 and self._pending is not None:
            self._redeliver()

    def _redeliver(self) -> None:
        reason = self._pending or "SIGINT"
        self._pending = None
        telemetry.record_event("interrupt.delivered", level="info", data={"reason": reason})
        raise Interrupted()


__all__ = ["InterruptGuard"]
