"""Minimal Textual adapter that wires EditingSession events into UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ed_engine.errors import EdError, Quit
from ed_engine.session import CommandResult, EditingSession

_TEXT_COMMANDS = ("a", "i", "c")


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_buffer: Callable[[List[str]], None]
    update_status: Callable[[str], None] = _noop
    show_output: Callable[[str], None] = _noop
    handle_event: Callable[[str, object | None], None] = _noop
    # Optional realtime log callback a host may use to surface debug lines
    log: Callable[[str], None] = _noop


class TextualEdAdapter:
    """Bridges an EditingSession and its bus events to a Textual-friendly surface.

    Text-entry commands (``a``, ``i``, ``c``) are held back until the
    terminating ``.`` arrives, then run with the collected lines queued as
    session input.
    """

    def __init__(self, session: EditingSession, hooks: TextualUIHooks) -> None:
        self.session = session
        self.hooks = hooks
        self.quit_requested = False
        self._pending: Optional[str] = None
        self._text: List[str] = []
        self._subscribe_events()
        self._refresh_buffer()
        self._refresh_status()

    @property
    def collecting_text(self) -> bool:
        return self._pending is not None

    def submit(self, line: str) -> Optional[CommandResult]:
        """Handle one input line; returns ``None`` while text is being collected."""

        if self._pending is not None:
            if line != ".":
                self._text.append(line)
                return None
            command, text = self._pending, self._text
            self._pending, self._text = None, []
            self.session.queue_input(text + ["."])
            return self._run(command)
        if self._is_text_command(line):
            self._pending = line
            self._text = []
            self.hooks.update_status("text input, end with '.'")
            return None
        return self._run(line)

    def _run(self, line: str) -> CommandResult:
        session = self.session
        self._log_state("command ->", source=line)
        try:
            result = session.execute(line)
        except Quit:
            self.quit_requested = True
            result = self._result(line)
        except EdError as exc:
            session.report(exc)
            result = self._result(line, error=exc)
        for row in result.output:
            self.hooks.show_output(row)
        self._refresh_buffer()
        if result.error is None:
            self._refresh_status()
        self._log_state(
            "result <-",
            ok=result.ok,
            output=len(result.output),
        )
        return result

    def _result(self, line: str, *, error: Optional[EdError] = None) -> CommandResult:
        buffer = self.session.buffer
        return CommandResult(
            source=line,
            kind=None,
            output=self.session.last_output,
            current_address=buffer.current_address,
            modified=buffer.modified,
            error=error,
        )

    def _is_text_command(self, line: str) -> bool:
        try:
            rest = self.session.resolver.resolve(line).rest
        except EdError:
            return False
        return rest[:1] in _TEXT_COMMANDS and not rest[1:].strip("pln")

    def _subscribe_events(self) -> None:
        bus = self.session.bus
        for event in ("command.start", "command.end", "session.error", "session.quit"):
            bus.subscribe(
                event, lambda payload, name=event: self._handle_event(name, payload)
            )

    def _handle_event(self, name: str, payload: object | None) -> None:
        self._log_state("event ->", event=name)
        self.hooks.handle_event(name, payload)
        if name == "session.error" and isinstance(payload, EdError):
            self.hooks.update_status(f"? {payload}")
        elif name == "session.quit":
            self.quit_requested = True

    def _refresh_buffer(self) -> None:
        self.hooks.update_buffer(list(self.session.buffer.lines))

    def _refresh_status(self) -> None:
        self.hooks.update_status(self.status_line())

    def status_line(self) -> str:
        buffer = self.session.buffer
        name = buffer.filename or "[no file]"
        flag = " [modified]" if buffer.modified else ""
        return f"{name}{flag} {buffer.current_address}/{buffer.last_address}"

    def _log_state(self, prefix: str, **fields: object) -> None:
        snapshot = self._state_metadata()
        snapshot.update({k: v for k, v in fields.items() if v is not None})
        parts = [prefix]
        for key, value in snapshot.items():
            parts.append(f"{key}={value!r}")
        self.hooks.log(" ".join(parts))

    def _state_metadata(self) -> Dict[str, object]:
        buffer = self.session.buffer
        return {
            "buffer": buffer.name,
            "current": buffer.current_address,
            "last": buffer.last_address,
            "modified": buffer.modified,
        }


__all__ = ["TextualEdAdapter", "TextualUIHooks"]
