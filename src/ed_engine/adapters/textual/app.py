"""Executable Textual app that hosts the line editor."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

try:  # pragma: no cover - imported only when the app is run
    from textual.app import App, ComposeResult
    from textual.containers import Vertical
    from textual.widgets import Footer, Header, Input, RichLog, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use ed_engine.adapters.textual.app"
    ) from exc

from ed_engine.errors import EdError
from ed_engine.runtime.config import EngineConfig
from ed_engine.session import EditingSession

from .controller import TextualEdAdapter, TextualUIHooks


def create_session(filename: Optional[str] = None, *, config: Optional[EngineConfig] = None) -> EditingSession:
    """Build a session, loading ``filename`` the way ``e`` would."""

    session = EditingSession(config=config)
    if filename:
        try:
            session.executor.load(filename)
        except EdError as exc:
            session.report(exc)
    return session


@dataclass
class UIState:
    buffer_lines: List[str] = field(default_factory=list)
    status_text: str = ""


class EdEngineApp(App[None]):
    """Minimal Textual UI embedding the line editor."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#buffer-view {
		height: 1fr;
		border: round $accent;
		padding: 0 1;
		overflow: auto;
	}

	#output-log {
		height: 8;
		border: round $surface-lighten-1;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, *, filename: Optional[str] = None, config: Optional[EngineConfig] = None) -> None:
        super().__init__()
        self._state = UIState()
        self._filename = filename
        self._config = config
        self.session: EditingSession | None = None
        self.adapter: TextualEdAdapter | None = None
        self._buffer_widget: Static | None = None
        self._status_widget: Static | None = None
        self._output_widget: RichLog | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="buffer-area"):
            self._buffer_widget = Static("", id="buffer-view", markup=False)
            yield self._buffer_widget
        self._output_widget = RichLog(id="output-log", markup=False)
        yield self._output_widget
        self._status_widget = Static("", id="status-line", markup=False)
        yield self._status_widget
        yield Input(placeholder="ed command", id="command-line")
        yield Footer()

    def on_mount(self) -> None:
        self.session = create_session(self._filename, config=self._config)
        hooks = TextualUIHooks(
            update_buffer=self._update_buffer,
            update_status=self._update_status,
            show_output=self._show_output,
            handle_event=self._handle_event,
        )
        self.adapter = TextualEdAdapter(self.session, hooks)
        for line in self.session.last_output:
            self._show_output(line)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if not self.adapter:
            return
        event.input.value = ""
        self.adapter.submit(event.value)
        if self.adapter.quit_requested:
            self.exit()

    def _update_buffer(self, lines: List[str]) -> None:
        self._state.buffer_lines = lines
        if self._buffer_widget:
            width = len(str(len(lines)))
            rendered = "\n".join(
                f"{index:>{width}}  {text}" for index, text in enumerate(lines, start=1)
            )
            self._buffer_widget.update(rendered)

    def _update_status(self, status: str) -> None:
        self._state.status_text = status
        if self._status_widget:
            self._status_widget.update(status)

    def _show_output(self, line: str) -> None:
        if self._output_widget:
            self._output_widget.write(line)

    def _handle_event(self, name: str, payload: Any | None) -> None:
        if name == "command.start" and isinstance(payload, str):
            self._update_status(f"command::{payload}")


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the line editor in a Textual UI.")
    parser.add_argument("file", nargs="?", help="File to edit")
    parser.add_argument(
        "-E",
        "--extended-regexp",
        action="store_true",
        help="Use extended regular expressions",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Explain every error")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    config = EngineConfig.from_env().with_overrides(
        extended_regexp=args.extended_regexp or None,
        verbose=args.verbose or None,
    )
    app = EdEngineApp(filename=args.file, config=config)
    app.run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
