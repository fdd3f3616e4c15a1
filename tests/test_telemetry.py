from __future__ import annotations

from typing import Any, List

import pytest

from ed_engine.errors import NoMatch
from ed_engine.runtime import telemetry


class RecordingLogger:
    def __init__(self) -> None:
        self.calls: List[tuple[str, Any]] = []

    def info_with(self, message: str, pairs: Any) -> None:
        self.calls.append((message, pairs))

    def debug(self, message: str) -> None:
        self.calls.append((message, None))


def test_configure_rejects_config_and_preset_together() -> None:
    with pytest.raises(ValueError):
        telemetry.configure(config=object(), preset="development")


def test_configure_rejects_unknown_preset() -> None:
    with pytest.raises(ValueError):
        telemetry.configure(preset="verbose")


def test_structured_levels_receive_string_pairs() -> None:
    logger = RecordingLogger()

    telemetry._log(logger, "INFO", "event::write", {"bytes": 4, "lines": [1, 2]})

    assert logger.calls == [("event::write", [("bytes", "4"), ("lines", "[1, 2]")])]


def test_plain_levels_receive_formatted_message() -> None:
    logger = RecordingLogger()

    telemetry._log(logger, "debug", "event::read", {"bytes": 1})

    assert logger.calls == [("event::read {'bytes': 1}", None)]


def test_unknown_level_is_rejected() -> None:
    with pytest.raises(ValueError):
        telemetry._log(RecordingLogger(), "chatty", "event::x", {})


def test_span_summary_includes_component_and_results() -> None:
    handle = telemetry.SpanHandle("command::print", "commands", {"source": "p"})
    handle.add_metadata("printed", 2)

    assert handle.summary(reason="done") == {
        "span": "command::print",
        "source": "p",
        "printed": "2",
        "component": "commands",
        "reason": "done",
    }


def test_span_reraises_editor_diagnostics() -> None:
    with pytest.raises(NoMatch):
        with telemetry.span("command::substitute", component="commands"):
            raise NoMatch()
