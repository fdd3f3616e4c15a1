"""The editing session: one object owning every piece of editor state."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Union

from ed_engine.address import AddressResolver
from ed_engine.buffer import LineBuffer
from ed_engine.commands import CommandExecutor, CommandKind
from ed_engine.errors import EdError, Quit, UnsavedChangesWarning
from ed_engine.io import FileIO, LineReader, QueueReader, ShellRunner, StreamReader
from ed_engine.runtime import telemetry
from ed_engine.runtime.config import EngineConfig
from ed_engine.runtime.interrupts import InterruptGuard
from ed_engine.search import PatternCache, PosixRegexEngine
from ed_engine.substitute import SubstitutionEngine


class SessionBus:
    """Minimal pub/sub so front ends can follow what the session does."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, list[Callable[[object], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[object], None]) -> None:
        self._subscribers.setdefault(event, []).append(callback)

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in self._subscribers.get(event, []):
            callback(payload)


@dataclass(slots=True)
class CommandResult:
    source: str
    kind: Optional[CommandKind]
    output: List[str]
    current_address: int
    modified: bool
    error: Optional[EdError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class ScriptResult:
    output: List[str] = field(default_factory=list)
    exit_status: int = 0
    quit: bool = False


class EditingSession:
    def __init__(
        self,
        *,
        config: Optional[EngineConfig] = None,
        buffer: Optional[LineBuffer] = None,
        reader: Optional[LineReader] = None,
        printer: Optional[Callable[[str], None]] = None,
        files: Optional[FileIO] = None,
        shell: Optional[ShellRunner] = None,
        bus: Optional[SessionBus] = None,
    ) -> None:
        self.config = config or EngineConfig.from_env()
        self.guard = InterruptGuard()
        self.buffer = buffer or LineBuffer(
            max_lines=self.config.max_lines,
            max_line_length=self.config.max_line_length,
        )
        self.buffer.guard = self.guard
        self.patterns = PatternCache(PosixRegexEngine(extended=self.config.extended_regexp))
        self.resolver = AddressResolver(self.buffer, self.patterns)
        self.substitution = SubstitutionEngine(self.buffer, self.patterns)
        self.shell = shell or ShellRunner(shell=self.config.shell)
        self.files = files or FileIO(runner=self.shell, strip_cr=self.config.strip_cr)
        self.bus = bus or SessionBus()
        self.printer = printer

        self.prompt = self.config.prompt
        self.prompt_on = self.config.prompt_on
        self.verbose = self.config.verbose
        self.window_lines = self.config.window_lines
        self.last_error: Optional[str] = None
        self.last_shell_command: Optional[str] = None
        self.error_seen = False

        self._inputs: List[LineReader] = [reader or QueueReader()]
        self._output: List[str] = []
        self.executor = CommandExecutor(self)

    @classmethod
    def from_lines(cls, lines: Iterable[str], **kwargs: object) -> "EditingSession":
        session = cls(**kwargs)  # type: ignore[arg-type]
        session.buffer.replace_all(lines)
        return session

    # -- input / output ------------------------------------------------------

    @property
    def reader(self) -> LineReader:
        return self._inputs[0]

    @reader.setter
    def reader(self, reader: LineReader) -> None:
        self._inputs[0] = reader

    def read_input(self) -> Optional[str]:
        return self._inputs[-1].read_line()

    @contextmanager
    def reading_from(self, reader: LineReader) -> Iterator[LineReader]:
        self._inputs.append(reader)
        try:
            yield reader
        finally:
            self._inputs.pop()

    def queue_input(self, lines: Iterable[str]) -> None:
        """Append lines to the active in-memory input."""

        reader = self._inputs[-1]
        if not isinstance(reader, QueueReader):
            raise TypeError("queue_input() needs a QueueReader as the active input")
        reader.feed(lines)

    @property
    def last_output(self) -> List[str]:
        return list(self._output)

    def emit(self, text: str) -> None:
        self._output.append(text)
        if self.printer is not None:
            self.printer(text)

    def emit_count(self, count: int) -> None:
        if not self.config.scripted:
            self.emit(str(count))

    # -- execution -----------------------------------------------------------

    def execute(self, line: str) -> CommandResult:
        """Run one command line; ``EdError`` subclasses propagate."""

        self._output = []
        self.guard.poll()
        self.bus.emit("command.start", line)
        kind = self.executor.execute(line)
        result = CommandResult(
            source=line,
            kind=kind,
            output=list(self._output),
            current_address=self.buffer.current_address,
            modified=self.buffer.modified,
        )
        self.bus.emit("command.end", result)
        return result

    def report(self, error: EdError) -> None:
        """Record a failure the way ed does: ``?`` plus an optional message."""

        self.last_error = str(error)
        self.error_seen = True
        self.emit("?")
        if self.verbose:
            self.emit(self.last_error)
        telemetry.record_event(
            "session.error",
            level="info",
            data={"error": type(error).__name__, "message": self.last_error},
        )
        self.bus.emit("session.error", error)

    def step(self) -> Optional[CommandResult]:
        """Read and run one command from the input; ``None`` means quit."""

        line = self.read_input()
        if line is None:
            return self._end_of_input()
        try:
            return self.execute(line)
        except Quit:
            self.bus.emit("session.quit", None)
            return None
        except EdError as exc:
            self.report(exc)
            return CommandResult(
                source=line,
                kind=None,
                output=list(self._output),
                current_address=self.buffer.current_address,
                modified=self.buffer.modified,
                error=exc,
            )

    def _end_of_input(self) -> Optional[CommandResult]:
        self._output = []
        state = self.buffer.state
        if state.modified and not state.warned and not self.config.scripted:
            state.warned = True
            warning = UnsavedChangesWarning()
            self.report(warning)
            return CommandResult(
                source="",
                kind=None,
                output=list(self._output),
                current_address=self.buffer.current_address,
                modified=True,
                error=warning,
            )
        self.bus.emit("session.quit", None)
        return None

    def run_script(self, source: Union[str, Iterable[str]]) -> ScriptResult:
        """Feed ``source`` through the session until it quits or runs dry."""

        reader = QueueReader()
        reader.feed(source)
        outcome = ScriptResult()
        with self.reading_from(reader):
            while True:
                result = self.step()
                if result is None:
                    outcome.output.extend(self._output)
                    outcome.quit = True
                    break
                outcome.output.extend(result.output)
        outcome.exit_status = self.exit_status
        return outcome

    @property
    def exit_status(self) -> int:
        if self.error_seen and not self.config.loose_exit_status:
            return 1
        return 0


__all__ = [
    "CommandResult",
    "EditingSession",
    "LineReader",
    "QueueReader",
    "ScriptResult",
    "SessionBus",
    "StreamReader",
]
