"""Dispatch of parsed command lines onto the buffer and the session."""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Callable, Dict, List, Tuple

from ed_engine.buffer import LineBuffer, ensure_address, ensure_range
from ed_engine.display import PrintMode, render_line
from ed_engine.errors import (
    InvalidAddress,
    InvalidCommand,
    InvalidFilename,
    Quit,
    UnsavedChangesWarning,
)
from ed_engine.io import decode_lines, encode_lines, is_shell_target
from ed_engine.runtime import telemetry
from ed_engine.substitute import replacement_continues

from .globals import run_global
from .models import ADDRESS_FREE, CommandKind, ParsedCommand
from .parser import expand_shell_command, parse_command, parse_filename, parse_suffix

if TYPE_CHECKING:  # pragma: no cover
    from ed_engine.session import EditingSession

CommandHandler = Callable[["CommandExecutor", ParsedCommand], None]

# commands whose argument may continue on the next input line
_CONTINUED = frozenset({CommandKind.SUBSTITUTE, CommandKind.GLOBAL, CommandKind.INVERT_GLOBAL})


def _odd_backslashes(text: str) -> bool:
    count = len(text) - len(text.rstrip("\\"))
    return count % 2 == 1


class CommandExecutor:
    """Runs one command line at a time against an ``EditingSession``."""

    def __init__(self, session: "EditingSession") -> None:
        self.session = session
        self.in_global = False
        self.logger = telemetry.get_logger("ed_engine.commands")

    @property
    def buffer(self) -> LineBuffer:
        return self.session.buffer

    def execute(self, line: str, *, in_global: bool = False) -> CommandKind:
        command = parse_command(line, self.session.resolver)
        if command.kind in ADDRESS_FREE and command.given:
            raise InvalidAddress("Unexpected address")
        if in_global:
            command.tail = self._list_tail(command)
        elif command.kind in _CONTINUED:
            command.tail = self._continued(command.tail)

        handler = _COMMAND_HANDLERS[command.kind]
        previous = self.in_global
        self.in_global = in_global
        try:
            with telemetry.span(
                f"command::{command.kind.name.lower()}",
                component="commands",
                metadata={"source": line, "global": in_global},
            ):
                handler(self, command)
        finally:
            self.in_global = previous
        return command.kind

    def _continued(self, tail: str) -> str:
        while _odd_backslashes(tail):
            more = self.session.read_input()
            if more is None:
                break
            tail = tail + "\n" + more
        return tail

    def _list_tail(self, command: ParsedCommand) -> str:
        """Inside a global command list a trailing backslash ends the line,
        unless it escapes a newline in a substitution's replacement."""

        tail = command.tail
        if command.kind is CommandKind.SUBSTITUTE:
            while replacement_continues(tail):
                more = self.session.read_input()
                if more is None:
                    break
                tail = tail + "\n" + more
        return tail[:-1] if _odd_backslashes(tail) else tail

    # -- helpers shared by handlers --------------------------------------

    def begin(self) -> None:
        """Open a new undo unit, unless a global command already owns one."""

        if not self.in_global:
            self.buffer.clear_undo()

    def print_range(self, first: int, second: int, mode: PrintMode) -> None:
        columns = self.session.config.window_columns
        lines = self.buffer.get_lines(first, second)
        for address, text in enumerate(lines, start=first):
            for row in render_line(text, address, mode, columns=columns):
                self.session.emit(row)
        self.buffer.current_address = second

    def print_current(self, mode: PrintMode) -> None:
        if mode:
            current = self.buffer.current_address
            self.print_range(current, current, mode)

    def read_text(self) -> List[str]:
        """Collect input lines up to a lone ``.`` (or end of input)."""

        lines: List[str] = []
        while True:
            line = self.session.read_input()
            if line is not None and self.in_global and _odd_backslashes(line):
                line = line[:-1]
            if line is None or line == ".":
                return lines
            lines.append(line)

    def warn_if_modified(self) -> None:
        state = self.buffer.state
        if state.modified and not state.warned:
            state.warned = True
            telemetry.record_event(
                "session.unsaved_warning", level="info", data={"buffer": self.buffer.name}
            )
            raise UnsavedChangesWarning()

    def shell_text(self, text: str) -> str:
        """Expand ``!!`` and ``%`` in a shell command and remember it."""

        session = self.session
        if session.config.restricted:
            raise InvalidCommand("Shell access restricted")
        expanded, changed = expand_shell_command(
            text, previous=session.last_shell_command, filename=self.buffer.filename
        )
        session.last_shell_command = expanded
        self.logger.debug(f"shell command: {expanded}")
        if changed and not session.config.scripted:
            session.emit(expanded)
        return expanded

    def _resolve_target(self, name: str | None) -> str:
        target = name or self.buffer.filename
        if not target:
            raise InvalidFilename("No current filename")
        if is_shell_target(target):
            return "!" + self.shell_text(target[1:])
        return target

    def load(self, name: str | None) -> int:
        """Replace the buffer with a file or command output, like ``e``."""

        buffer = self.buffer
        source = self._resolve_target(name)
        result = self.session.files.read_lines(source)
        buffer.replace_all(result.lines)
        buffer.state.binary = result.binary
        buffer.state.unterminated = result.unterminated
        if name and not is_shell_target(name):
            buffer.filename = name
        self.session.emit_count(result.byte_count)
        return result.byte_count

    def _range_or_all(self, command: ParsedCommand) -> Tuple[int, int]:
        if command.given:
            return command.first, command.second
        return 1, self.buffer.last_address


def _handle_append(executor: CommandExecutor, command: ParsedCommand, *, before: bool = False) -> None:
    mode = parse_suffix(command.tail)
    buffer = executor.buffer
    at = max(command.second - 1, 0) if before else command.second
    executor.begin()
    lines = executor.read_text()
    if lines:
        buffer.insert(at, lines)
    else:
        buffer.current_address = at
    executor.print_current(mode)


def _handle_change(executor: CommandExecutor, command: ParsedCommand) -> None:
    buffer = executor.buffer
    ensure_range(command.first, command.second, buffer.last_address)
    mode = parse_suffix(command.tail)
    executor.begin()
    lines = executor.read_text()
    with executor.session.guard.critical():
        buffer.delete(command.first, command.second)
        if lines:
            buffer.insert(command.first - 1, lines)
    executor.print_current(mode)


def _handle_delete(executor: CommandExecutor, command: ParsedCommand) -> None:
    buffer = executor.buffer
    ensure_range(command.first, command.second, buffer.last_address)
    mode = parse_suffix(command.tail)
    executor.begin()
    buffer.delete(command.first, command.second)
    executor.print_current(mode)


def _handle_edit(executor: CommandExecutor, command: ParsedCommand, *, force: bool = False) -> None:
    name = parse_filename(command.tail, restricted=executor.session.config.restricted)
    if not force:
        executor.warn_if_modified()
    executor.load(name)


def _handle_filename(executor: CommandExecutor, command: ParsedCommand) -> None:
    buffer = executor.buffer
    name = parse_filename(command.tail, restricted=executor.session.config.restricted)
    if name is not None:
        if is_shell_target(name):
            raise InvalidFilename()
        buffer.filename = name
    if not buffer.filename:
        raise InvalidFilename("No current filename")
    executor.session.emit(buffer.filename)


def _handle_global(
    executor: CommandExecutor,
    command: ParsedCommand,
    *,
    want_match: bool,
    interactive: bool,
) -> None:
    run_global(executor, command, want_match=want_match, interactive=interactive)


def _handle_help(executor: CommandExecutor, command: ParsedCommand, *, toggle: bool = False) -> None:
    _require_no_suffix(command)
    session = executor.session
    if toggle:
        session.verbose = not session.verbose
        if not session.verbose:
            return
    if session.last_error:
        session.emit(session.last_error)


def _handle_join(executor: CommandExecutor, command: ParsedCommand) -> None:
    buffer = executor.buffer
    if command.given:
        first, second = command.first, command.second
    else:
        first, second = buffer.current_address, buffer.current_address + 1
    ensure_range(first, second, buffer.last_address)
    mode = parse_suffix(command.tail)
    if first < second:
        executor.begin()
        buffer.join(first, second)
    executor.print_current(mode)


def _handle_mark(executor: CommandExecutor, command: ParsedCommand) -> None:
    buffer = executor.buffer
    key = command.tail[:1]
    ensure_address(command.second, buffer.last_address)
    mode = parse_suffix(command.tail[1:])
    buffer.mark(command.second, key)
    executor.print_current(mode)


def _handle_print(executor: CommandExecutor, command: ParsedCommand) -> None:
    mode = PrintMode.from_suffix(command.kind.value) | parse_suffix(command.tail)
    executor.print_range(command.first, command.second, mode)


def _handle_move(executor: CommandExecutor, command: ParsedCommand, *, copy: bool = False) -> None:
    session = executor.session
    buffer = executor.buffer
    ensure_range(command.first, command.second, buffer.last_address)
    dest, rest = session.resolver.resolve_destination(
        command.tail, required=session.config.traditional
    )
    mode = parse_suffix(rest)
    executor.begin()
    if copy:
        buffer.copy(command.first, command.second, dest)
    else:
        buffer.move(command.first, command.second, dest)
    executor.print_current(mode)


def _handle_prompt(executor: CommandExecutor, command: ParsedCommand) -> None:
    _require_no_suffix(command)
    executor.session.prompt_on = not executor.session.prompt_on


def _handle_quit(executor: CommandExecutor, command: ParsedCommand, *, force: bool = False) -> None:
    _require_no_suffix(command)
    if not force:
        executor.warn_if_modified()
    raise Quit()


def _handle_read(executor: CommandExecutor, command: ParsedCommand) -> None:
    session = executor.session
    buffer = executor.buffer
    name = parse_filename(command.tail, restricted=session.config.restricted)
    at = command.second if command.given else buffer.last_address
    source = executor._resolve_target(name)
    result = session.files.read_lines(source)
    if name and not buffer.filename and not is_shell_target(name):
        buffer.filename = name
    executor.begin()
    if result.lines:
        buffer.insert(at, result.lines)
    if result.binary:
        buffer.state.binary = True
    session.emit_count(result.byte_count)


def _handle_substitute(executor: CommandExecutor, command: ParsedCommand) -> None:
    engine = executor.session.substitution
    buffer = executor.buffer
    substitution, rest = engine.parse(command.tail)
    mode = substitution.print_mode | parse_suffix(rest)
    ensure_range(command.first, command.second, buffer.last_address)
    executor.begin()
    changed = engine.apply(substitution, command.first, command.second, in_global=executor.in_global)
    if changed is not None:
        executor.print_current(mode)


def _handle_undo(executor: CommandExecutor, command: ParsedCommand) -> None:
    mode = parse_suffix(command.tail)
    executor.buffer.undo()
    executor.print_current(mode)


def _handle_write(executor: CommandExecutor, command: ParsedCommand, *, append: bool = False) -> None:
    session = executor.session
    buffer = executor.buffer
    tail = command.tail
    quit_after = False
    if not append and tail[:1] == "q":
        quit_after = True
        tail = tail[1:]
    name = parse_filename(tail, restricted=session.config.restricted)
    first, second = executor._range_or_all(command)
    if command.given or buffer.last_address:
        lines = buffer.get_lines(first, second)
    else:
        lines = []

    target = executor._resolve_target(name)
    if name and not buffer.filename and not is_shell_target(name):
        buffer.filename = name
    state = buffer.state
    keep_unterminated = state.binary and state.unterminated and second == buffer.last_address
    result = session.files.write_lines(
        target, lines, append=append, keep_unterminated=keep_unterminated
    )
    for row in result.output:
        session.emit(row)
    whole = first <= 1 and second == buffer.last_address
    if not append and whole and not is_shell_target(target) and target == buffer.filename:
        buffer.mark_saved()
    session.emit_count(result.byte_count)
    if quit_after:
        _handle_quit(executor, ParsedCommand(CommandKind.QUIT, command.addresses, "", command.source))


def _handle_put(executor: CommandExecutor, command: ParsedCommand) -> None:
    mode = parse_suffix(command.tail)
    executor.begin()
    executor.buffer.put(command.second)
    executor.print_current(mode)


def _handle_yank(executor: CommandExecutor, command: ParsedCommand) -> None:
    mode = parse_suffix(command.tail)
    executor.buffer.yank(command.first, command.second)
    executor.print_current(mode)


def _handle_scroll(executor: CommandExecutor, command: ParsedCommand) -> None:
    session = executor.session
    buffer = executor.buffer
    if command.given:
        start = command.second
    else:
        start = buffer.current_address + (0 if executor.in_global else 1)
    ensure_address(start, buffer.last_address)
    tail = command.tail
    digits = len(tail) - len(tail.lstrip("0123456789"))
    if digits:
        size = int(tail[:digits])
        if size <= 0:
            raise InvalidCommand("Invalid window size")
        session.window_lines = size
    mode = parse_suffix(tail[digits:]) or PrintMode.PRINT
    end = min(buffer.last_address, start + session.window_lines - 1)
    executor.print_range(start, end, mode)


def _handle_line_number(executor: CommandExecutor, command: ParsedCommand) -> None:
    mode = parse_suffix(command.tail)
    address = command.second if command.given else executor.buffer.last_address
    executor.session.emit(str(address))
    executor.print_current(mode)


def _handle_shell(executor: CommandExecutor, command: ParsedCommand) -> None:
    session = executor.session
    buffer = executor.buffer
    text = executor.shell_text(command.tail.rstrip("\n"))
    if not command.given:
        for row in session.shell.run(text):
            session.emit(row)
        if not session.config.scripted:
            session.emit("!")
        return

    ensure_range(command.first, command.second, buffer.last_address)
    data = encode_lines(buffer.get_lines(command.first, command.second))
    output = session.shell.filter(text, data)
    result = decode_lines(output, strip_cr=session.config.strip_cr)
    executor.begin()
    with session.guard.critical():
        buffer.delete(command.first, command.second)
        if result.lines:
            buffer.insert(command.first - 1, result.lines)
    session.emit_count(result.byte_count)


def _handle_comment(executor: CommandExecutor, command: ParsedCommand) -> None:
    del executor, command


def _handle_null(executor: CommandExecutor, command: ParsedCommand) -> None:
    buffer = executor.buffer
    if command.given:
        address = command.second
    else:
        address = buffer.current_address + (0 if executor.in_global else 1)
    ensure_address(address, buffer.last_address)
    executor.print_range(address, address, PrintMode.PRINT)


def _require_no_suffix(command: ParsedCommand) -> None:
    if command.tail.rstrip("\n"):
        raise InvalidCommand("Invalid command suffix")


_COMMAND_HANDLERS: Dict[CommandKind, CommandHandler] = {
    CommandKind.APPEND: _handle_append,
    CommandKind.INSERT: partial(_handle_append, before=True),
    CommandKind.CHANGE: _handle_change,
    CommandKind.DELETE: _handle_delete,
    CommandKind.EDIT: _handle_edit,
    CommandKind.EDIT_FORCE: partial(_handle_edit, force=True),
    CommandKind.FILENAME: _handle_filename,
    CommandKind.GLOBAL: partial(_handle_global, want_match=True, interactive=False),
    CommandKind.GLOBAL_INTERACTIVE: partial(_handle_global, want_match=True, interactive=True),
    CommandKind.INVERT_GLOBAL: partial(_handle_global, want_match=False, interactive=False),
    CommandKind.INVERT_GLOBAL_INTERACTIVE: partial(
        _handle_global, want_match=False, interactive=True
    ),
    CommandKind.HELP: _handle_help,
    CommandKind.HELP_VERBOSE: partial(_handle_help, toggle=True),
    CommandKind.JOIN: _handle_join,
    CommandKind.MARK: _handle_mark,
    CommandKind.LIST: _handle_print,
    CommandKind.NUMBER: _handle_print,
    CommandKind.PRINT: _handle_print,
    CommandKind.MOVE: _handle_move,
    CommandKind.TRANSFER: partial(_handle_move, copy=True),
    CommandKind.PROMPT: _handle_prompt,
    CommandKind.QUIT: _handle_quit,
    CommandKind.QUIT_FORCE: partial(_handle_quit, force=True),
    CommandKind.READ: _handle_read,
    CommandKind.SUBSTITUTE: _handle_substitute,
    CommandKind.UNDO: _handle_undo,
    CommandKind.WRITE: _handle_write,
    CommandKind.WRITE_APPEND: partial(_handle_write, append=True),
    CommandKind.PUT: _handle_put,
    CommandKind.YANK: _handle_yank,
    CommandKind.SCROLL: _handle_scroll,
    CommandKind.LINE_NUMBER: _handle_line_number,
    CommandKind.SHELL: _handle_shell,
    CommandKind.COMMENT: _handle_comment,
    CommandKind.NULL: _handle_null,
}


__all__ = ["CommandExecutor", "CommandHandler"]
