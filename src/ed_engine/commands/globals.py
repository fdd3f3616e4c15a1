"""Global commands: ``g``, ``v`` and their interactive ``G``/``V`` forms."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ed_engine.active import ActiveLineSet
from ed_engine.buffer import ensure_range
from ed_engine.display import PrintMode
from ed_engine.errors import InvalidCommand
from ed_engine.io import QueueReader
from ed_engine.runtime import telemetry

from .models import ParsedCommand

if TYPE_CHECKING:  # pragma: no cover
    from .executor import CommandExecutor


def run_global(
    executor: "CommandExecutor",
    command: ParsedCommand,
    *,
    want_match: bool,
    interactive: bool,
) -> None:
    """Mark the matching lines, then run the command list once per line.

    The marks are taken before anything runs; lines deleted along the way
    drop out of the set and the remaining addresses are renumbered.
    """

    if executor.in_global:
        raise InvalidCommand("Cannot nest global commands")
    session = executor.session
    buffer = executor.buffer
    if command.given:
        first, second = command.first, command.second
    else:
        first, second = 1, buffer.last_address
    ensure_range(first, second, buffer.last_address)

    regex, commands = session.patterns.take_pattern(command.tail)
    commands = commands.rstrip("\n")
    if interactive and commands:
        raise InvalidCommand("Unexpected command suffix")
    active = ActiveLineSet.build(buffer, first, second, regex, want_match=want_match)
    buffer.clear_undo()
    buffer.add_observer(active)

    executor.in_global = True
    try:
        with telemetry.span(
            "global",
            component="commands",
            metadata={"matches": len(active), "interactive": interactive},
        ):
            if interactive:
                _run_interactive(executor, active)
            else:
                _run_list(executor, active, commands or "p")
    finally:
        executor.in_global = False
        buffer.remove_observer(active)
    telemetry.record_event(
        "global.done",
        level="debug",
        data={"pattern": regex.pattern, "want_match": want_match},
    )


def _run_list(executor: "CommandExecutor", active: ActiveLineSet, commands: str) -> None:
    session = executor.session
    buffer = executor.buffer
    if commands == "d":
        with session.guard.critical():
            for address in active.drain_descending():
                buffer.delete(address, address)
        return

    lines = commands.split("\n")
    for address in active:
        session.guard.poll()
        buffer.current_address = address
        reader = QueueReader(lines)
        with session.reading_from(reader):
            while True:
                line = reader.read_line()
                if line is None:
                    break
                executor.execute(line, in_global=True)


def _run_interactive(executor: "CommandExecutor", active: ActiveLineSet) -> None:
    session = executor.session
    buffer = executor.buffer
    previous: Optional[str] = None
    for address in active:
        session.guard.poll()
        executor.print_range(address, address, PrintMode.PRINT)
        line = session.read_input()
        if line is None:
            return
        if line == "":
            continue
        if line == "&":
            if previous is None:
                raise InvalidCommand("No previous command")
            line = previous
        else:
            previous = line
        buffer.current_address = address
        executor.execute(line, in_global=True)
