"""Command-line driver: ``ed-engine [options] [FILE]``."""

from __future__ import annotations

import argparse
import signal
import sys
from functools import partial
from pathlib import Path
from typing import Optional, Sequence, TextIO

from ed_engine.errors import EdError, Interrupted, IOFailure
from ed_engine.io import StreamReader, encode_lines, is_shell_target
from ed_engine.runtime import telemetry
from ed_engine.runtime.config import EngineConfig
from ed_engine.session import EditingSession

HUP_FILENAME = "ed.hup"


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="ed-engine", description="A line-oriented text editor.")
    parser.add_argument("file", nargs="?", help="File (or !command) to load at startup")
    parser.add_argument(
        "-E", "--extended-regexp", action="store_true", help="Use extended regular expressions"
    )
    parser.add_argument(
        "-G", "--traditional", action="store_true", help="Run in compatibility mode"
    )
    parser.add_argument(
        "-l",
        "--loose-exit-status",
        action="store_true",
        help="Exit with 0 status even if a command fails",
    )
    parser.add_argument("-p", "--prompt", help="Use PROMPT as an interactive prompt")
    parser.add_argument("-r", "--restricted", action="store_true", help="Run in restricted mode")
    parser.add_argument(
        "-s",
        "--quiet",
        "--silent",
        dest="scripted",
        action="store_true",
        help="Suppress diagnostics, byte counts and '!' prompt",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Be verbose")
    parser.add_argument(
        "--strip-trailing-cr",
        action="store_true",
        help="Strip carriage returns at end of text lines",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace, environ=None) -> EngineConfig:
    return EngineConfig.from_env(environ).with_overrides(
        extended_regexp=args.extended_regexp or None,
        traditional=args.traditional or None,
        loose_exit_status=args.loose_exit_status or None,
        prompt=args.prompt or None,
        prompt_on=True if args.prompt else None,
        restricted=args.restricted or None,
        scripted=args.scripted or None,
        verbose=args.verbose or None,
        strip_cr=args.strip_trailing_cr or None,
    )


def save_hangup(session: EditingSession) -> Optional[Path]:
    """Write a modified buffer to ``ed.hup`` in the working or home directory."""

    buffer = session.buffer
    if not buffer.modified or not buffer.last_address:
        return None
    data = encode_lines(buffer.lines)
    for directory in (Path.cwd(), Path.home()):
        target = directory / HUP_FILENAME
        try:
            target.write_bytes(data)
        except OSError as exc:
            telemetry.record_event(
                "cli.hangup_failed",
                level="warning",
                data={"target": str(target), "error": exc.strerror or str(exc)},
            )
            continue
        telemetry.record_event("cli.hangup_saved", level="info", data={"target": str(target)})
        return target
    return None


def _handle_hangup(session: EditingSession, signum, frame) -> None:
    del signum, frame
    save_hangup(session)
    sys.exit(1)


def _handle_interrupt(session: EditingSession, signum, frame) -> None:
    del signum, frame
    session.guard.deliver("SIGINT")


def install_signal_handlers(session: EditingSession) -> None:
    signal.signal(signal.SIGINT, partial(_handle_interrupt, session))
    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, partial(_handle_hangup, session))


def load_initial(session: EditingSession, name: str) -> None:
    try:
        session.executor.load(name)
    except IOFailure as exc:
        # the name is remembered even when the file does not exist yet
        if not is_shell_target(name):
            session.buffer.filename = name
        session.report(exc)
    except EdError as exc:
        session.report(exc)


def run(session: EditingSession, stream: TextIO, out: TextIO) -> int:
    """Read commands from ``stream`` until the session quits."""

    session.reader = StreamReader(stream)
    while True:
        if session.prompt_on:
            out.write(session.prompt)
            out.flush()
        try:
            result = session.step()
        except Interrupted as exc:
            out.write("\n")
            session.report(exc)
            continue
        except KeyboardInterrupt:
            out.write("\n")
            session.report(Interrupted())
            continue
        if result is None:
            break
    return session.exit_status


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    config = build_config(args)
    session = EditingSession(config=config, printer=print)
    telemetry.record_event(
        "cli.start",
        level="debug",
        data={"file": args.file, "scripted": config.scripted, "restricted": config.restricted},
    )
    install_signal_handlers(session)
    if args.file:
        load_initial(session, args.file)
    return run(session, sys.stdin, sys.stdout)


if __name__ == "__main__":  # pragma: no cover - manual entry point
    sys.exit(main())
