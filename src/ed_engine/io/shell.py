"""Synchronous shell commands run through ``sh -c``."""

from __future__ import annotations

import subprocess
from typing import List

from ed_engine.errors import IOFailure
from ed_engine.runtime import telemetry


def split_output(data: bytes) -> List[str]:
    lines = data.decode("utf-8", errors="surrogateescape").split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


class ShellRunner:
    def __init__(self, *, shell: str = "/bin/sh") -> None:
        self.shell = shell

    def _spawn(self, command: str, data: bytes | None) -> subprocess.CompletedProcess:
        with telemetry.span("shell::run", component="shell", metadata={"command": command}):
            try:
                return subprocess.run(
                    [self.shell, "-c", command],
                    input=data,
                    stdout=subprocess.PIPE,
                    check=False,
                )
            except OSError as exc:
                raise IOFailure(f"Cannot run shell: {exc.strerror or exc}") from exc

    def capture(self, command: str) -> bytes:
        """Run ``command`` and return its standard output."""

        return self._spawn(command, None).stdout or b""

    def feed(self, command: str, data: bytes) -> List[str]:
        """Pipe ``data`` into ``command``; returns whatever it printed."""

        return split_output(self._spawn(command, data).stdout or b"")

    def run(self, command: str) -> List[str]:
        """Run an escape command; returns its output split into lines."""

        return split_output(self.capture(command))

    def filter(self, command: str, data: bytes) -> bytes:
        return self._spawn(command, data).stdout or b""


__all__ = ["ShellRunner"]
