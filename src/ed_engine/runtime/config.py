"""Engine configuration sourced from ``ED_ENGINE_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

ENV_PREFIX = "ED_ENGINE_"

DEFAULT_MAX_LINES = 10_000_000
DEFAULT_WINDOW_LINES = 22
DEFAULT_WINDOW_COLUMNS = 76
DEFAULT_PROMPT = "*"


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    return environ.get(f"{ENV_PREFIX}{name}")


def _env_flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = _env(environ, name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(value: Optional[str], fallback: int, *, minimum: int = 1) -> int:
    if value is None:
        return fallback
    try:
        parsed = int(value)
    except ValueError:
        return fallback
    return parsed if parsed >= minimum else fallback


@dataclass(slots=True, frozen=True)
class EngineConfig:
    """Static knobs for one editing session.

    ``window_lines`` feeds the ``z`` scroll command and follows ``LINES`` the
    way GNU ed does (two rows are kept for the prompt). ``window_columns``
    bounds the wrap width of the ``l`` list command.
    """

    max_lines: int = DEFAULT_MAX_LINES
    max_line_length: int = 0
    window_lines: int = DEFAULT_WINDOW_LINES
    window_columns: int = DEFAULT_WINDOW_COLUMNS
    prompt: str = DEFAULT_PROMPT
    prompt_on: bool = False
    verbose: bool = False
    scripted: bool = False
    restricted: bool = False
    extended_regexp: bool = False
    strip_cr: bool = False
    traditional: bool = False
    loose_exit_status: bool = False
    shell: str = "/bin/sh"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        env = os.environ if environ is None else environ
        lines = _env_int(env.get("LINES"), DEFAULT_WINDOW_LINES + 2, minimum=3)
        columns = _env_int(env.get("COLUMNS"), DEFAULT_WINDOW_COLUMNS + 4, minimum=12)
        prompt = _env(env, "PROMPT")
        return cls(
            max_lines=_env_int(_env(env, "MAX_LINES"), DEFAULT_MAX_LINES),
            max_line_length=_env_int(_env(env, "MAX_LINE_LENGTH"), 0, minimum=0),
            window_lines=_env_int(_env(env, "WINDOW_LINES"), lines - 2),
            window_columns=_env_int(_env(env, "WINDOW_COLUMNS"), columns - 4),
            prompt=prompt if prompt else DEFAULT_PROMPT,
            prompt_on=bool(prompt),
            verbose=_env_flag(env, "VERBOSE", False),
            scripted=_env_flag(env, "SCRIPTED", False),
            restricted=_env_flag(env, "RESTRICTED", False),
            extended_regexp=_env_flag(env, "EXTENDED_REGEXP", False),
            strip_cr=_env_flag(env, "STRIP_CR", False),
            traditional=_env_flag(env, "TRADITIONAL", False),
            loose_exit_status=_env_flag(env, "LOOSE_EXIT_STATUS", False),
            shell=_env(env, "SHELL") or "/bin/sh",
        )

    def with_overrides(self, **changes: Any) -> "EngineConfig":
        """Return a copy with every non-``None`` override applied."""

        return replace(self, **{k: v for k, v in changes.items() if v is not None})


__all__ = ["EngineConfig", "DEFAULT_MAX_LINES", "DEFAULT_WINDOW_LINES"]
