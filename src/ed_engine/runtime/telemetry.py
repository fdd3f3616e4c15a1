"""Structured logging for the editing engine, built on telelog.

The rest of the package only touches four names:

``configure(...)`` -- adopt an explicit telelog config or a named preset
``get_logger(name)`` -- cached telelog logger bound to the active config
``record_event(name, ...)`` -- one structured event at a chosen level
``span(name, ...)`` -- profile a block and optionally track it as a component

Console output is off unless ``ED_ENGINE_LOG_CONSOLE`` is set, so the
editor's own stdout stays byte-exact for scripts.
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, MutableMapping, Optional, cast

import telelog  # type: ignore[import]

from ed_engine.errors import EdError

tl = cast(Any, telelog)

ENV_PREFIX = "ED_ENGINE_"
DEFAULT_LOGGER_NAME = "ed_engine"

_LOGGER_CACHE: MutableMapping[str, Any] = {}
_ACTIVE_CONFIG: Optional[Any] = None

# preset -> (min level, console, json, buffered, default log file)
_PRESETS: Dict[str, tuple[str, bool, bool, bool, str]] = {
    "development": ("DEBUG", True, False, False, ""),
    "production": ("INFO", False, False, True, "ed_engine.log"),
    "performance": ("DEBUG", False, True, True, "ed_engine-performance.log"),
}


def _env(name: str) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}")


def _env_flag(name: str) -> bool:
    raw = _env(name)
    return raw is not None and raw.strip().lower() in {"1", "true", "yes", "on"}


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, tuple, set)):
        return repr(value)
    return str(value)


def _apply(
    config: Any,
    *,
    level: str,
    console: bool,
    json: bool,
    buffered: bool,
    log_file: str,
    buffer_size: Optional[int] = None,
) -> Any:
    config.with_min_level(level)
    config.with_console_output(console)
    if console:
        config.with_colored_output(not _env_flag("NO_COLOR"))
    if json:
        config.with_json_format(True)
    if buffered:
        config.with_buffering(True)
        if buffer_size:
            config.with_buffer_size(buffer_size)
    if log_file:
        config.with_file_output(log_file)
    config.with_profiling(True)
    return config


def _config_from_env() -> Any:
    size = _env("LOG_BUFFER_SIZE")
    return _apply(
        tl.Config(),
        level=(_env("LOG_LEVEL") or "WARNING").upper(),
        console=_env_flag("LOG_CONSOLE"),
        json=_env_flag("LOG_JSON"),
        buffered=_env_flag("LOG_BUFFERED"),
        log_file=_env("LOG_FILE") or "",
        buffer_size=int(size) if size and size.isdigit() else 2048,
    )


def _config_from_preset(preset: str) -> Any:
    try:
        level, console, json, buffered, log_file = _PRESETS[preset.lower()]
    except KeyError:
        raise ValueError(f"Unknown preset '{preset}'.") from None
    return _apply(
        tl.Config(),
        level=level,
        console=console,
        json=json,
        buffered=buffered,
        log_file=_env("LOG_FILE") or log_file,
    )


def configure(*, config: Optional[Any] = None, preset: Optional[str] = None) -> None:
    """Replace the active telelog configuration.

    ``config`` is an explicit ``telelog.Config``; ``preset`` names one of
    ``development``, ``production`` or ``performance``. With neither, the
    configuration is rebuilt from ``ED_ENGINE_*`` environment variables.
    Cached loggers are dropped either way.
    """

    global _ACTIVE_CONFIG
    if config is not None and preset:
        raise ValueError("Provide either `config` or `preset`, not both.")
    if preset:
        _ACTIVE_CONFIG = _config_from_preset(preset)
    elif config is not None:
        config.with_profiling(True)
        _ACTIVE_CONFIG = config
    else:
        _ACTIVE_CONFIG = _config_from_env()
    _LOGGER_CACHE.clear()


def get_logger(name: Optional[str] = None) -> Any:
    """Return the cached ``telelog.Logger`` for ``name``."""

    global _ACTIVE_CONFIG
    logger_name = name or DEFAULT_LOGGER_NAME
    cached = _LOGGER_CACHE.get(logger_name)
    if cached is None:
        if _ACTIVE_CONFIG is None:
            _ACTIVE_CONFIG = _config_from_env()
        cached = tl.Logger.with_config(logger_name, _ACTIVE_CONFIG)
        _LOGGER_CACHE[logger_name] = cached
    return cached


def _log(logger: Any, level: str, message: str, payload: Dict[str, Any]) -> None:
    name = level.lower()
    structured = getattr(logger, f"{name}_with", None)
    if structured is not None:
        structured(message, [(str(key), _text(value)) for key, value in payload.items()])
        return
    plain = getattr(logger, name, None)
    if plain is None:
        raise ValueError(f"Unsupported log level '{level}'.")
    plain(f"{message} {payload}")


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Emit ``event::<name>`` with ``data`` attached as key/value pairs."""

    _log(get_logger(logger_name), level, f"event::{name}", {"event": name, **(data or {})})


@dataclass
class SpanHandle:
    """Yielded by ``span`` so the block can attach results to its summary."""

    span_name: str
    component_name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _text(value)

    def summary(self, **extra: Any) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"span": self.span_name, **self.metadata}
        if self.component_name:
            payload["component"] = self.component_name
        payload.update({key: _text(value) for key, value in extra.items()})
        return payload


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str | bool] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Profile a block with ``logger.profile`` and track it as a component.

    ``component=True`` reuses ``name`` as the component id; a string names it
    explicitly. ``metadata`` is pushed as logger context for the block. An
    ``EdError`` leaving the block is an ordinary editor diagnostic and is
    logged as ``span::diagnostic`` at info level; anything else is a
    ``span::fail`` error.
    """

    log = get_logger(logger_name)
    component_name = name if component is True else component or None
    context = {key: _text(value) for key, value in (metadata or {}).items()}
    for key, value in context.items():
        log.add_context(key, value)

    handle = SpanHandle(name, component_name, dict(context))
    with ExitStack() as stack:
        if component_name:
            stack.enter_context(log.track_component(component_name))
        stack.enter_context(log.profile(name))
        try:
            yield handle
        except EdError as exc:
            summary = handle.summary(error=type(exc).__name__, reason=exc)
            _log(log, "info", "span::diagnostic", summary)
            raise
        except Exception as exc:
            _log(log, "error", "span::fail", handle.summary(reason=exc))
            raise
        finally:
            for key in context:
                log.remove_context(key)


__all__ = ["SpanHandle", "configure", "get_logger", "record_event", "span"]
