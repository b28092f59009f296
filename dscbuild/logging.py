"""Structured JSON-lines events for a build run.

Every record carries the fields bound with ``bind_log_context`` (the run's
configuration and architecture) and is appended to the file named by
``DSCBUILD_LOG_PATH`` when that variable is set. Console output is separate,
see ``display.py``.
"""

from __future__ import annotations

import json
import os
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from pathlib import Path

from .constants import LOG_PATH_VARIABLE

type LogRecord = dict[str, object]
type LogCallback = Callable[[LogRecord], object]
type Emitter = Callable[..., LogRecord]


_LOG_CONTEXT: ContextVar[LogRecord | None] = ContextVar(
    "dscbuild_log_context",
    default=None,
)
_LOG_CALLBACK: ContextVar[LogCallback | None] = ContextVar(
    "dscbuild_log_callback",
    default=None,
)
_FILE_LOCK = threading.Lock()
DEFAULT_COMPONENT = "dscbuild"


def iso_now() -> str:
    return datetime.now(UTC).isoformat()


def set_log_callback(callback: LogCallback | None) -> Token[LogCallback | None]:
    return _LOG_CALLBACK.set(callback)


def reset_log_callback(token: Token[LogCallback | None]) -> None:
    _LOG_CALLBACK.reset(token)


def bind_log_context(**fields: object) -> Token[LogRecord | None]:
    current = dict(_LOG_CONTEXT.get() or {})
    for key, value in fields.items():
        if value is None:
            _ = current.pop(key, None)
        else:
            current[key] = value
    return _LOG_CONTEXT.set(current)


def reset_log_context(token: Token[LogRecord | None]) -> None:
    _LOG_CONTEXT.reset(token)


@contextmanager
def log_context(**fields: object) -> Iterator[None]:
    token = bind_log_context(**fields)
    try:
        yield
    finally:
        reset_log_context(token)


def get_log_context() -> LogRecord:
    return dict(_LOG_CONTEXT.get() or {})


def log_file_path() -> Path | None:
    raw = (os.environ.get(LOG_PATH_VARIABLE) or "").strip()
    return Path(raw) if raw else None


def write_log_file(record: LogRecord) -> None:
    target = log_file_path()
    if target is None:
        return
    target.parent.mkdir(parents=True, exist_ok=True)
    # Paths and other non-JSON values are written as their str()
    line = json.dumps(record, ensure_ascii=False, default=str)
    with _FILE_LOCK:
        with target.open("a", encoding="utf-8") as handle:
            _ = handle.write(line + "\n")


def log_event(
    *,
    component: str | None = None,
    event: str = "log",
    message: str = "",
    level: str = "info",
    **fields: object,
) -> LogRecord:
    resolved_component = (
        component.strip()
        if isinstance(component, str) and component.strip()
        else DEFAULT_COMPONENT
    )
    record: LogRecord = {
        "ts": iso_now(),
        "component": resolved_component,
        "event": event,
        "level": level,
        "message": message,
    }
    record.update(get_log_context())
    record.update({key: value for key, value in fields.items() if value is not None})

    callback = _LOG_CALLBACK.get()
    if callback is not None:
        try:
            _ = callback(record)
        except Exception:
            pass

    write_log_file(record)
    return record


def component_logger(component: str) -> Emitter:
    """Return a ``log_event`` bound to one component name."""

    def emit(
        event: str,
        *,
        message: str = "",
        level: str = "info",
        **fields: object,
    ) -> LogRecord:
        return log_event(
            component=component,
            event=event,
            message=message,
            level=level,
            **fields,
        )

    return emit
