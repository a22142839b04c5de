"""Bounded console/exception log for health diagnostics.

Events arrive from the automation session's event sink; readers only ever see a
list snapshot, never the live deque.
"""

from __future__ import annotations

import json
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

LOG_CAPACITY = 50


@dataclass(slots=True, frozen=True)
class LogEntry:
    kind: str  # "console" or "exception"
    severity: str
    text: str
    timestamp: float = field(default_factory=time.time)

    @property
    def is_error(self) -> bool:
        return self.severity == "error" or self.kind == "exception"

    def render(self) -> str:
        clock = datetime.fromtimestamp(self.timestamp, tz=timezone.utc).strftime("%H:%M:%S")
        return f"[{clock}] {self.text}"


def _arg_text(arg: Any) -> str:
    if isinstance(arg, str):
        return arg
    try:
        return json.dumps(arg, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(arg)


def console_entry(params: Any) -> LogEntry:
    """Build an entry from an `App.logAdded` payload ({type, args})."""
    if not isinstance(params, dict):
        return LogEntry(kind="console", severity="log", text=_arg_text(params))
    severity = params.get("type") or params.get("level") or "log"
    text = params.get("text")
    if not isinstance(text, str):
        args = params.get("args")
        if isinstance(args, list):
            text = " ".join(_arg_text(a) for a in args)
        else:
            text = ""
    return LogEntry(kind="console", severity=str(severity), text=text)


def exception_entry(params: Any) -> LogEntry:
    """Build an entry from an `App.exceptionThrown` payload ({message, stack})."""
    message = params.get("message") if isinstance(params, dict) else None
    text = message if isinstance(message, str) and message else _arg_text(params)
    return LogEntry(kind="exception", severity="error", text=text)


class EventLog:
    def __init__(self, capacity: int = LOG_CAPACITY) -> None:
        self.capacity = capacity
        self._entries: deque[LogEntry] = deque(maxlen=capacity)

    def record(self, entry: LogEntry) -> None:
        self._entries.append(entry)

    def clear(self) -> None:
        self._entries.clear()

    def snapshot(self) -> list[LogEntry]:
        return list(self._entries)

    def recent_errors(self, n: int = 5) -> list[str]:
        if n <= 0:
            return []
        errors = [entry for entry in self.snapshot() if entry.is_error]
        return [entry.render() for entry in errors[-n:]]

    def on_console(self, params: Any) -> None:
        self.record(console_entry(params))

    def on_exception(self, params: Any) -> None:
        self.record(exception_entry(params))

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["LOG_CAPACITY", "EventLog", "LogEntry", "console_entry", "exception_entry"]
