"""Structured JSONL runtime logging for treeseek.

Each record is one JSON object per line with ``ts``, ``level``, ``event``,
``pid`` and ``thread`` keys plus the caller's fields. The level and sink come
from ``configure_runtime_logging`` or the ``TREESEEK_LOG_LEVEL`` and
``TREESEEK_LOG_FILE`` environment variables.
"""

from __future__ import annotations

import json
import os
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from treeseek.paths import state_root

LogLevel = Literal["off", "error", "warning", "info", "debug"]

LOG_LEVELS: tuple[str, ...] = ("off", "error", "warning", "info", "debug")

_SEVERITY = {"debug": 10, "info": 20, "warning": 30, "error": 40}

_runtime_logger: "RuntimeLogger | None" = None


def parse_level(value: str | None, default: LogLevel = "warning") -> LogLevel:
    normalized = (value or "").strip().lower()
    if normalized not in LOG_LEVELS:
        return default
    return normalized  # type: ignore[return-value]


def default_log_file() -> Path:
    return state_root() / "logs" / "treeseek.runtime.jsonl"


class RuntimeLogger:
    """Appends JSONL records at or above ``level``; ``sink_path=None`` drops everything."""

    def __init__(self, level: LogLevel, sink_path: Path | None) -> None:
        self.level = level
        self.sink_path = sink_path
        self._threshold = _SEVERITY.get(level, 100)
        self._lock = threading.Lock()

    def enabled(self, level: str) -> bool:
        return self.sink_path is not None and _SEVERITY.get(level, 0) >= self._threshold

    def log(self, level: str, event: str, **fields: Any) -> None:
        if not self.enabled(level):
            return
        record = {
            "ts": datetime.now(UTC).isoformat(),
            "level": level,
            "event": event,
            "pid": os.getpid(),
            "thread": threading.current_thread().name,
            **fields,
        }
        line = json.dumps(record, sort_keys=True, default=str)
        # Walk threads log concurrently; one writer at a time keeps lines whole.
        with self._lock:
            self.sink_path.parent.mkdir(parents=True, exist_ok=True)
            with self.sink_path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")

    def debug(self, event: str, **fields: Any) -> None:
        self.log("debug", event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        self.log("info", event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self.log("warning", event, **fields)

    def error(self, event: str, **fields: Any) -> None:
        self.log("error", event, **fields)


def configure_runtime_logging(
    *,
    level: str | None = None,
    log_file: str | Path | None = None,
) -> RuntimeLogger:
    global _runtime_logger

    effective_level = parse_level(level or os.getenv("TREESEEK_LOG_LEVEL"))
    if effective_level == "off":
        _runtime_logger = RuntimeLogger("off", None)
        return _runtime_logger

    target = log_file or os.getenv("TREESEEK_LOG_FILE")
    sink = Path(target).expanduser().resolve() if target else default_log_file()
    _runtime_logger = RuntimeLogger(effective_level, sink)
    _runtime_logger.info("logging.configured", configured_level=effective_level, sink_path=str(sink))
    return _runtime_logger


def get_runtime_logger() -> RuntimeLogger:
    if _runtime_logger is None:
        return configure_runtime_logging()
    return _runtime_logger
