"""Append-only log file of per-match lines plus a closing statistics block."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import TextIO

from treeseek.engine.models import MatchEvent, SearchOutcome, SearchRequest
from treeseek.reporting import format_duration, match_line, not_found_lines, stats_lines


def _now() -> str:
    return datetime.now(UTC).isoformat(timespec="seconds")


class ResultLog:
    """Match log opened in append mode.

    ``record`` is only ever called from the collector thread, so writes need
    no locking. Opening raises ``OSError`` when the file cannot be created.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        self._handle: TextIO = self.path.open("a", encoding="utf-8")

    def __enter__(self) -> "ResultLog":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def start(self, request: SearchRequest) -> None:
        targets = ", ".join(f"{kind}={value}" for kind, value in request.describe().items())
        self._write(f"=== Search started {_now()} root={request.root} {targets}")

    def record(self, event: MatchEvent) -> None:
        self._write(f"[{_now()}] {match_line(event)}")

    def finish(self, request: SearchRequest, outcome: SearchOutcome) -> None:
        self._write(f"Search completed in {format_duration(outcome.elapsed_s)}")
        for line in not_found_lines(request, outcome):
            self._write(line)
        for line in stats_lines(request, outcome):
            self._write(line)
        if outcome.errors:
            self._write(f"- Unreadable directories: {outcome.errors}")
        if outcome.cancelled:
            self._write("- Stopped early")
        self._write("")
        self._handle.flush()

    def close(self) -> None:
        if not self._handle.closed:
            self._handle.close()

    def _write(self, line: str) -> None:
        self._handle.write(line + "\n")
