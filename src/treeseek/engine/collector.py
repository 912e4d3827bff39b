"""Single consumer that folds match events into stats and found-flags."""

from __future__ import annotations

import queue
import threading
from typing import Callable

from treeseek.engine.models import MatchEvent, SearchRequest, SearchStats
from treeseek.engine.primitives import CancellationSignal
from treeseek.runtime_logging import get_runtime_logger

MatchCallback = Callable[[MatchEvent], None]

# Put on the stream by the coordinator once every dispatcher task has finished.
CLOSE = object()


def should_stop(request: SearchRequest, file_found: bool, dir_found: bool) -> bool:
    """Early-termination rule for a request with ``return_early`` set.

    With no named file or directory target (regex only), the first match of
    any kind is enough.
    """
    if not request.return_early:
        return False
    if request.file_name and request.dir_name:
        return file_found and dir_found
    if request.file_name:
        return file_found
    if request.dir_name:
        return dir_found
    return True


class Collector:
    def __init__(
        self,
        request: SearchRequest,
        stream: queue.Queue,
        cancel: CancellationSignal,
        *,
        on_match: MatchCallback | None = None,
        keep_matches: bool = False,
    ) -> None:
        self.request = request
        self.stats = SearchStats()
        self.file_found = False
        self.dir_found = False
        self.keep_matches = keep_matches
        self.matches: list[MatchEvent] = []
        self.failure: BaseException | None = None
        self._stream = stream
        self._cancel = cancel
        self._on_match = on_match
        self._lock = threading.Lock()
        self._logger = get_runtime_logger()
        self._thread = threading.Thread(target=self._run, name="treeseek-collector", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def join(self) -> None:
        self._thread.join()

    def _run(self) -> None:
        while True:
            item = self._stream.get()
            if item is CLOSE:
                return
            if self.failure is not None:
                # Keep draining so blocked producers can finish.
                continue
            try:
                self.accept(item)
            except Exception as exc:
                self.failure = exc
                self._logger.error("collector.failed", error=str(exc))
                self._cancel.signal()

    def accept(self, event: MatchEvent) -> None:
        with self._lock:
            if event.kind == "file":
                self.file_found = True
                self.stats.files_found += 1
            elif event.kind == "dir":
                self.dir_found = True
                self.stats.dirs_found += 1
            else:
                self.stats.regex_matches += 1
                if event.is_dir:
                    self.dir_found = True
                else:
                    self.file_found = True
            if self.keep_matches:
                self.matches.append(event)

            if should_stop(self.request, self.file_found, self.dir_found):
                if self._cancel.signal():
                    self._logger.info(
                        "search.cancelled",
                        trigger=str(event.path),
                        kind=event.kind,
                    )

        if self._on_match is not None:
            self._on_match(event)

    def snapshot(self) -> tuple[bool, bool, SearchStats, list[MatchEvent]]:
        with self._lock:
            return self.file_found, self.dir_found, self.stats.snapshot(), list(self.matches)
