"""Recursive directory dispatcher with bounded fan-out."""

from __future__ import annotations

import concurrent.futures
import queue
import re
import threading
from pathlib import Path
from typing import Callable

from treeseek.engine.models import MatchEvent, MatchKind, SearchRequest
from treeseek.engine.primitives import CancellationSignal, ConcurrencyBudget, TaskTracker
from treeseek.errors import TraversalError
from treeseek.fs.filtering import ExcludeFilter
from treeseek.fs.listing import Lister, list_entries
from treeseek.runtime_logging import get_runtime_logger

ErrorCallback = Callable[[TraversalError], None]

EMIT_POLL_S = 0.05


class Dispatcher:
    def __init__(
        self,
        request: SearchRequest,
        pattern: re.Pattern[str] | None,
        *,
        stream: queue.Queue,
        cancel: CancellationSignal,
        budget: ConcurrencyBudget,
        tracker: TaskTracker,
        pool: concurrent.futures.Executor,
        lister: Lister | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self.request = request
        self.pattern = pattern
        self.errors = 0
        self.failures: list[BaseException] = []
        self._stream = stream
        self._cancel = cancel
        self._budget = budget
        self._tracker = tracker
        self._pool = pool
        self._lister = lister or list_entries
        self._on_error = on_error
        self._exclude = ExcludeFilter(request.root, request.exclude)
        self._lock = threading.Lock()
        self._logger = get_runtime_logger()

    def run(self) -> None:
        """Walk the request root on the calling thread as the root task."""
        self._tracker.add()
        try:
            self.walk(self.request.root, 0)
        finally:
            self._tracker.done()

    def walk(self, path: Path, depth: int) -> None:
        self._logger.debug("walk.enter", path=str(path), depth=depth)
        try:
            entries = self._lister(path)
        except OSError as exc:
            self._report(path, exc)
            return

        for name, is_dir in entries:
            if self._cancel.is_set():
                return

            entry_path = path / name
            if self._exclude and self._exclude.excluded(entry_path, is_dir):
                continue

            for kind in self.classify(name, is_dir):
                event = MatchEvent(path=entry_path, is_dir=is_dir, kind=kind, depth=depth)
                if not self._emit(event):
                    return

            if is_dir:
                self._descend(entry_path, depth + 1)

    def classify(self, name: str, is_dir: bool) -> list[MatchKind]:
        """Match kinds satisfied by one entry, regex first."""
        kinds: list[MatchKind] = []
        if self.pattern is not None and self.pattern.search(name):
            kinds.append("regex")
        if is_dir and self.request.dir_name and name == self.request.dir_name:
            kinds.append("dir")
        if not is_dir and self.request.file_name and name == self.request.file_name:
            kinds.append("file")
        return kinds

    def _emit(self, event: MatchEvent) -> bool:
        while not self._cancel.is_set():
            try:
                self._stream.put(event, timeout=EMIT_POLL_S)
                return True
            except queue.Full:
                continue
        return False

    def _descend(self, path: Path, depth: int) -> None:
        if self._cancel.is_set():
            return

        self._tracker.add()
        if self._budget.try_acquire():
            try:
                self._pool.submit(self._spawned, path, depth)
            except RuntimeError:
                self._budget.release()
                self._tracker.done()
                raise
            self._logger.debug("walk.spawned", path=str(path), depth=depth)
            return

        self._logger.debug("walk.inline", path=str(path), depth=depth)
        try:
            self.walk(path, depth)
        finally:
            self._tracker.done()

    def _spawned(self, path: Path, depth: int) -> None:
        try:
            self.walk(path, depth)
        except Exception as exc:
            self._logger.error("walk.crashed", path=str(path), error=str(exc))
            with self._lock:
                self.failures.append(exc)
            self._cancel.signal()
        finally:
            self._budget.release()
            self._tracker.done()

    def _report(self, path: Path, exc: OSError) -> None:
        with self._lock:
            self.errors += 1

        if self.request.suppress_errors:
            self._logger.debug("walk.error.suppressed", path=str(path), error=str(exc))
            return

        self._logger.warning("walk.error", path=str(path), error=str(exc))
        if self._on_error is not None:
            self._on_error(TraversalError(path, exc))
