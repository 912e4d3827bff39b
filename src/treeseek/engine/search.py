"""Top-level search call: wires dispatcher, collector and task tracking."""

from __future__ import annotations

import concurrent.futures
import queue
import re
import time

from treeseek.engine.collector import CLOSE, Collector, MatchCallback
from treeseek.engine.dispatcher import Dispatcher, ErrorCallback
from treeseek.engine.models import SearchOutcome, SearchRequest
from treeseek.engine.primitives import CancellationSignal, ConcurrencyBudget, TaskTracker
from treeseek.errors import ConfigurationError
from treeseek.fs.listing import Lister
from treeseek.runtime_logging import get_runtime_logger


def compile_pattern(pattern: str) -> re.Pattern[str] | None:
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigurationError(f"invalid regex pattern: {exc}") from exc


def search(
    request: SearchRequest,
    *,
    on_match: MatchCallback | None = None,
    keep_matches: bool = False,
    on_error: ErrorCallback | None = None,
    lister: Lister | None = None,
) -> SearchOutcome:
    """Walk ``request.root`` and collect entries matching the request targets.

    Raises ``ConfigurationError`` for a malformed pattern or worker count
    before touching the filesystem. Unreadable directories are reported to
    ``on_error`` (unless suppressed) and never abort the walk. Match events
    are streamed to ``on_match``; ``SearchOutcome.matches`` is only filled
    when ``keep_matches`` is set.
    """
    pattern = compile_pattern(request.regex_pattern)
    if request.max_workers < 1:
        raise ConfigurationError(f"max_workers must be >= 1, got {request.max_workers}")

    logger = get_runtime_logger()
    started = time.monotonic()

    stream: queue.Queue = queue.Queue(maxsize=1)
    cancel = CancellationSignal()
    budget = ConcurrencyBudget(request.max_workers)
    tracker = TaskTracker()
    collector = Collector(request, stream, cancel, on_match=on_match, keep_matches=keep_matches)

    logger.info(
        "search.started",
        root=str(request.root),
        targets=request.describe(),
        return_early=request.return_early,
        max_workers=request.max_workers,
    )

    collector.start()
    with concurrent.futures.ThreadPoolExecutor(
        max_workers=request.max_workers,
        thread_name_prefix="treeseek-walk",
    ) as pool:
        dispatcher = Dispatcher(
            request,
            pattern,
            stream=stream,
            cancel=cancel,
            budget=budget,
            tracker=tracker,
            pool=pool,
            lister=lister,
            on_error=on_error,
        )
        try:
            dispatcher.run()
        except BaseException:
            cancel.signal()
            raise
        finally:
            # Producers must all be gone before the stream is closed.
            tracker.wait()
            stream.put(CLOSE)
            collector.join()

    if dispatcher.failures:
        raise dispatcher.failures[0]
    if collector.failure is not None:
        raise collector.failure

    file_found, dir_found, stats, matches = collector.snapshot()
    outcome = SearchOutcome(
        file_found=file_found,
        dir_found=dir_found,
        stats=stats,
        matches=matches,
        errors=dispatcher.errors,
        cancelled=cancel.is_set(),
        elapsed_s=time.monotonic() - started,
        peak_workers=budget.peak,
    )
    logger.info(
        "search.finished",
        root=str(request.root),
        file_found=file_found,
        dir_found=dir_found,
        regex_matches=stats.regex_matches,
        files_found=stats.files_found,
        dirs_found=stats.dirs_found,
        errors=outcome.errors,
        cancelled=outcome.cancelled,
        elapsed_s=round(outcome.elapsed_s, 6),
        peak_workers=outcome.peak_workers,
    )
    return outcome
