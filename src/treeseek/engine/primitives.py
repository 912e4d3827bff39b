"""Thread-safe coordination primitives for the walk engine."""

from __future__ import annotations

import threading


class CancellationSignal:
    """One-shot broadcast: signaled at most once, never reset."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()

    def signal(self) -> bool:
        """Signal cancellation. Returns True only for the call that fired it."""
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            return True

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)


class ConcurrencyBudget:
    """Fixed pool of tokens gating how many spawned walk tasks run at once."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._lock = threading.Lock()
        self._active = 0
        self._peak = 0

    @property
    def active(self) -> int:
        with self._lock:
            return self._active

    @property
    def peak(self) -> int:
        with self._lock:
            return self._peak

    def try_acquire(self) -> bool:
        """Take a token without waiting. False when the budget is exhausted."""
        with self._lock:
            if self._active >= self.capacity:
                return False
            self._active += 1
            self._peak = max(self._peak, self._active)
            return True

    def release(self) -> None:
        with self._lock:
            if self._active <= 0:
                raise RuntimeError("release() called more times than try_acquire()")
            self._active -= 1


class TaskTracker:
    """Counted completion barrier over in-flight dispatcher tasks."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending = 0

    @property
    def pending(self) -> int:
        with self._cond:
            return self._pending

    def add(self, count: int = 1) -> None:
        with self._cond:
            self._pending += count

    def done(self) -> None:
        with self._cond:
            if self._pending <= 0:
                raise RuntimeError("done() called with no pending tasks")
            self._pending -= 1
            if self._pending == 0:
                self._cond.notify_all()

    def wait(self, timeout: float | None = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._pending == 0, timeout)
