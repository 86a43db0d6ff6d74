"""
Projection Dispatcher - Runs projections after commit, off the caller's path.

Work under the same key (a feedback id) runs strictly in reservation order;
different keys run in parallel on a bounded pool. A slot can be reserved
while the caller still holds the item's row lock and filled once the
transaction commits, so projections run in commit order even when the
callers race between commit and hand-off.
"""

import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Optional


class _Entry:
    __slots__ = ("fn", "future", "ready")

    def __init__(self, future: Future):
        self.fn: Optional[Callable[[], Any]] = None
        self.future = future
        self.ready = False


class DispatchSlot:
    """A reserved place in one key's lane, filled or cancelled exactly once."""

    def __init__(self, dispatcher: "ProjectionDispatcher", key: str, entry: _Entry):
        self._dispatcher = dispatcher
        self.key = key
        self._entry = entry

    @property
    def future(self) -> Future:
        return self._entry.future

    def fill(self, fn: Callable[[], Any]) -> Future:
        self._dispatcher._release(self.key, self._entry, fn)
        return self.future

    def cancel(self) -> None:
        """Drop the slot; later work for the key no longer waits on it."""
        self._entry.future.cancel()
        self._dispatcher._release(self.key, self._entry, None)


class ProjectionDispatcher:
    """
    Per-key FIFO lanes over a shared thread pool.

    Usage:
        dispatcher = ProjectionDispatcher(max_workers=4)
        future = dispatcher.submit(item.id, lambda: projector.on_status_changed(...))
        dispatcher.flush()

        slot = dispatcher.reserve(item.id)   # under the row lock
        ...                                  # commit
        slot.fill(lambda: projector.on_status_changed(...))
    """

    def __init__(self, max_workers: int = 4):
        self.logger = logging.getLogger("ProjectionDispatcher")
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="projection",
        )
        self._lanes: dict[str, deque[_Entry]] = {}
        self._draining: set[str] = set()
        self._outstanding: set[Future] = set()
        self._lock = threading.Lock()
        self._closed = False

    def reserve(self, key: str) -> DispatchSlot:
        """Take the next place in ``key``'s lane without supplying the work yet."""
        future: Future = Future()
        entry = _Entry(future)
        with self._lock:
            if self._closed:
                raise RuntimeError("ProjectionDispatcher is shut down")
            self._outstanding.add(future)
            self._lanes.setdefault(key, deque()).append(entry)

        future.add_done_callback(self._forget)
        return DispatchSlot(self, key, entry)

    def submit(self, key: str, fn: Callable[[], Any]) -> Future:
        """
        Queue ``fn`` behind any earlier work for ``key``.

        Returns:
            Future resolving to fn's return value or exception
        """
        return self.reserve(key).fill(fn)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait for everything submitted so far. Returns False on timeout."""
        with self._lock:
            pending = list(self._outstanding)
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
        self._pool.shutdown(wait=wait)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._outstanding)

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _release(self, key: str, entry: _Entry, fn: Optional[Callable[[], Any]]) -> None:
        with self._lock:
            if entry.ready:
                return
            entry.fn = fn
            entry.ready = True
            start = key not in self._draining
            if start:
                self._draining.add(key)
        if start:
            self._pool.submit(self._drain, key)

    def _drain(self, key: str) -> None:
        while True:
            with self._lock:
                lane = self._lanes.get(key)
                if not lane:
                    self._lanes.pop(key, None)
                    self._draining.discard(key)
                    return
                entry = lane[0]
                if not entry.ready:
                    # Head slot not filled yet; whoever fills it restarts the lane
                    self._draining.discard(key)
                    return
                lane.popleft()

            if entry.fn is None or not entry.future.set_running_or_notify_cancel():
                continue
            try:
                entry.future.set_result(entry.fn())
            except Exception as e:
                self.logger.exception(f"Projection for {key} failed: {e}")
                entry.future.set_exception(e)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._outstanding.discard(future)
