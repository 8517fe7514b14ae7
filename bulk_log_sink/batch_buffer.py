"""Batch buffer — collects normalized records and flushes on size or idle time."""

import threading
import logging

from bulk_log_sink.sender import SendTask

logger = logging.getLogger(__name__)


class BatchBuffer:
    """Thread-safe buffer that hands batches to *on_flush* when either the
    record limit is reached or the idle timer expires.

    The pending list is swapped out under the lock and *on_flush* is always
    invoked OUTSIDE it, so a slow send never blocks producers. *on_flush*
    receives ``(batch, trigger)`` and returns a SendTask.

    Every flush re-arms the idle timer, including one triggered by the size
    limit, so a fresh timer always covers the next record.
    """

    def __init__(self, limit: int, idle_interval: float, on_flush):
        if limit <= 0:
            raise ValueError("limit must be positive")
        if idle_interval <= 0:
            raise ValueError("idle_interval must be positive")

        self._limit = limit
        self._idle_interval = idle_interval
        self._on_flush = on_flush

        self._pending: list = []
        self._lock = threading.Lock()
        self._handoff_done = threading.Condition(self._lock)
        self._handoffs = 0
        self._timer: threading.Timer | None = None
        self._timer_generation = 0
        self._closed = False

    # Public API

    def push(self, record) -> None:
        """Append *record*. Flushes immediately once the limit is reached,
        otherwise makes sure an idle timer is armed."""
        flush_now = False
        with self._lock:
            self._pending.append(record)
            if len(self._pending) >= self._limit:
                flush_now = True
            elif self._timer is None and not self._closed:
                self._arm_timer_locked()

        if flush_now:
            self.flush(trigger="size")

    def flush(self, trigger: str = "manual") -> SendTask:
        """Hand every pending record to *on_flush* as one batch.

        On an empty buffer this only re-arms the timer and returns a settled
        task.
        """
        with self._lock:
            if self._closed:
                self._cancel_timer_locked()
            else:
                self._arm_timer_locked()

            if not self._pending:
                return SendTask.completed()

            batch, self._pending = self._pending, []
            # Counted until on_flush returns, so close() can see a batch that
            # has left the buffer but has no send task yet.
            self._handoffs += 1

        logger.debug("Flushing %d records (trigger=%s)", len(batch), trigger)
        try:
            return self._on_flush(batch, trigger)
        finally:
            with self._lock:
                self._handoffs -= 1
                self._handoff_done.notify_all()

    def wait_handoffs(self, timeout: float | None = None) -> bool:
        """Wait until every swapped-out batch has been handed to *on_flush*.
        Returns False if *timeout* expired first."""
        with self._lock:
            return self._handoff_done.wait_for(lambda: self._handoffs == 0, timeout)

    def close(self) -> SendTask:
        """Stop the idle timer and flush whatever is left."""
        with self._lock:
            self._closed = True
        return self.flush(trigger="close")

    @property
    def pending_count(self) -> int:
        """Number of records currently waiting in the buffer."""
        with self._lock:
            return len(self._pending)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def timer_armed(self) -> bool:
        with self._lock:
            return self._timer is not None

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def idle_interval(self) -> float:
        return self._idle_interval

    # Internal helpers

    def _arm_timer_locked(self):
        """Replace the idle timer. Must be called with self._lock held."""
        self._cancel_timer_locked()
        self._timer_generation += 1
        timer = threading.Timer(
            self._idle_interval, self._on_timer, args=(self._timer_generation,)
        )
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _cancel_timer_locked(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, generation: int):
        with self._lock:
            # A timer replaced after it already started firing is stale.
            if generation != self._timer_generation or self._closed:
                return
            self._timer = None
        self.flush(trigger="timer")
