"""Bulk sender: ships one batch per request on its own thread and reports
transport and per-item failures. Nothing is retried."""

import threading
import time
import logging

from bulk_log_sink.bulk import build_bulk_body, collect_item_errors
from bulk_log_sink.errors import ItemError, TransportError
from bulk_log_sink.metrics import MetricsCollector

logger = logging.getLogger(__name__)


class SendTask:
    """Completion handle for one bulk request."""

    def __init__(self, batch_size: int = 0):
        self.batch_size = batch_size
        self._done = threading.Event()

    @classmethod
    def completed(cls) -> "SendTask":
        """A task that is already settled; returned for empty flushes."""
        task = cls()
        task._settle()
        return task

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the request settles. Returns False on timeout."""
        return self._done.wait(timeout)

    def _settle(self):
        self._done.set()


class BulkSender:
    """Turns batches into bulk requests against a BulkClient.

    Each send runs on a non-daemon thread so the interpreter finishes
    in-flight requests before exiting. Failures are passed to *on_error*
    as TransportError or ItemError instances.
    """

    def __init__(self, client, on_error, metrics: MetricsCollector | None = None):
        self._client = client
        self._on_error = on_error
        self._metrics = metrics or MetricsCollector()
        self._in_flight: set[SendTask] = set()
        self._lock = threading.Lock()
        self._sequence = 0

    def send(self, batch: list, trigger: str = "manual") -> SendTask:
        """Start the bulk request for *batch* and return without waiting."""
        task = SendTask(len(batch))
        with self._lock:
            self._sequence += 1
            seq = self._sequence
            self._in_flight.add(task)

        thread = threading.Thread(
            target=self._run,
            args=(batch, trigger, seq, task),
            name=f"bulk-send-{seq}",
        )
        thread.start()
        return task

    def wait_all(self, timeout: float | None = None) -> bool:
        """Wait for every in-flight request. Returns False if *timeout* expired."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                pending = list(self._in_flight)
            if not pending:
                return True
            for task in pending:
                remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
                if not task.wait(remaining):
                    return False

    @property
    def in_flight(self) -> int:
        with self._lock:
            return len(self._in_flight)

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _run(self, batch: list, trigger: str, seq: int, task: SendTask):
        try:
            self._deliver(batch, trigger, seq)
        finally:
            with self._lock:
                self._in_flight.discard(task)
            task._settle()

    def _deliver(self, batch: list, trigger: str, seq: int):
        operations = build_bulk_body(batch)

        start = time.monotonic()
        try:
            response = self._client.bulk(operations)
        except Exception as exc:
            logger.error(
                "Bulk request #%d (%d records, trigger=%s) failed: %s",
                seq, len(batch), trigger, exc,
            )
            self._metrics.record_transport_failure(len(batch))
            self._on_error(TransportError(exc, len(batch)))
            return
        elapsed_ms = (time.monotonic() - start) * 1000

        self._metrics.record_batch(
            batch_size=len(batch), send_time_ms=elapsed_ms, trigger=trigger
        )

        failed = collect_item_errors(response)
        if failed:
            logger.warning(
                "Bulk request #%d: %d of %d records rejected",
                seq, len(failed), len(batch),
            )
            self._metrics.record_item_errors(len(failed))
            for result in failed:
                self._on_error(
                    ItemError(
                        result["error"],
                        destination=result.get("_index"),
                        status=result.get("status"),
                    )
                )

        logger.info(
            "Sent bulk request #%d of %d records in %.1f ms (trigger=%s)",
            seq, len(batch), elapsed_ms, trigger,
        )
