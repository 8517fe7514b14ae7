"""Log sink: accepts raw records and drives them through normalizer, buffer
and sender until it is closed and drained."""

import enum
import threading
import time
import logging

from bulk_log_sink.batch_buffer import BatchBuffer
from bulk_log_sink.client import ElasticsearchBulkClient
from bulk_log_sink.config import SinkConfig
from bulk_log_sink.errors import DecodeError, SinkClosedError, SinkError
from bulk_log_sink.metrics import MetricsCollector
from bulk_log_sink.normalizer import normalize
from bulk_log_sink.sender import BulkSender, SendTask

logger = logging.getLogger(__name__)


def _remaining(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())


class SinkState(enum.Enum):
    OPEN = "open"
    CLOSING = "closing"
    DRAINED = "drained"


class LogSink:
    """Buffered, batching sink in front of a bulk-indexing backend.

    Records are written with :meth:`write`, batched by a BatchBuffer and sent
    by a BulkSender. Failures never stop ingestion; they are logged and
    passed to every callback registered with :meth:`on_error`.

    When *client* is omitted an ElasticsearchBulkClient is built from
    ``config.host`` and closed again once the sink is drained.
    """

    def __init__(
        self,
        config: SinkConfig | None = None,
        client=None,
        metrics: MetricsCollector | None = None,
    ):
        self._config = config or SinkConfig()
        self._owns_client = client is None
        if client is None:
            client = ElasticsearchBulkClient(
                self._config.host, request_timeout=self._config.request_timeout
            )
        self._client = client
        self._metrics = metrics or MetricsCollector()
        self._listeners: list = []
        self._state = SinkState.OPEN
        self._state_lock = threading.Lock()
        self._final_flush_started = threading.Event()

        self._sender = BulkSender(self._client, self._emit_error, self._metrics)
        self._buffer = BatchBuffer(
            limit=self._config.limit,
            idle_interval=self._config.idle_interval,
            on_flush=self._sender.send,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def write(self, chunk) -> bool:
        """Normalize one raw record and buffer it.

        Returns False if the chunk could not be decoded; the DecodeError is
        emitted and the record dropped.

        Raises:
            SinkClosedError: if close() has been called.
        """
        if self._state is not SinkState.OPEN:
            raise SinkClosedError(f"cannot write to a {self._state.value} sink")

        try:
            record = normalize(
                chunk,
                pattern=self._config.destination_pattern,
                category=self._config.category,
            )
        except DecodeError as exc:
            self._metrics.record_decode_error()
            self._emit_error(exc)
            return False

        # close() flips the state under the same lock, so a record is never
        # pushed into a buffer that has already been closed.
        with self._state_lock:
            if self._state is not SinkState.OPEN:
                raise SinkClosedError(f"cannot write to a {self._state.value} sink")
            self._buffer.push(record)
        return True

    def flush(self) -> SendTask:
        """Send whatever is buffered now instead of waiting for a trigger."""
        return self._buffer.flush(trigger="manual")

    def close(self, timeout: float | None = None) -> bool:
        """Flush the remaining records and wait for every send to settle.

        Returns True once the sink is drained, False if *timeout* expired
        first; calling close() again keeps waiting.
        """
        with self._state_lock:
            if self._state is SinkState.DRAINED:
                return True
            first_close = self._state is SinkState.OPEN
            self._state = SinkState.CLOSING

        deadline = None if timeout is None else time.monotonic() + timeout

        if first_close:
            logger.info(
                "Closing sink, flushing %d pending record(s)",
                self._buffer.pending_count,
            )
            try:
                self._buffer.close()
            finally:
                self._final_flush_started.set()
        elif not self._final_flush_started.wait(_remaining(deadline)):
            logger.warning("Sink close timed out waiting for the final flush")
            return False

        # A batch swapped out by a timer or manual flush only shows up in the
        # sender once its handoff completes.
        if not (
            self._buffer.wait_handoffs(_remaining(deadline))
            and self._sender.wait_all(_remaining(deadline))
        ):
            logger.warning(
                "Sink close timed out with %d bulk request(s) in flight",
                self._sender.in_flight,
            )
            return False

        with self._state_lock:
            if self._state is SinkState.DRAINED:
                return True
            self._state = SinkState.DRAINED

        if self._owns_client:
            self._client.close()
        logger.info("Sink drained: %s", self._metrics.snapshot())
        return True

    def on_error(self, callback) -> None:
        """Register *callback* to receive every emitted SinkError."""
        self._listeners.append(callback)

    @property
    def state(self) -> SinkState:
        return self._state

    @property
    def pending_count(self) -> int:
        return self._buffer.pending_count

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def config(self) -> SinkConfig:
        return self._config

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close(timeout=self._config.close_timeout)

    # ------------------------------------------------------------------
    # Error channel
    # ------------------------------------------------------------------

    def _emit_error(self, error: SinkError):
        if isinstance(error, DecodeError):
            logger.warning("Dropping undecodable record: %s", error)
        else:
            logger.error("Sink error: %s", error)

        for callback in list(self._listeners):
            try:
                callback(error)
            except Exception:
                logger.exception("Error listener %r failed", callback)
