"""Metrics collector — thread-safe counters and histograms for bulk shipping."""

import threading
import time
import logging

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Collects and reports metrics about bulk indexing operations."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._batches_sent: int = 0
        self._total_entries: int = 0
        self._send_times: list[float] = []
        self._flush_triggers: dict = {"size": 0, "timer": 0, "manual": 0, "close": 0}
        self._transport_failures: int = 0
        self._dropped_entries: int = 0
        self._item_errors: int = 0
        self._decode_errors: int = 0
        self._start_time = time.monotonic()

    def record_batch(
        self,
        batch_size: int,
        send_time_ms: float,
        trigger: str = "size",
    ) -> None:
        """Record a bulk request the backend answered.

        Args:
            batch_size: Number of records in the batch.
            send_time_ms: Round-trip time of the bulk call, in milliseconds.
            trigger: What caused the flush — "size", "timer", "manual" or "close".
        """
        with self._lock:
            self._batches_sent += 1
            self._total_entries += batch_size
            self._send_times.append(send_time_ms)
            self._flush_triggers[trigger] = self._flush_triggers.get(trigger, 0) + 1

    def record_transport_failure(self, batch_size: int) -> None:
        """Record a bulk request that failed outright; its records are dropped."""
        with self._lock:
            self._transport_failures += 1
            self._dropped_entries += batch_size

    def record_item_errors(self, count: int) -> None:
        with self._lock:
            self._item_errors += count

    def record_decode_error(self) -> None:
        with self._lock:
            self._decode_errors += 1

    def snapshot(self) -> dict:
        """Point-in-time copy of every counter, plus send-time averages."""
        with self._lock:
            send_times = list(self._send_times)
            avg_batch = (
                self._total_entries / self._batches_sent if self._batches_sent else 0.0
            )
            avg_send = sum(send_times) / len(send_times) if send_times else 0.0

            return {
                "batches_sent": self._batches_sent,
                "total_entries": self._total_entries,
                "avg_batch_size": avg_batch,
                "avg_send_time_ms": avg_send,
                "p95_send_time_ms": _interpolated_percentile(send_times, 95),
                "flush_triggers": dict(self._flush_triggers),
                "transport_failures": self._transport_failures,
                "dropped_entries": self._dropped_entries,
                "item_errors": self._item_errors,
                "decode_errors": self._decode_errors,
                "uptime_seconds": time.monotonic() - self._start_time,
            }


def _interpolated_percentile(values: list, pct: float) -> float:
    """Linear interpolation between closest ranks; 0.0 for no values."""
    if not values:
        return 0.0
    ordered = sorted(values)
    rank = (pct / 100) * (len(ordered) - 1)
    below = int(rank)
    above = min(below + 1, len(ordered) - 1)
    return float(ordered[below] + (rank - below) * (ordered[above] - ordered[below]))
