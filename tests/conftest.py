"""Shared pytest fixtures for the bulk-log-sink test suite."""

from __future__ import annotations

import json
import threading

import pytest

from bulk_log_sink.config import SinkConfig
from bulk_log_sink.sink import LogSink


class FakeBulkClient:
    """Records every bulk call; responds with *response* or raises *error*.

    When *gate* is set, bulk() blocks until the gate event is released.
    """

    def __init__(self, response=None, error=None, gate: threading.Event | None = None):
        self.response = response if response is not None else {"errors": False, "items": []}
        self.error = error
        self.gate = gate
        self.calls: list[list[str]] = []
        self._lock = threading.Lock()
        self.called = threading.Event()

    def bulk(self, operations):
        with self._lock:
            self.calls.append(list(operations))
        self.called.set()
        if self.gate is not None:
            self.gate.wait(timeout=5.0)
        if self.error is not None:
            raise self.error
        return self.response

    def batches(self) -> list[list[dict]]:
        """Decoded body lines of every call, one list per bulk request."""
        with self._lock:
            return [
                [json.loads(line) for line in call[1::2]]
                for call in self.calls
            ]


def raw_record(i: int = 0, time: str = "2024-03-07T12:00:00.000Z", level: int = 30) -> bytes:
    return json.dumps(
        {"v": 0, "level": level, "name": "app", "msg": f"log-{i}", "time": time, "seq": i}
    ).encode("utf-8")


@pytest.fixture()
def fake_client() -> FakeBulkClient:
    return FakeBulkClient()


@pytest.fixture()
def make_sink(fake_client):
    """Factory for sinks wired to a FakeBulkClient; closes them afterwards."""
    sinks: list[LogSink] = []

    def _make(client=None, **overrides) -> LogSink:
        defaults = {"limit": 100, "idle_interval": 30.0}
        defaults.update(overrides)
        sink = LogSink(SinkConfig(**defaults), client=client or fake_client)
        errors: list = []
        sink.on_error(errors.append)
        sink.errors = errors
        sinks.append(sink)
        return sink

    yield _make

    for sink in sinks:
        sink.close(timeout=5.0)
