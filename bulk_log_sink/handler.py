"""logging.Handler that ships Python log records through a LogSink."""

import json
import logging
import os
import socket
from datetime import datetime, timezone

# Records from these loggers are produced while shipping and would loop back.
_IGNORED_LOGGERS = ("elasticsearch", "elastic_transport", "urllib3", "bulk_log_sink")

# (python levelno threshold, bunyan level), highest first
_BUNYAN_LEVELS = (
    (logging.CRITICAL, 60),
    (logging.ERROR, 50),
    (logging.WARNING, 40),
    (logging.INFO, 30),
    (logging.DEBUG, 20),
)


def bunyan_level(levelno: int) -> int:
    for threshold, level in _BUNYAN_LEVELS:
        if levelno >= threshold:
            return level
    return 10


class BulkLogHandler(logging.Handler):
    """Formats each LogRecord as a bunyan record and writes it to *sink*.

    Closing the handler (directly or through ``logging.shutdown`` at exit)
    closes the sink too unless *close_sink* is False.
    """

    def __init__(self, sink, level=logging.NOTSET, close_sink: bool = True):
        super().__init__(level)
        self._sink = sink
        self._close_sink = close_sink
        self._hostname = socket.gethostname()

    def to_record(self, record: logging.LogRecord) -> dict:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return {
            "v": 0,
            "level": bunyan_level(record.levelno),
            "name": record.name,
            "hostname": self._hostname,
            "pid": record.process or os.getpid(),
            "time": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "msg": self.format(record),
        }

    def emit(self, record: logging.LogRecord):
        if record.name.startswith(_IGNORED_LOGGERS):
            return
        try:
            payload = json.dumps(self.to_record(record), default=str)
            self._sink.write(payload.encode("utf-8"))
        except Exception:
            self.handleError(record)

    def close(self):
        try:
            if self._close_sink:
                self._sink.close(timeout=self._sink.config.close_timeout)
        finally:
            super().close()
