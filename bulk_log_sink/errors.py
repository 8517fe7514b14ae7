"""Error types surfaced on the sink's error channel."""


class SinkError(Exception):
    """Base class for every error the sink emits or raises."""


class DecodeError(SinkError):
    """Raised when an input chunk is not a usable log record."""

    def __init__(self, message: str, raw=None):
        super().__init__(message)
        self.raw = raw


class TransportError(SinkError):
    """Emitted when a bulk request fails outright. The batch is dropped."""

    def __init__(self, cause: BaseException, batch_size: int):
        super().__init__(f"bulk request for {batch_size} record(s) failed: {cause}")
        self.cause = cause
        self.batch_size = batch_size


class ItemError(SinkError):
    """Emitted once per item the backend rejected inside an accepted request."""

    def __init__(self, cause, destination: str | None = None, status: int | None = None):
        super().__init__(f"bulk item rejected (index={destination}, status={status}): {cause}")
        self.cause = cause
        self.destination = destination
        self.status = status


class SinkClosedError(SinkError):
    """Raised when writing to a sink that is closing or closed."""
