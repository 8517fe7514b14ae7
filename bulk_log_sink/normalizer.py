"""Record normalizer: turns one raw JSON chunk into an indexable record."""

import json
from dataclasses import dataclass

from bulk_log_sink.destination import parse_timestamp, resolve_destination
from bulk_log_sink.errors import DecodeError

DEFAULT_PATTERN = "[logstash-]YYYY[-]MM[-]DD"
DEFAULT_CATEGORY = "logs"

# bunyan numeric levels
LEVEL_NAMES: dict[int, str] = {
    10: "trace",
    20: "debug",
    30: "info",
    40: "warn",
    50: "error",
    60: "fatal",
}


@dataclass(frozen=True)
class NormalizedRecord:
    destination: str
    category: str
    body: dict


def decode_record(chunk) -> dict:
    """Decode a UTF-8 JSON object from *chunk* (bytes or str)."""
    try:
        if isinstance(chunk, (bytes, bytearray)):
            chunk = chunk.decode("utf-8")
        data = json.loads(chunk)
    except (UnicodeDecodeError, ValueError, TypeError) as exc:
        raise DecodeError(f"invalid log record: {exc}", raw=chunk) from exc

    if not isinstance(data, dict):
        raise DecodeError(
            f"log record must be a JSON object, got {type(data).__name__}", raw=chunk
        )
    return data


def normalize(
    chunk,
    pattern: str = DEFAULT_PATTERN,
    category: str = DEFAULT_CATEGORY,
) -> NormalizedRecord:
    """Decode *chunk* and build the record that will be bulk-indexed.

    The numeric ``level`` is replaced by its name, ``msg`` becomes
    ``message`` and the destination is resolved from ``time``.

    Raises:
        DecodeError: malformed chunk, or a missing/unparseable ``time``.
    """
    body = decode_record(chunk)

    if "time" not in body:
        raise DecodeError("log record has no 'time' field", raw=chunk)
    try:
        timestamp = parse_timestamp(body["time"])
    except (ValueError, TypeError) as exc:
        raise DecodeError(f"invalid 'time' field {body['time']!r}: {exc}", raw=chunk) from exc

    level = body.get("level")
    if isinstance(level, int) and level in LEVEL_NAMES:
        body["level"] = LEVEL_NAMES[level]

    if "msg" in body:
        body["message"] = body.pop("msg")

    return NormalizedRecord(
        destination=resolve_destination(timestamp, pattern),
        category=category,
        body=body,
    )
