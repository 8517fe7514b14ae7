"""Entry point: pipes newline-delimited JSON log records from stdin into
a bulk-indexing backend."""

import logging
import signal
import sys

from bulk_log_sink.config import load_config
from bulk_log_sink.sink import LogSink


def main(argv=None, stream=None):
    config = load_config(argv)

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logger = logging.getLogger(__name__)

    def handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        # Interrupts the blocking stdin read; the finally block drains the sink.
        raise KeyboardInterrupt

    signal.signal(signal.SIGTERM, handle_signal)

    if stream is None:
        stream = sys.stdin.buffer

    sink = LogSink(config)
    logger.info(
        "Starting bulk log sink: host=%s, pattern=%s, limit=%d, interval=%.1fs",
        config.host,
        config.destination_pattern,
        config.limit,
        config.idle_interval,
    )

    try:
        for line in stream:
            if not line.strip():
                continue
            sink.write(line)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        if not sink.close(timeout=config.close_timeout):
            logger.error("Gave up waiting for in-flight bulk requests")
        logger.info("Sink metrics: %s", sink.metrics.snapshot())


if __name__ == "__main__":
    main()
