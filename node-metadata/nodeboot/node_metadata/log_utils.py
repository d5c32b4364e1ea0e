# node-metadata/nodeboot/node_metadata/log_utils.py
"""
Logging setup for node-metadata.

Every module logs through a child of the package logger, so configuring the
package logger once covers the fetcher, the label writer and the CLI. Output
stays on stdout/stderr for the bootstrap to collect; there is no syslog.
"""

import logging
import sys

PACKAGE_LOGGER = "nodeboot.node_metadata"
LOG_FORMAT = "[%(levelname)s] %(message)s"

logger = logging.getLogger(PACKAGE_LOGGER)


def _stream_handler(stream, level: int, max_level: int = None) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    if max_level is not None:
        handler.addFilter(lambda record: record.levelno <= max_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(debug: bool = False) -> None:
    """
    Route package log records: INFO and lower to stdout, warnings and errors to stderr.

    The level is applied on every call; handlers are only attached once.
    """
    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)

    if logger.hasHandlers():
        for handler in logger.handlers:
            if handler.level < logging.WARNING:
                handler.setLevel(level)
        return

    logger.addHandler(_stream_handler(sys.stdout, level, max_level=logging.INFO))
    logger.addHandler(_stream_handler(sys.stderr, logging.WARNING))
