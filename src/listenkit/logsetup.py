"""
Logging setup for applications built on listenkit.

The library itself only ever calls logging.getLogger(); it never installs
handlers on import. Applications (and the demo CLI) call setup_logging()
once at startup.

Loggers used by the package:

    listenkit.access        one line per request (AccessLog hooks)
    listenkit.compression   gzip request bodies that failed to decode
    listenkit.extend        envelope serialization failures
    listenkit.hooks         hook registration (DEBUG)
    listenkit.response      superfluous write_header() calls
"""

import logging


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger and the listenkit logger level.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Unknown names fall back to INFO.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )

    logging.getLogger("listenkit").setLevel(numeric_level)
