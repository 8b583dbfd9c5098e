"""Logging setup for the server process."""

import logging

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(format=LOG_FORMAT, level=level.upper())
    # Keep request-level chatter out of interview logs.
    logging.getLogger("httpx").setLevel(logging.WARNING)
