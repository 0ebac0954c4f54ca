"""Logging setup for the service."""

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once at startup.

    Safe to call repeatedly; later calls only adjust the level.
    """
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=_FORMAT, stream=sys.stdout)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
