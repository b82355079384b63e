import logging
import sys
from typing import TextIO

from supervisord_rpc.utils import config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

PACKAGE_LOGGER = "supervisord_rpc"

QUIET_LOGGERS = ("urllib3", "requests")


def setup_logging(level: str | None = None, stream: TextIO | None = None) -> None:
    """
    Send log records to ``stream`` (stderr by default) at ``level``, or at
    ``LOG_LEVEL`` when no level is given. Does nothing if the root logger
    already has handlers, so an embedding application keeps its own setup.
    """
    root_logger = logging.getLogger()

    if root_logger.handlers:
        return

    level = (level or config.LOG_LEVEL).upper()
    root_logger.setLevel(level)

    # stdout carries command output
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = "") -> logging.Logger:
    """Logger inside the ``supervisord_rpc`` namespace."""
    if not name or name == PACKAGE_LOGGER:
        return logging.getLogger(PACKAGE_LOGGER)
    if not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
