"""Logging setup for the dupmerge command line."""

from __future__ import annotations

import logging

# third-party loggers that log every request at INFO
_CHATTY_LOGGERS = ("httpx", "httpcore")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Configure the root logger for CLI output.

    Merge runs log one line per skipped record and per failed mutation, so the
    format keeps the logger name to tell grouping, execution and store
    messages apart. ``force=True`` replaces handlers installed earlier.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
