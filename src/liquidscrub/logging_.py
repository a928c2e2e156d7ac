"""Logging setup.

Standard `logging` with a single stderr handler. Diagnostics (per-file detail,
verifier command lines) go through loggers; the CLI's user-facing summary goes
through typer.echo and is unaffected by the log level.
"""

import logging


_FORMAT = "%(asctime)s %(levelname)s %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S"


def setup_logging(level: str = "WARNING") -> None:
    """Point the `liquidscrub` logger at stderr; repeated calls replace the handler."""
    logger = logging.getLogger("liquidscrub")
    logger.setLevel(level)
    for h in list(logger.handlers):
        if type(h) is logging.StreamHandler:
            logger.removeHandler(h)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    logger.addHandler(handler)
