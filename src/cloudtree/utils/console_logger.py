from __future__ import annotations

import logging
import sys

_FORMAT = "%(levelname)s %(name)s: %(message)s"


def ensure_console_logger(
    logger: logging.Logger,
    handler_name: str,
    *,
    level: int = logging.INFO,
) -> logging.Handler:
    """Attach a stderr handler called *handler_name* to *logger* once.

    Later calls only adjust the level, so command line entry points can call
    this on every invocation.
    """

    logger.setLevel(level)
    for handler in logger.handlers:
        if handler.get_name() == handler_name:
            return handler

    console = logging.StreamHandler(sys.stderr)
    console.set_name(handler_name)
    console.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(console)
    return console
