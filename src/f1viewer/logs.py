from __future__ import annotations

import logging
from typing import Callable

LOGGER_NAME = "f1viewer"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


class CallbackHandler(logging.Handler):
    def __init__(self, write: Callable[[str], None], level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self._write = write
        self.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._write(self.format(record))
        except Exception:
            self.handleError(record)


def configure_logging(debug: bool, write: Callable[[str], None]) -> logging.Handler:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    # keep records off stderr, which would scribble over the TUI
    logger.propagate = False
    handler = CallbackHandler(write)
    logger.addHandler(handler)
    return handler
