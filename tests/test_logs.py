from __future__ import annotations

import logging

from f1viewer.logs import LOGGER_NAME, configure_logging


def test_records_are_forwarded_to_callback() -> None:
    lines: list[str] = []
    handler = configure_logging(False, lines.append)
    try:
        logger = logging.getLogger(f"{LOGGER_NAME}.tree")
        logger.debug("hidden")
        logger.info("stream ready")
    finally:
        logging.getLogger(LOGGER_NAME).removeHandler(handler)
    assert len(lines) == 1
    assert "INFO f1viewer.tree: stream ready" in lines[0]


def test_debug_level_and_no_propagation() -> None:
    lines: list[str] = []
    handler = configure_logging(True, lines.append)
    try:
        root = logging.getLogger(LOGGER_NAME)
        assert root.level == logging.DEBUG
        assert root.propagate is False
        logging.getLogger(f"{LOGGER_NAME}.api").debug("GET %s", "/api/x/")
    finally:
        logging.getLogger(LOGGER_NAME).removeHandler(handler)
    assert lines and lines[0].endswith("GET /api/x/")
