"""Tests for logging setup."""

import logging
from logging.handlers import RotatingFileHandler

from dhcping.logging_config import configure_logging, setup_logging


def console_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if type(h) is logging.StreamHandler]


def test_quiet_by_default() -> None:
    logger = configure_logging()
    assert logger.name == "dhcping"
    assert not logger.propagate
    assert [h.level for h in console_handlers(logger)] == [logging.WARNING]


def test_verbose_shows_debug() -> None:
    logger = configure_logging(verbose=True)
    assert [h.level for h in console_handlers(logger)] == [logging.DEBUG]


def test_reconfigure_replaces_handlers() -> None:
    configure_logging()
    logger = configure_logging()
    assert len(logger.handlers) == 1


def test_log_file(tmp_path) -> None:
    log_path = tmp_path / "logs" / "dhcping.log"
    logger = setup_logging(log_file=str(log_path), enable_console=False)
    try:
        assert [type(h) for h in logger.handlers] == [RotatingFileHandler]
        logging.getLogger("dhcping.dhcp.probe").info("timeout waiting for reply")
        for handler in logger.handlers:
            handler.flush()
        assert "timeout waiting for reply" in log_path.read_text()
    finally:
        setup_logging(enable_console=False)
