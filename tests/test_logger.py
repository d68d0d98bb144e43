"""Tests for the logging setup module."""

import logging

from vehicle_ocr.utils.logger import LOG_FORMAT, get_logger, setup_logging


class TestSetupLogging:
    """Tests for the setup_logging function."""

    def setup_method(self) -> None:
        self.root = logging.getLogger()
        self.saved_handlers = list(self.root.handlers)
        self.saved_level = self.root.level
        self.root.handlers.clear()

    def teardown_method(self) -> None:
        self.root.handlers[:] = self.saved_handlers
        self.root.setLevel(self.saved_level)

    def test_setup_creates_handler(self) -> None:
        setup_logging("DEBUG")
        assert len(self.root.handlers) == 1
        assert self.root.level == logging.DEBUG
        assert self.root.handlers[0].formatter._fmt == LOG_FORMAT

    def test_setup_idempotent(self) -> None:
        setup_logging("INFO")
        count = len(self.root.handlers)
        setup_logging("INFO")
        assert len(self.root.handlers) == count

    def test_setup_invalid_level_defaults_to_info(self) -> None:
        setup_logging("NONEXISTENT")
        assert self.root.level == logging.INFO

    def test_noisy_loggers_kept_at_info_in_debug_mode(self) -> None:
        setup_logging("DEBUG")
        assert logging.getLogger("PIL").level == logging.INFO

    def test_lowercase_level_accepted(self) -> None:
        setup_logging("warning")
        assert self.root.level == logging.WARNING


class TestGetLogger:
    """Tests for the get_logger function."""

    def test_returns_named_logger(self) -> None:
        logger = get_logger("test.module")
        assert logger.name == "test.module"
        assert isinstance(logger, logging.Logger)

    def test_same_name_returns_same_logger(self) -> None:
        assert get_logger("test.same") is get_logger("test.same")
