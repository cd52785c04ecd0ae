# tests/test_utils_logger.py
"""Unit tests for the logger utility."""

import logging
from pathlib import Path

import pytest

from tree_bridge.utils.logger import (
    TreeBridgeFormatter,
    TreeBridgeLogger,
    configure_logging,
    get_logger,
    set_log_level,
    temporary_log_level,
)


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before and after each test."""
    logging.getLogger("tree_bridge").handlers.clear()
    logging.getLogger("tree_bridge").setLevel(logging.NOTSET)
    TreeBridgeLogger._configured = False
    TreeBridgeLogger._loggers = {}
    yield
    logging.getLogger("tree_bridge").handlers.clear()
    logging.getLogger("tree_bridge").setLevel(logging.NOTSET)
    TreeBridgeLogger._configured = False
    TreeBridgeLogger._loggers = {}


@pytest.mark.unit
class TestLogger:
    """Test cases for the logger utility."""

    def test_get_logger(self):
        logger = get_logger(__name__)
        assert isinstance(logger, logging.Logger)
        assert logger.name == f"tree_bridge.{__name__}"

    def test_package_names_not_prefixed_twice(self):
        logger = get_logger("tree_bridge.models.trainer")
        assert logger.name == "tree_bridge.models.trainer"

    def test_main_module_name(self):
        assert get_logger("__main__").name == "tree_bridge.main"

    def test_configure_logging_level(self):
        configure_logging(level="DEBUG")
        assert logging.getLogger("tree_bridge").level == logging.DEBUG

    def test_configure_only_once(self):
        configure_logging(level="DEBUG")
        configure_logging(level="ERROR")
        assert logging.getLogger("tree_bridge").level == logging.DEBUG

    def test_configure_logging_file(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "test.log"
        configure_logging(log_file=log_file)

        logger = get_logger(__name__)
        logger.warning("Dropped guarded arguments.")

        assert log_file.exists()
        with open(log_file, "r") as f:
            assert "Dropped guarded arguments." in f.read()

    def test_temporary_log_level(self):
        configure_logging(level="INFO")
        assert logging.getLogger("tree_bridge").level == logging.INFO

        with temporary_log_level("DEBUG"):
            assert logging.getLogger("tree_bridge").level == logging.DEBUG

        assert logging.getLogger("tree_bridge").level == logging.INFO

    def test_set_log_level(self):
        configure_logging(level="INFO")

        set_log_level("WARNING")
        assert logging.getLogger("tree_bridge").level == logging.WARNING

    def test_log_record(self, caplog):
        configure_logging(level="INFO")
        logger = get_logger(__name__)

        with caplog.at_level(logging.INFO, logger="tree_bridge"):
            logger.info("Test message")

        records = [r for r in caplog.records if r.name == f"tree_bridge.{__name__}"]
        assert len(records) == 1
        assert records[0].levelname == "INFO"
        assert records[0].getMessage() == "Test message"


@pytest.mark.unit
class TestFormatter:
    """Line layout of the package formatter."""

    def _record(self, **extra):
        record = logging.LogRecord("tree_bridge.x", logging.INFO, __file__, 1, "hello", None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_basic_layout(self):
        line = TreeBridgeFormatter().format(self._record())
        assert "INFO" in line
        assert "tree_bridge.x" in line
        assert line.endswith("hello")

    def test_context_appended(self):
        line = TreeBridgeFormatter().format(self._record(context={"n_rows": 3}))
        assert 'Context: {"n_rows": 3}' in line

    def test_context_omitted_in_simple_style(self):
        line = TreeBridgeFormatter(include_context=False).format(self._record(context={"n_rows": 3}))
        assert "Context" not in line

    def test_duration_appended(self):
        line = TreeBridgeFormatter().format(self._record(duration=1.5))
        assert "Duration: 1.500s" in line
