# tests/test_logUtil.py
"""
Tests for the Logger helper and log_block.
"""

import logging

import pytest

from nasality.util.logUtil import Logger, log_block


class TestLogger:
    """Tests for Logger."""

    def test_writes_to_log_directory(self, tmp_path):
        logger = Logger(str(tmp_path), "unit_run").get_logger(console=False)

        logger.info("hello nasality")
        for handler in logger.handlers:
            handler.flush()

        log_file = tmp_path / "log" / "unit_run.log"
        assert log_file.exists()
        assert "INFO: hello nasality" in log_file.read_text(encoding="utf-8")

    def test_level_mapping(self, tmp_path):
        logger = Logger(str(tmp_path), "debug_run", level="debug").get_logger(console=False)

        assert logger.level == logging.DEBUG

    def test_unknown_level(self, tmp_path):
        with pytest.raises(ValueError, match="unknown log level"):
            Logger(str(tmp_path), "bad_run", level="verbose")

    def test_handlers_do_not_stack(self, tmp_path):
        Logger(str(tmp_path), "repeat_run").get_logger()
        logger = Logger(str(tmp_path), "repeat_run").get_logger()

        assert len(logger.handlers) == 2


def test_log_block_formats_bullets(tmp_path):
    logger = Logger(str(tmp_path), "block_run").get_logger(console=False)

    log_block(logger, "Title", ["first", "second"])
    for handler in logger.handlers:
        handler.flush()

    text = (tmp_path / "log" / "block_run.log").read_text(encoding="utf-8")
    assert "Title\n    • first\n    • second" in text
