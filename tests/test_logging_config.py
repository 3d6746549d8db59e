"""
Tests for logging_config module.
"""

import logging

from ciqueue.infra.logging_config import DailyRotatingFileHandler, setup_logging


class TestDailyRotatingFileHandler:
    """Tests for DailyRotatingFileHandler class."""

    def test_handler_creates_log_directory(self, tmp_path):
        log_dir = tmp_path / "new_logs"
        assert not log_dir.exists()

        handler = DailyRotatingFileHandler(log_dir=str(log_dir))
        assert log_dir.exists()
        handler.close()

    def test_handler_creates_log_file(self, tmp_path):
        handler = DailyRotatingFileHandler(log_dir=str(tmp_path))

        log_files = list(tmp_path.glob("ciqueue_*.log"))
        assert len(log_files) == 1
        handler.close()

    def test_handler_emits_record(self, tmp_path):
        handler = DailyRotatingFileHandler(log_dir=str(tmp_path))
        handler.setFormatter(logging.Formatter('%(message)s'))

        record = logging.LogRecord(
            name="test",
            level=logging.INFO,
            pathname="",
            lineno=0,
            msg="Job 3: waiting → running",
            args=(),
            exc_info=None
        )
        handler.emit(record)
        handler.close()

        content = list(tmp_path.glob("ciqueue_*.log"))[0].read_text(encoding="utf-8")
        assert "Job 3: waiting → running" in content

    def test_handlers_share_the_daily_file(self, tmp_path):
        first = DailyRotatingFileHandler(log_dir=tmp_path)
        second = DailyRotatingFileHandler(log_dir=tmp_path)

        assert first.baseFilename == second.baseFilename
        assert len(list(tmp_path.glob("ciqueue_*.log"))) == 1
        first.close()
        second.close()

    def test_handler_switches_file_on_new_day(self, tmp_path):
        handler = DailyRotatingFileHandler(log_dir=tmp_path)
        handler.setFormatter(logging.Formatter('%(message)s'))
        today = handler.baseFilename
        handler._current_date = "20000101"
        handler.baseFilename = str(tmp_path / "ciqueue_20000101.log")

        handler.emit(logging.makeLogRecord({"msg": "after midnight"}))
        handler.close()

        assert handler.baseFilename == today
        assert "after midnight" in (tmp_path / today).read_text(encoding="utf-8")


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_returns_named_logger(self, tmp_path):
        logger = setup_logging("INFO", tmp_path)

        assert isinstance(logger, logging.Logger)
        assert logger.name == "ciqueue"
        assert logger.propagate is False

    def test_sets_level(self, tmp_path):
        logger = setup_logging("DEBUG", tmp_path)
        assert logger.level == logging.DEBUG

    def test_invalid_level_defaults_to_info(self, tmp_path):
        logger = setup_logging("LOUD", tmp_path)
        assert logger.level == logging.INFO

    def test_repeated_setup_replaces_handlers(self, tmp_path):
        setup_logging("INFO", tmp_path)
        logger = setup_logging("INFO", tmp_path)

        assert len(logger.handlers) == 2
        assert any(isinstance(h, DailyRotatingFileHandler) for h in logger.handlers)

    def test_module_loggers_reach_file(self, tmp_path):
        logger = setup_logging("INFO", tmp_path)

        logging.getLogger("ciqueue.coordinator.lifecycle").info("claimed by builder-1")
        for handler in logger.handlers:
            handler.flush()

        content = list(tmp_path.glob("ciqueue_*.log"))[0].read_text(encoding="utf-8")
        assert "ciqueue.coordinator.lifecycle" in content
        assert "claimed by builder-1" in content
