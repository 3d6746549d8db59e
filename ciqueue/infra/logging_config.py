"""
Logging configuration module.

One log file per day, shared by the long-running server and the short-lived
CGI processes, which all append to it.
"""

import logging
from datetime import datetime
from pathlib import Path

LOGGER_NAME = "ciqueue"
LOG_FORMAT = "%(asctime)s - %(process)d - %(name)s - %(levelname)s - %(message)s"


class DailyRotatingFileHandler(logging.FileHandler):
    """
    File handler writing to <log_dir>/ciqueue_YYYYMMDD.log.

    Switches to the next day's file on the first record after midnight.
    """

    def __init__(self, log_dir: str | Path = "logs"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._current_date = datetime.now().strftime("%Y%m%d")
        super().__init__(self._path_for(self._current_date), mode="a", encoding="utf-8")

    def _path_for(self, date_str: str) -> str:
        return str(self.log_dir / f"ciqueue_{date_str}.log")

    def emit(self, record: logging.LogRecord) -> None:
        current_date = datetime.now().strftime("%Y%m%d")
        if current_date != self._current_date:
            self.close()
            self.baseFilename = self._path_for(current_date)
            self._current_date = current_date
            self.stream = self._open()

        super().emit(record)


def setup_logging(log_level: str = "INFO", log_dir: str | Path = "logs") -> logging.Logger:
    """
    Configure the `ciqueue` logger and return it.

    Module loggers (`ciqueue.coordinator.lifecycle`, ...) propagate to it.
    Calling it again replaces the previous handlers.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for daily log files
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.propagate = False

    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    # CGI responses go to stdout, so console logging uses stderr
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    file_handler = DailyRotatingFileHandler(log_dir=log_dir)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logger.debug(f"Logging started - level: {log_level}, file: {file_handler.baseFilename}")

    return logger
