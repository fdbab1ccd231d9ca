"""
Logging configuration module.

Daily log rotation with process start time tracking, plus the
source-tagged adapter jobs use to write their lines.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

LOGGER_NAME = "chainsync"

PROCESS_STARTED_AT = datetime.now()


class DailyRotatingFileHandler(logging.FileHandler):
    """
    Daily rotating file handler.

    Creates one log file per calendar day with format:
    logs/chainsync_YYYYMMDD_<START_HHMMSS>.log

    START_HHMMSS comes from started_at (process start by default) and
    stays fixed for the handler's lifetime, only YYYYMMDD changes.
    """

    def __init__(
        self,
        log_dir: str | Path = "logs",
        encoding: str = "utf-8",
        started_at: Optional[datetime] = None,
    ):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self._start_hhmmss = (started_at or PROCESS_STARTED_AT).strftime("%H%M%S")
        self._current_date: Optional[str] = None

        super().__init__(self._get_current_log_path(), mode='a', encoding=encoding)
        self._current_date = datetime.now().strftime("%Y%m%d")

    def _get_current_log_path(self) -> str:
        """Get log file path for current date."""
        date_str = datetime.now().strftime("%Y%m%d")
        return str(self.log_dir / f"chainsync_{date_str}_{self._start_hhmmss}.log")

    def emit(self, record: logging.LogRecord) -> None:
        """Emit a record, rotating to new file if date changed."""
        current_date = datetime.now().strftime("%Y%m%d")

        if self._current_date != current_date:
            self.close()
            self.baseFilename = self._get_current_log_path()
            self._current_date = current_date
            self.stream = self._open()

        super().emit(record)


class SourceAdapter(logging.LoggerAdapter):
    """Prefixes every message with the source tag: "[source] message"."""

    def process(self, msg, kwargs):
        return f"[{self.extra['source']}] {msg}", kwargs


def source_logger(source: str, name: str = LOGGER_NAME) -> SourceAdapter:
    """Logger writing lines tagged with a source, i.e. WriteLine(source, message)."""
    return SourceAdapter(logging.getLogger(name), {"source": source})


def setup_logging(log_level: str = "INFO", log_dir: str | Path = "logs") -> logging.Logger:
    """
    Configure the chainsync logger and return it.

    Console output plus one file per day under log_dir. Every module
    logs through a child of this logger (logging.getLogger(__name__)).

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for the daily log files

    Returns:
        logging.Logger: Configured logger instance
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)

    # Prevent propagation to root logger (avoid duplicate logs)
    logger.propagate = False

    if logger.handlers:
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    file_handler = DailyRotatingFileHandler(log_dir=log_dir, encoding='utf-8')
    file_handler.setLevel(numeric_level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logger.info(f"Logging started - level: {log_level}, file: {file_handler.baseFilename}")

    return logger
