"""
Logging setup for the quiz service.

Console output always; a rotating log file when a directory is configured.
"""

import os
import json
import logging
import logging.handlers
from typing import Optional

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """One JSON object per line; the message is escaped by json.dumps."""

    def format(self, record):
        entry = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(
    app=None,
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    json_format: bool = False
) -> logging.Logger:
    """
    Configure the root logger used by the app and the ``quiz`` package.

    Args:
        app: Flask application instance (optional); its own logger is aligned
        log_level: DEBUG, INFO, WARNING or ERROR
        log_dir: directory for ``quiz.log``; no file handler when None
        json_format: emit one JSON object per line

    Returns:
        The configured ``quiz`` logger
    """
    level = getattr(logging, (log_level or "INFO").upper(), logging.INFO)
    if json_format:
        formatter = JsonFormatter(datefmt=DATE_FORMAT)
    else:
        formatter = logging.Formatter(PLAIN_FORMAT, datefmt=DATE_FORMAT)

    logger = logging.getLogger("quiz")
    logger.setLevel(level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, "quiz.log"),
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8"
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if app is not None:
        app.logger.setLevel(level)
        logging.getLogger("werkzeug").setLevel(logging.WARNING)

    logger.debug("Logging initialized: level=%s, dir=%s", log_level, log_dir)
    return logger
