"""Structured logging utilities."""
import logging
import json
import sys
from datetime import datetime, timezone

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

# stdlib level name -> activity log level stored in the `logs` table
ACTIVITY_LEVELS = {
    "DEBUG": "DEBUG",
    "INFO": "INFO",
    "SUCCESS": "SUCCESS",
    "WARNING": "WARN",
    "WARN": "WARN",
    "ERROR": "ERROR",
    "CRITICAL": "ERROR",
}


def activity_level(level: int | str) -> str:
    """Map a stdlib level (number or name) onto the activity log vocabulary."""
    name = logging.getLevelName(level) if isinstance(level, int) else level.upper()
    return ACTIVITY_LEVELS.get(name, "INFO")


class StructuredFormatter(logging.Formatter):
    """Format logs as JSON for structured logging"""

    STANDARD_ATTRS = {
        'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
        'levelno', 'lineno', 'module', 'msecs', 'message', 'pathname', 'process',
        'processName', 'relativeCreated', 'thread', 'threadName', 'exc_info',
        'exc_text', 'stack_info', 'getMessage', 'taskName'
    }

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in self.STANDARD_ATTRS and not key.startswith('_'):
                log_data[key] = value
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


def setup_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Route every module logger through one JSON handler on stdout.

    Modules log via ``logging.getLogger(__name__)`` so the handler is put on
    the root logger; uvicorn's own loggers keep their handlers.
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = []
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    return logging.getLogger("solana-scout")
