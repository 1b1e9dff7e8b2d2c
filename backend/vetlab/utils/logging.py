"""Logging setup for applications embedding the engine.

Engine modules only create module-level loggers; configuring handlers is left
to the host, which can call setup_logging() once at startup.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from vetlab.config import settings


class JsonFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False)


def setup_logging(level: str | None = None, format_json: bool | None = None) -> None:
    """Configure the root logger.

    Args:
        level: Logging level name. Defaults to settings.log_level, or DEBUG
            when settings.debug is set.
        format_json: Emit JSON lines instead of plain text. Defaults to
            settings.log_json.
    """
    if level is None:
        level = "DEBUG" if settings.debug else settings.log_level
    if format_json is None:
        format_json = settings.log_json

    if format_json:
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    logging.basicConfig(level=getattr(logging, level.upper()), handlers=[handler], force=True)
