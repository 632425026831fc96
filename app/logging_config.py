"""Structured JSON logging for GameMarks.

Every module logs through ``logging.getLogger(__name__)`` and passes
``extra={"component": ..., "game_id": ...}``; this formatter turns
those records into one JSON object per line.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Optional, Union


class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: The log record to format.

        Returns:
            JSON-formatted log string.
        """
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "component": getattr(record, "component", record.name.split(".")[0]),
            "message": record.getMessage(),
        }
        game_id = getattr(record, "game_id", None)
        if game_id:
            log_data["game_id"] = game_id
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    logger: Optional[logging.Logger] = None,
) -> logging.Logger:
    """Install the JSON formatter on ``logger`` (the root logger by default).

    Calling it again only updates the level.
    """
    logger = logger or logging.getLogger()
    if not any(isinstance(h.formatter, JsonFormatter) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
