"""Logging setup for the quiz service.

Entrypoints call ``setup_logging()`` once at import; library modules only
use ``logging.getLogger(__name__)`` and inherit the root handler.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import IO

TEXT_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_NOISY_LOGGERS = ("httpx", "httpcore", "openai")


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object on one line.

    Tracebacks go into an ``exc_info`` field instead of trailing lines, so
    every emitted line parses on its own.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(stream: IO[str] | None = None) -> None:
    """Install one root handler configured from ``LOG_LEVEL`` / ``LOG_FORMAT``.

    ``LOG_FORMAT=json`` selects ``JsonFormatter`` for log collectors;
    anything else gives the plain text format.
    """
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    use_json = os.getenv("LOG_FORMAT", "text").lower() == "json"

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        JsonFormatter() if use_json else logging.Formatter(TEXT_FORMAT, DATE_FORMAT)
    )

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        handlers=[handler],
        force=True,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
