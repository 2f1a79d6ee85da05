from __future__ import annotations

import json
import logging
import sys
from typing import Any

ROOT_LOGGER = "engagesdk"

_configured = False


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with the originating thread.

    Uploads run on the scheduler thread, so the thread name tells background
    work apart from calls made by the application.
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(json_logs: bool = False, debug: bool = False, *, force: bool = False) -> logging.Logger:
    """Attach a stderr handler to the ``engagesdk`` logger.

    The host application's root logger is left alone. ``debug`` lowers the
    level to DEBUG and lets APScheduler's job chatter through.
    """
    global _configured
    logger = logging.getLogger(ROOT_LOGGER)
    if _configured and not force:
        return logger

    handler = logging.StreamHandler(sys.stderr)
    if json_logs:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(fmt="%(asctime)s %(levelname)s | %(name)s | %(message)s"))

    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False

    logging.getLogger("apscheduler").setLevel(logging.DEBUG if debug else logging.WARNING)

    _configured = True
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
