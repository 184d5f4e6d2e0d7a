import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional

from simpligest.config import get_settings

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine")
# LogRecord attributes that are not user supplied "extra" fields
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line; values passed with ``extra=`` are kept as fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _build_formatter(as_json: bool) -> logging.Formatter:
    if as_json:
        return JsonFormatter()
    return logging.Formatter(fmt=PLAIN_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")


def setup_logging(level: Optional[str] = None) -> None:
    settings = get_settings()
    level_name = (level or settings.LOG_LEVEL).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)
    formatter = _build_formatter(settings.LOG_JSON)

    handlers = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(
            RotatingFileHandler(
                settings.LOG_FILE,
                maxBytes=settings.LOG_FILE_MAX_BYTES,
                backupCount=settings.LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        )

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    if numeric_level > logging.DEBUG:
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["JsonFormatter", "PLAIN_FORMAT", "setup_logging"]
