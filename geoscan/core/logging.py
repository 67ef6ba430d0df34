"""Log output for the scan worker and the CLI runner.

Scan code tags records with ``extra={"brand_id": ...}`` (and, from the
gateway, ``provider``). Both formatters surface those tags; records
without them print ``-`` in text mode and omit the key in JSON mode.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from geoscan.core.config import settings

SCAN_CONTEXT_FIELDS = ("brand_id", "provider")

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | brand=%(brand_id)s | %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

# HTTP clients log every provider request at INFO
LIBRARY_LEVELS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "aiosqlite": logging.WARNING,
}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, scan context included when present."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in SCAN_CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = getattr(value, "value", value)
        if record.exc_info and record.exc_info[1]:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False)


class ScanContextFilter(logging.Filter):
    """Fill missing scan-context attributes so TEXT_FORMAT never KeyErrors."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name in SCAN_CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, "-")
        return True


def quiet_libraries(level: int) -> None:
    for name, floor in LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(max(floor, level))
    logging.getLogger("celery").setLevel(level)


def setup_logging() -> None:
    """Replace root handlers with one stdout handler; LOG_JSON picks the format."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if settings.log_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.addFilter(ScanContextFilter())
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT))
    root.addHandler(handler)

    quiet_libraries(level)
