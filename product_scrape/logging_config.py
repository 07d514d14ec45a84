"""Logging for the product scraper.

Console output is human readable; the file side writes one JSON object per
line to ``scrape_YYYYMMDD.jsonl`` so scrape runs can be grepped the same way
as the web app's interaction log.
"""

import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

__all__ = [
    "setup_logging",
    "get_logger",
    "log_scrape_event",
    "LOG_DIR",
    "ROOT_LOGGER",
]

ROOT_LOGGER = "product_scrape"

LOG_DIR = Path(os.getenv("LOG_DIR", str(Path(__file__).parent.parent / "logs")))

# Attribute names used to carry structured event data on a LogRecord
EVENT_ATTR = "scrape_event"
FIELDS_ATTR = "scrape_fields"

_LEVEL_COLORS = {
    logging.DEBUG: "36",
    logging.INFO: "32",
    logging.WARNING: "33",
    logging.ERROR: "31",
    logging.CRITICAL: "35",
}


class JSONLineFormatter(logging.Formatter):
    """Render a record as a single JSON line, event fields inlined."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        event = getattr(record, EVENT_ATTR, None)
        if event:
            entry["event_type"] = event
            entry.update(getattr(record, FIELDS_ATTR, {}))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """``HH:MM:SS [LEVEL] message`` with the level colored on terminals."""

    def __init__(self, use_color: bool = False):
        super().__init__("%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S")
        self.use_color = use_color

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        code = _LEVEL_COLORS.get(record.levelno)
        if self.use_color and code:
            line = line.replace(
                f"[{record.levelname}]", f"[\033[{code}m{record.levelname}\033[0m]", 1
            )
        return line


class DailyJSONLHandler(logging.Handler):
    """Append formatted records to ``<prefix>_YYYYMMDD.jsonl`` in ``log_dir``."""

    def __init__(self, log_dir: Path, prefix: str = "scrape"):
        super().__init__()
        self.log_dir = Path(log_dir)
        self.prefix = prefix
        self.setFormatter(JSONLineFormatter())

    @property
    def current_file(self) -> Path:
        return self.log_dir / f"{self.prefix}_{datetime.now():%Y%m%d}.jsonl"

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
            self.log_dir.mkdir(parents=True, exist_ok=True)
            with open(self.current_file, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception:
            self.handleError(record)


def setup_logging(
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Configure the ``product_scrape`` logger tree.

    Calling it again replaces the handlers from the previous call.

    Args:
        level: Console level; the JSONL file always records DEBUG and up.
        log_to_file: Write the daily JSONL scrape log.
        log_to_console: Write to stderr.
        log_dir: Directory for the JSONL log (default: ``LOG_DIR``).
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers.clear()
    logger.propagate = False

    if log_to_console:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(level)
        console.setFormatter(ConsoleFormatter(use_color=sys.stderr.isatty()))
        logger.addHandler(console)

    if log_to_file:
        logger.addHandler(DailyJSONLHandler(log_dir or LOG_DIR))

    logger.setLevel(logging.DEBUG if log_to_file else level)
    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Logger under the package namespace, e.g. ``get_logger("scraper")``."""
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_scrape_event(
    event_type: str,
    data: Dict[str, Any],
    level: int = logging.INFO,
    logger_name: str = ROOT_LOGGER,
) -> None:
    """Log a structured scrape event (scrape_start, fetch_error, scrape_complete).

    ``data["message"]``, when present, becomes the log message; the other
    keys are written as fields of the JSONL entry.
    """
    fields = {k: v for k, v in data.items() if k != "message"}
    get_logger(logger_name).log(
        level,
        data.get("message", event_type),
        extra={EVENT_ATTR: event_type, FIELDS_ATTR: fields},
    )
