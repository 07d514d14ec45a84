"""Logging utilities for the catalog web app.

Provides structured JSONL logging for LLM interactions and other events.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .config import LOG_DIR

__all__ = ["log_interaction", "interaction_log_file"]


def interaction_log_file(log_dir: Optional[Path] = None) -> Path:
    """Path of today's interaction log inside ``log_dir``."""
    directory = Path(log_dir) if log_dir is not None else LOG_DIR
    return directory / f"llm_interactions_{datetime.now().strftime('%Y%m%d')}.jsonl"


def log_interaction(
    event_type: str,
    data: Dict[str, Any],
    log_dir: Optional[Path] = None,
) -> None:
    """Log LLM interactions to a structured JSONL file.

    Args:
        event_type: Type of event (llm_call, llm_response, llm_parse_error, performance, etc.)
        data: Event-specific data to log
        log_dir: Directory for the log file (default: configured LOG_DIR)
    """
    log_file = interaction_log_file(log_dir)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    log_entry = {"timestamp": datetime.now().isoformat(), "event_type": event_type, **data}
    with open(log_file, "a", encoding="utf-8") as f:
        f.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")
