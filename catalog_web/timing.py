"""Per-request timing of scrape, LLM, image and export work.

Operation names are grouped by prefix (``scrape_``, ``llm_``, ``image_``,
``export_``; anything else counts as ``app``) and ``get_timings()`` adds a
``__summary__`` with seconds and share per group. The API blueprint logs the
result as a ``performance`` interaction after each request.

Example:
    with timer("llm_generate_content"):
        content = generate_content(product, options)
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

from flask import g, has_request_context

__all__ = ["timer", "get_timings", "reset_timings", "TimingTracker", "OPERATION_GROUPS"]

OPERATION_GROUPS = ("scrape", "llm", "image", "export")


def _group_for(operation: str) -> str:
    prefix = operation.split("_", 1)[0].lower()
    return prefix if prefix in OPERATION_GROUPS else "app"


@dataclass
class OperationStats:
    count: int = 0
    total: float = 0.0
    fastest: float = float("inf")
    slowest: float = 0.0

    def add(self, seconds: float) -> None:
        self.count += 1
        self.total += seconds
        self.fastest = min(self.fastest, seconds)
        self.slowest = max(self.slowest, seconds)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "total_seconds": round(self.total, 3),
            "avg_seconds": round(self.total / self.count, 3),
            "min_seconds": round(self.fastest, 3),
            "max_seconds": round(self.slowest, 3),
        }


def _summarize(stats: Dict[str, OperationStats]) -> Dict[str, Any]:
    per_group: Dict[str, float] = {}
    for operation, op_stats in stats.items():
        group = _group_for(operation)
        per_group[group] = per_group.get(group, 0.0) + op_stats.total

    overall = sum(per_group.values())
    summary: Dict[str, Any] = {"total_seconds": round(overall, 3)}
    for group in sorted(per_group):
        seconds = per_group[group]
        summary[f"{group}_seconds"] = round(seconds, 3)
        summary[f"{group}_percent"] = round(seconds / overall * 100, 1) if overall else 0.0
    return summary


class TimingTracker:
    """Accumulates durations per operation name."""

    def __init__(self) -> None:
        self.stats: Dict[str, OperationStats] = {}
        self._started: Dict[str, float] = {}

    def start(self, operation: str) -> None:
        self._started[operation] = time.perf_counter()

    def end(self, operation: str) -> float:
        """Stop ``operation`` and return its duration; 0.0 if it never started."""
        started = self._started.pop(operation, None)
        if started is None:
            return 0.0
        seconds = time.perf_counter() - started
        self.stats.setdefault(operation, OperationStats()).add(seconds)
        return seconds

    @contextmanager
    def measure(self, operation: str) -> Iterator[None]:
        self.start(operation)
        try:
            yield
        finally:
            self.end(operation)

    def get_all(self) -> Dict[str, Any]:
        """Rounded per-operation stats plus ``__summary__``; empty when nothing ran."""
        if not self.stats:
            return {}
        result: Dict[str, Any] = {op: s.to_dict() for op, s in self.stats.items()}
        result["__summary__"] = _summarize(self.stats)
        return result

    def reset(self) -> None:
        self.stats.clear()
        self._started.clear()


# Used outside a request (CLI, tests)
_process_tracker: Optional[TimingTracker] = None


def _get_tracker() -> TimingTracker:
    # Inside a request the tracker lives on flask.g so requests never share timings
    if has_request_context():
        if "timing_tracker" not in g:
            g.timing_tracker = TimingTracker()
        return g.timing_tracker

    global _process_tracker
    if _process_tracker is None:
        _process_tracker = TimingTracker()
    return _process_tracker


@contextmanager
def timer(operation: str) -> Iterator[None]:
    """Time ``operation`` against the current request, or the process tracker."""
    with _get_tracker().measure(operation):
        yield


def get_timings() -> Dict[str, Any]:
    return _get_tracker().get_all()


def reset_timings() -> None:
    _get_tracker().reset()
