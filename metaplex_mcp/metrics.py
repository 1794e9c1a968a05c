"""Minimal in-process metrics recorder (not suitable for multi-process aggregation)."""

from __future__ import annotations

from collections import Counter, deque
from threading import Lock
from typing import Deque, Dict, Tuple

OUTCOMES = ("success", "invalid", "error")
RECENT_DURATIONS = 100


class MetricsRecorder:
    """Counts requests and tool outcomes; keeps the last few request durations."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._requests = 0
        self._rate_limited = 0
        self._durations: Deque[Tuple[str, float]] = deque(maxlen=RECENT_DURATIONS)
        self._outcomes: Dict[str, Counter[str]] = {outcome: Counter() for outcome in OUTCOMES}

    def incr_request(self) -> None:
        with self._lock:
            self._requests += 1

    def incr_rate_limited(self) -> None:
        with self._lock:
            self._rate_limited += 1

    def record_duration(self, request_id: str, duration_ms: float) -> None:
        with self._lock:
            self._durations.append((request_id, duration_ms))

    def record_tool(self, tool: str, *, outcome: str) -> None:
        """``outcome`` is success, invalid (isValid false) or error."""
        if outcome not in self._outcomes:
            raise ValueError(f"Unknown tool outcome: {outcome}")
        with self._lock:
            self._outcomes[outcome][tool] += 1

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "requests": self._requests,
                "rate_limited": self._rate_limited,
                "tool_success": dict(self._outcomes["success"]),
                "tool_invalid": dict(self._outcomes["invalid"]),
                "tool_error": dict(self._outcomes["error"]),
                "recent_request_durations_ms": dict(self._durations),
            }

    def reset(self) -> None:
        with self._lock:
            self._requests = 0
            self._rate_limited = 0
            self._durations.clear()
            for counter in self._outcomes.values():
                counter.clear()


default_metrics = MetricsRecorder()
