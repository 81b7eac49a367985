"""
Rolling event statistics: throughput rate and cadence consistency.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, List, Optional

import numpy as np

INITIAL_RATE = 0.0
INITIAL_CONSISTENCY = 100.0
MS_PER_MINUTE = 60000.0


class EventStatistics:
    """
    Rate and consistency metrics over confirmed event timestamps.

    - rate: events per minute since the first event; 0.0 until two events.
    - consistency: max(0, 100 - std(durations) / scale) where durations are
      the gaps between consecutive events in milliseconds; 100.0 until two
      durations have been recorded.

    Only timestamps are retained, never full event records.
    """

    def __init__(self, duration_history_size: int = 20, consistency_scale: float = 5.0):
        if duration_history_size < 2:
            raise ValueError("duration_history_size must be at least 2")
        if consistency_scale <= 0:
            raise ValueError("consistency_scale must be positive")
        self._scale = float(consistency_scale)
        self._durations: Deque[float] = deque(maxlen=duration_history_size)
        self._event_count = 0
        self._first_event_time: Optional[float] = None
        self._last_event_time: Optional[float] = None
        self._rate = INITIAL_RATE
        self._consistency = INITIAL_CONSISTENCY

    @property
    def event_count(self) -> int:
        return self._event_count

    @property
    def durations(self) -> List[float]:
        return list(self._durations)

    @property
    def rate(self) -> float:
        """Events per minute (display value)."""
        return self._rate

    @property
    def consistency(self) -> float:
        """Consistency score in [0, 100]."""
        return self._consistency

    @property
    def last_event_time(self) -> Optional[float]:
        return self._last_event_time

    def record(self, timestamp: float) -> None:
        """Record a confirmed event and recompute the metrics."""
        if self._last_event_time is not None:
            self._durations.append(timestamp - self._last_event_time)
        else:
            self._first_event_time = timestamp

        self._event_count += 1
        self._last_event_time = timestamp
        self._recompute(timestamp)

    def _recompute(self, now: float) -> None:
        if self._event_count >= 2 and self._first_event_time is not None:
            elapsed_minutes = (now - self._first_event_time) / MS_PER_MINUTE
            if elapsed_minutes > 0:
                self._rate = self._event_count / elapsed_minutes

        if len(self._durations) >= 2:
            self._consistency = consistency_score(self.durations, self._scale)

    def reset(self) -> None:
        self._durations.clear()
        self._event_count = 0
        self._first_event_time = None
        self._last_event_time = None
        self._rate = INITIAL_RATE
        self._consistency = INITIAL_CONSISTENCY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "events": self._event_count,
            "rate_per_minute": round(self._rate, 2),
            "consistency": round(self._consistency, 1),
        }


def consistency_score(durations: List[float], scale: float = 5.0) -> float:
    """Map the population standard deviation of durations onto [0, 100]."""
    if len(durations) < 2:
        return INITIAL_CONSISTENCY
    std_dev = float(np.std(np.asarray(durations, dtype=float)))
    return max(0.0, min(100.0, 100.0 - std_dev / scale))
