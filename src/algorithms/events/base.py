"""
Event detector interface for motion-event inference.

All event detectors (hit, rep) implement this interface. They consume one
sample per processed frame through ingest() and return an EventRecord when a
debounced event is confirmed.

A detector owns all of its mutable state (window, state machine, counter,
statistics); nothing is shared between instances.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from algorithms.stats import EventStatistics
from algorithms.window import SampleWindow
from models.event import EventRecord
from models.sample import PoseSample, Sample

IngestSample = Union[Sample, PoseSample]


@dataclass
class EventDetectorConfig:
    """
    Base configuration for event detectors.

    Attributes:
        window_size: Capacity of the position history window.
        sensitivity: Multiplier applied to the velocity threshold.
        min_event_interval: Minimum milliseconds between two confirmed events.
        min_confidence: Samples below this confidence are ignored.
        duration_history_size: Inter-event durations kept for statistics.
        consistency_scale: Scale constant k of the consistency score.
    """
    window_size: int = 10
    sensitivity: float = 1.0
    min_event_interval: float = 1000.0
    min_confidence: float = 0.0
    duration_history_size: int = 20
    consistency_scale: float = 5.0


class EventDetector(ABC):
    """
    Abstract base class for event detectors.

    Lifecycle:
        1. Create with config (detector starts running)
        2. Call ingest(sample, now) once per frame that produced a sample
        3. stop()/start() gate whether samples are processed at all
        4. reset() zeroes the counter and returns to the initial state

    A frame without a sample must not call ingest(); the window does not
    grow and the state does not advance.
    """

    kind: str = "event"

    def __init__(self, config: EventDetectorConfig):
        if config.window_size < 3:
            raise ValueError(f"window_size must be at least 3, got {config.window_size}")
        if config.sensitivity <= 0:
            raise ValueError(f"sensitivity must be positive, got {config.sensitivity}")
        if config.min_event_interval < 0:
            raise ValueError("min_event_interval must not be negative")

        self._config = config
        self._window: SampleWindow[Sample] = SampleWindow(config.window_size)
        self._statistics = EventStatistics(
            duration_history_size=config.duration_history_size,
            consistency_scale=config.consistency_scale,
        )
        self._sensitivity = float(config.sensitivity)
        self._count = 0
        self._last_event_time = -math.inf
        self._last_event: Optional[EventRecord] = None
        self._last_transition_time: Optional[float] = None
        self._running = True

    @property
    def config(self) -> EventDetectorConfig:
        return self._config

    @property
    def window(self) -> SampleWindow:
        return self._window

    @property
    def statistics(self) -> EventStatistics:
        return self._statistics

    @property
    def count(self) -> int:
        """Number of confirmed events since the last reset."""
        return self._count

    @property
    def sensitivity(self) -> float:
        return self._sensitivity

    @property
    def last_event_time(self) -> float:
        """Time of the last confirmed event; -inf before the first one."""
        return self._last_event_time

    @property
    def last_event(self) -> Optional[EventRecord]:
        return self._last_event

    @property
    def last_transition_time(self) -> Optional[float]:
        return self._last_transition_time

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    @abstractmethod
    def state(self) -> str:
        """Name of the current state."""

    def start(self) -> None:
        self._running = True

    def stop(self) -> None:
        self._running = False

    def set_sensitivity(self, value: float) -> None:
        if value <= 0:
            raise ValueError(f"sensitivity must be positive, got {value}")
        self._sensitivity = float(value)

    def ingest(self, sample: IngestSample, now: Optional[float] = None) -> Optional[EventRecord]:
        """
        Process one sample to completion.

        Args:
            sample: The sample produced for this frame.
            now: Current monotonic time in milliseconds; defaults to the
                sample timestamp.

        Returns:
            The EventRecord if this sample confirmed an event, else None.
        """
        if not self._running:
            return None
        if sample.confidence < self._config.min_confidence:
            logging.debug(
                f"[{self.kind.upper()}] sample ignored: confidence={sample.confidence:.2f} "
                f"< {self._config.min_confidence:.2f}"
            )
            return None
        if now is None:
            now = sample.timestamp
        return self._process(sample, now)

    @abstractmethod
    def _process(self, sample: IngestSample, now: float) -> Optional[EventRecord]:
        """Run feature extraction and the state machine for one sample."""

    def _debounce_elapsed(self, now: float) -> bool:
        """Whether enough time has passed since the last confirmed event."""
        return now - self._last_event_time > self._config.min_event_interval

    def _emit(self, now: float) -> EventRecord:
        self._count += 1
        self._last_event_time = now
        self._statistics.record(now)
        record = EventRecord(sequence_number=self._count, timestamp=now, kind=self.kind)
        self._last_event = record
        logging.info(
            f"[{self.kind.upper()}] #{self._count} at t={now:.0f}ms "
            f"rate={self._statistics.rate:.1f}/min consistency={self._statistics.consistency:.0f}%"
        )
        return record

    def reset(self) -> None:
        """Zero the counter, clear the window and return to the initial state."""
        self._window.clear()
        self._statistics.reset()
        self._count = 0
        self._last_event_time = -math.inf
        self._last_event = None
        self._last_transition_time = None
        self._reset_state()

    def _reset_state(self) -> None:
        """Hook for subclasses holding extra state."""

    def status(self) -> Dict[str, Any]:
        """Snapshot for the overlay and the web control surface."""
        return {
            "mode": self.kind,
            "running": self._running,
            "count": self._count,
            "state": self.state,
            "sensitivity": self._sensitivity,
            "rate": self._statistics.rate,
            "consistency": self._statistics.consistency,
            "last_event": self._last_event.to_dict() if self._last_event else None,
        }
