"""
Event stage for motion-event inference.

This stage owns one EventDetector (hit or rep) and feeds it the sample
produced for each frame, then notifies listeners of confirmed events.

Supports two modes:
- "hit": velocity-reversal hit detection (HitDetector)
- "rep": throw/catch rep counting (RepCounter)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from algorithms.events.base import EventDetector, IngestSample
from algorithms.events.hit import create_hit_detector_from_config
from algorithms.events.rep import create_rep_counter_from_config
from models.config import MODES
from models.event import EventRecord

EventListener = Callable[[EventRecord], None]


@dataclass
class EventStageConfig:
    """
    Configuration for the event stage.

    Attributes:
        mode: "hit" or "rep".
        hit_config: Raw "hit" section from YAML.
        rep_config: Raw "rep" section from YAML.
        stats_config: Raw "stats" section from YAML.
    """
    mode: str = "hit"
    hit_config: Dict[str, Any] = field(default_factory=dict)
    rep_config: Dict[str, Any] = field(default_factory=dict)
    stats_config: Dict[str, Any] = field(default_factory=dict)


def create_event_detector(config: EventStageConfig) -> EventDetector:
    """Build the detector for the configured mode."""
    if config.mode not in MODES:
        raise ValueError(f"mode must be one of {MODES}, got '{config.mode}'")
    if config.mode == "rep":
        return create_rep_counter_from_config(config.rep_config, config.stats_config)
    return create_hit_detector_from_config(config.hit_config, config.stats_config)


class EventStage:
    """
    Pipeline stage that turns per-frame samples into events.

    This stage:
    - Creates and owns the EventDetector instance
    - Ingests at most one sample per frame; frames without a sample are skipped
    - Notifies listeners of each confirmed EventRecord
    - Serialises frame processing and external commands (reset/start/stop)
      behind one lock, so each sample is processed to completion

    Example:
        stage = EventStage(EventStageConfig(mode="hit"))
        stage.add_listener(lambda event: print(event.sequence_number))

        # Each frame:
        events = stage.process(sample)
    """

    def __init__(
        self,
        config: EventStageConfig,
        on_event: Optional[EventListener] = None,
        detector: Optional[EventDetector] = None,
    ):
        self._config = config
        self._detector = detector if detector is not None else create_event_detector(config)
        self._listeners: List[EventListener] = []
        if on_event is not None:
            self._listeners.append(on_event)
        self._lock = threading.RLock()
        logging.info(f"EventStage initialized {type(self._detector).__name__} (mode={self.mode})")

    @property
    def mode(self) -> str:
        return self._detector.kind

    @property
    def detector(self) -> EventDetector:
        return self._detector

    @property
    def is_running(self) -> bool:
        return self._detector.is_running

    @property
    def count(self) -> int:
        return self._detector.count

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def process(self, sample: Optional[IngestSample], now: Optional[float] = None) -> List[EventRecord]:
        """
        Ingest the sample for one frame.

        Args:
            sample: Sample for this frame, or None when nothing was detected.
            now: Current monotonic time in ms (defaults to the sample timestamp).

        Returns:
            Events confirmed by this frame (zero or one).
        """
        if sample is None:
            return []

        with self._lock:
            record = self._detector.ingest(sample, now)
        if record is None:
            return []

        for listener in self._listeners:
            try:
                listener(record)
            except Exception as e:
                logging.warning(f"Event listener error: {e}")
        return [record]

    def reset(self) -> None:
        with self._lock:
            self._detector.reset()
        logging.info(f"EventStage reset (mode={self.mode})")

    def start(self) -> None:
        with self._lock:
            self._detector.start()
        logging.info("Event detection started")

    def stop(self) -> None:
        with self._lock:
            self._detector.stop()
        logging.info("Event detection stopped")

    def set_sensitivity(self, value: float) -> None:
        with self._lock:
            self._detector.set_sensitivity(value)
        logging.info(f"Sensitivity set to {value:.1f}")

    def status(self) -> Dict[str, Any]:
        with self._lock:
            return self._detector.status()


def create_event_stage(config: Dict[str, Any], on_event: Optional[EventListener] = None) -> EventStage:
    """
    Factory function to create an EventStage from the full config dict.
    """
    stage_config = EventStageConfig(
        mode=config.get("mode", "hit"),
        hit_config=config.get("hit", {}) or {},
        rep_config=config.get("rep", {}) or {},
        stats_config=config.get("stats", {}) or {},
    )
    return EventStage(stage_config, on_event=on_event)
