"""
Velocity-reversal hit detection (ball against wall).

On every sample, once three samples are buffered, the velocity over the
previous pair is compared with the velocity over the newest pair. A hit is
registered when the heading turns sharply or the speed jumps, provided the
minimum interval since the last hit has elapsed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from algorithms.kinematics import direction_change_degrees, speed_change, velocity
from algorithms.window import SampleWindow
from models.event import EVENT_KIND_HIT, EventRecord
from models.sample import Sample, Velocity
from .base import EventDetector, EventDetectorConfig

HIT_STATE_TRACKING = "tracking"


@dataclass
class HitDetectorConfig(EventDetectorConfig):
    """
    Configuration for velocity-reversal hit detection.

    Attributes:
        velocity_history_size: Number of recent velocities kept for display.
        direction_threshold: Heading change (degrees) that counts as a reversal.
        velocity_threshold: Speed change (units/s) that counts as an impact,
            before the sensitivity multiplier is applied.
    """
    velocity_history_size: int = 5
    direction_threshold: float = 120.0
    velocity_threshold: float = 50.0


@dataclass(frozen=True)
class HitCandidate:
    """Features computed for the newest sample triple."""
    previous: Velocity
    current: Velocity
    direction_change: float
    speed_change: float


class HitDetector(EventDetector):
    """
    Single-state hit detector gated by a direction/speed condition.

    A hit is registered when:
    1. direction change > direction_threshold, or
       speed change > velocity_threshold * sensitivity
    2. and now - last hit time > min_event_interval

    The gate is evaluated on every candidate, not only on confirmed hits.
    """

    kind = EVENT_KIND_HIT

    def __init__(self, config: HitDetectorConfig):
        super().__init__(config)
        self._hit_config = config
        self._velocity_history: SampleWindow[Velocity] = SampleWindow(config.velocity_history_size)
        self._last_candidate: Optional[HitCandidate] = None

    @property
    def state(self) -> str:
        return HIT_STATE_TRACKING

    @property
    def direction_threshold(self) -> float:
        return self._hit_config.direction_threshold

    @property
    def velocity_threshold(self) -> float:
        """Effective speed-change threshold after sensitivity."""
        return self._hit_config.velocity_threshold * self.sensitivity

    @property
    def velocity_history(self) -> SampleWindow[Velocity]:
        return self._velocity_history

    @property
    def last_candidate(self) -> Optional[HitCandidate]:
        return self._last_candidate

    def _process(self, sample: Sample, now: float) -> Optional[EventRecord]:
        self._window.push(sample)
        if len(self._window) < 3:
            return None

        before_previous, previous, current = self._window.last(3)
        v_prev = velocity(before_previous, previous)
        v_curr = velocity(previous, current)
        self._velocity_history.push(v_curr)

        candidate = HitCandidate(
            previous=v_prev,
            current=v_curr,
            direction_change=direction_change_degrees(v_prev, v_curr),
            speed_change=speed_change(v_prev, v_curr),
        )
        self._last_candidate = candidate

        significant_direction = candidate.direction_change > self.direction_threshold
        significant_speed = candidate.speed_change > self.velocity_threshold
        if not (significant_direction or significant_speed):
            return None

        if not self._debounce_elapsed(now):
            logging.debug(
                f"[HIT] candidate suppressed: {now - self.last_event_time:.0f}ms since last hit "
                f"(min {self._hit_config.min_event_interval:.0f}ms)"
            )
            return None

        self._last_transition_time = now
        return self._emit(now)

    def _reset_state(self) -> None:
        self._velocity_history.clear()
        self._last_candidate = None

    def status(self) -> Dict[str, Any]:
        d = super().status()
        if self._last_candidate is not None:
            d["direction_change"] = round(self._last_candidate.direction_change, 1)
            d["speed"] = round(self._last_candidate.current.magnitude, 1)
        return d


def create_hit_detector_from_config(
    hit_cfg: Dict[str, Any],
    stats_cfg: Optional[Dict[str, Any]] = None,
) -> HitDetector:
    """
    Factory function to create a HitDetector from config dicts.

    Args:
        hit_cfg: The "hit" section from YAML.
        stats_cfg: The "stats" section from YAML.
    """
    stats_cfg = stats_cfg or {}
    config = HitDetectorConfig(
        window_size=int(hit_cfg.get("window_size", 10)),
        sensitivity=float(hit_cfg.get("sensitivity", 1.0)),
        min_event_interval=float(hit_cfg.get("min_event_interval", 1000.0)),
        min_confidence=float(hit_cfg.get("min_confidence", 0.0)),
        duration_history_size=int(stats_cfg.get("duration_history_size", 20)),
        consistency_scale=float(stats_cfg.get("consistency_scale", 5.0)),
        velocity_history_size=int(hit_cfg.get("velocity_history_size", 5)),
        direction_threshold=float(hit_cfg.get("direction_threshold", 120.0)),
        velocity_threshold=float(hit_cfg.get("velocity_threshold", 50.0)),
    )
    return HitDetector(config)
