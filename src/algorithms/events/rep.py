"""
Throw/catch rep counting from limb pose samples.

State machine:
    READY -> THROWING   endpoint moves forward fast with the limb extended
    THROWING -> CATCHING endpoint moves back fast (reversal)
    CATCHING -> READY   endpoint returns near the anchor (one completed rep)

Any state other than READY falls back to READY when no transition has
happened for state_timeout milliseconds. The check runs lazily on the next
sample, before transitions are evaluated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from algorithms.kinematics import velocity
from models.event import EVENT_KIND_REP, EventRecord
from models.sample import PoseSample, Velocity
from .base import EventDetector, EventDetectorConfig

FORWARD_AXES = ("x", "y", "z")


class RepState(str, Enum):
    """States of the throw/catch cycle."""
    READY = "READY"
    THROWING = "THROWING"
    CATCHING = "CATCHING"


@dataclass
class RepCounterConfig(EventDetectorConfig):
    """
    Configuration for the throw/catch rep counter.

    Attributes:
        throw_threshold: Forward speed (units/s) that starts a throw and,
            negated, marks the reversal. Multiplied by sensitivity.
        min_throw_angle: Joint angle (degrees) above which the limb is extended.
        min_catch_angle: When set, the joint angle must fall below it to
            complete the rep (limb bent again).
        proximity_threshold: Endpoint-to-anchor distance that completes a rep.
        state_timeout: Milliseconds without a transition before a non-READY
            state reverts to READY.
        require_depth: Also require vz < -throw_threshold to start a throw.
        forward_axis: Velocity component treated as "forward".
        forward_sign: +1 or -1, flips the forward direction.
    """
    min_event_interval: float = 0.0
    throw_threshold: float = 0.9
    min_throw_angle: float = 100.0
    min_catch_angle: Optional[float] = None
    proximity_threshold: float = 0.2
    state_timeout: float = 2000.0
    require_depth: bool = False
    forward_axis: str = "x"
    forward_sign: int = 1


class RepCounter(EventDetector):
    """
    Three-state rep counter driven by PoseSample input.

    Velocity is taken between the two newest endpoint samples; with fewer
    than two samples it is zero, which can only complete a pending catch.
    """

    kind = EVENT_KIND_REP

    def __init__(self, config: RepCounterConfig):
        super().__init__(config)
        if config.forward_axis not in FORWARD_AXES:
            raise ValueError(f"forward_axis must be one of {FORWARD_AXES}, got {config.forward_axis}")
        if config.forward_sign not in (1, -1):
            raise ValueError(f"forward_sign must be 1 or -1, got {config.forward_sign}")
        if config.state_timeout <= 0:
            raise ValueError("state_timeout must be positive")
        self._rep_config = config
        self._state = RepState.READY
        self._last_velocity = Velocity.zero()
        self._last_angle: Optional[float] = None

    @property
    def state(self) -> str:
        return self._state.value

    @property
    def rep_state(self) -> RepState:
        return self._state

    @property
    def throw_threshold(self) -> float:
        """Effective throw threshold after sensitivity."""
        return self._rep_config.throw_threshold * self.sensitivity

    @property
    def last_velocity(self) -> Velocity:
        return self._last_velocity

    def _transition(self, new_state: RepState, now: float, reason: str) -> None:
        logging.debug(f"[REP] {self._state.value} -> {new_state.value} ({reason})")
        self._state = new_state
        self._last_transition_time = now

    def _check_timeout(self, now: float) -> None:
        if self._state == RepState.READY or self._last_transition_time is None:
            return
        if now - self._last_transition_time > self._rep_config.state_timeout:
            self._transition(RepState.READY, now, "timeout")

    def _forward_component(self, v: Velocity) -> float:
        return v.component(self._rep_config.forward_axis) * self._rep_config.forward_sign

    def _process(self, sample: PoseSample, now: float) -> Optional[EventRecord]:
        cfg = self._rep_config
        self._check_timeout(now)

        self._window.push(sample.endpoint)
        if len(self._window) >= 2:
            previous, current = self._window.last(2)
            v = velocity(previous, current)
        else:
            v = Velocity.zero()
        self._last_velocity = v

        threshold = self.throw_threshold
        forward = self._forward_component(v)
        angle = sample.joint_angle
        self._last_angle = angle

        if self._state == RepState.READY:
            if forward > threshold and angle > cfg.min_throw_angle:
                if cfg.require_depth and not v.vz < -threshold:
                    return None
                self._transition(RepState.THROWING, now, f"forward={forward:.2f} angle={angle:.0f}")

        elif self._state == RepState.THROWING:
            if forward < -threshold:
                self._transition(RepState.CATCHING, now, f"forward={forward:.2f}")

        elif self._state == RepState.CATCHING:
            if sample.anchor_distance < cfg.proximity_threshold:
                if cfg.min_catch_angle is not None and not angle < cfg.min_catch_angle:
                    return None
                debounced = self._debounce_elapsed(now)
                self._transition(RepState.READY, now, "returned to anchor")
                if not debounced:
                    logging.debug(f"[REP] rep suppressed: within {cfg.min_event_interval:.0f}ms of last rep")
                    return None
                return self._emit(now)

        return None

    def _reset_state(self) -> None:
        self._state = RepState.READY
        self._last_velocity = Velocity.zero()
        self._last_angle = None

    def status(self) -> Dict[str, Any]:
        d = super().status()
        if self._last_angle is not None:
            d["joint_angle"] = round(self._last_angle, 1)
        return d


def create_rep_counter_from_config(
    rep_cfg: Dict[str, Any],
    stats_cfg: Optional[Dict[str, Any]] = None,
) -> RepCounter:
    """
    Factory function to create a RepCounter from config dicts.

    Args:
        rep_cfg: The "rep" section from YAML.
        stats_cfg: The "stats" section from YAML.
    """
    stats_cfg = stats_cfg or {}
    min_catch_angle = rep_cfg.get("min_catch_angle")
    config = RepCounterConfig(
        window_size=int(rep_cfg.get("window_size", 10)),
        sensitivity=float(rep_cfg.get("sensitivity", 1.0)),
        min_event_interval=float(rep_cfg.get("min_event_interval", 0.0)),
        min_confidence=float(rep_cfg.get("min_confidence", 0.0)),
        duration_history_size=int(stats_cfg.get("duration_history_size", 20)),
        consistency_scale=float(stats_cfg.get("consistency_scale", 5.0)),
        throw_threshold=float(rep_cfg.get("throw_threshold", 0.9)),
        min_throw_angle=float(rep_cfg.get("min_throw_angle", 100.0)),
        min_catch_angle=float(min_catch_angle) if min_catch_angle is not None else None,
        proximity_threshold=float(rep_cfg.get("proximity_threshold", 0.2)),
        state_timeout=float(rep_cfg.get("state_timeout", 2000.0)),
        require_depth=bool(rep_cfg.get("require_depth", False)),
        forward_axis=str(rep_cfg.get("forward_axis", "x")),
        forward_sign=int(rep_cfg.get("forward_sign", 1)),
    )
    return RepCounter(config)
