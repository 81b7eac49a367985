"""
Event detectors for motion-event inference.

Detectors consume one sample per frame and produce EventRecords.
The observation and detection layers remain independent - detectors only
see samples.

Available detectors:
- HitDetector: velocity-reversal hit detection (ball against wall)
- RepCounter: throw/catch rep counting from limb pose samples
"""

from .base import EventDetector, EventDetectorConfig
from .hit import HitDetector, HitDetectorConfig, create_hit_detector_from_config
from .rep import RepCounter, RepCounterConfig, RepState, create_rep_counter_from_config

__all__ = [
    "EventDetector",
    "EventDetectorConfig",
    "HitDetector",
    "HitDetectorConfig",
    "create_hit_detector_from_config",
    "RepCounter",
    "RepCounterConfig",
    "RepState",
    "create_rep_counter_from_config",
]
