"""
Typed models for the motion event counter.

Use the from_dict adapters to convert from the raw YAML dicts.
"""

from .frame import FrameData, monotonic_ms
from .sample import Sample, PoseSample, Velocity
from .event import EventRecord, EVENT_KIND_HIT, EVENT_KIND_REP
from .config import (
    Config,
    CameraConfig,
    ColorConfig,
    DetectionConfig,
    YoloConfig,
    HitConfig,
    RepConfig,
    StatsConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    "monotonic_ms",
    # Samples
    "Sample",
    "PoseSample",
    "Velocity",
    # Events
    "EventRecord",
    "EVENT_KIND_HIT",
    "EVENT_KIND_REP",
    # Config
    "Config",
    "CameraConfig",
    "ColorConfig",
    "DetectionConfig",
    "YoloConfig",
    "HitConfig",
    "RepConfig",
    "StatsConfig",
    "WebConfig",
]
