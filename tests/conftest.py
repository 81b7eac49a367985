"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.sample import PoseSample, Sample  # noqa: E402

# Frame period at 30 fps, in milliseconds
FRAME_MS = 1000.0 / 30.0


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
mode: "hit"

camera:
  device_id: 0
  resolution: [640, 480]
  fps: 30

detection:
  backend: "color"
  color:
    target_rgb: [255, 165, 0]
    tolerance: 50
    step: 4

hit:
  direction_threshold: 120
  velocity_threshold: 50
  min_event_interval: 1000

rep:
  throw_threshold: 0.9
  proximity_threshold: 0.2

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "mode": "hit",
        "camera": {
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "detection": {
            "backend": "color",
            "color": {
                "target_rgb": [255, 165, 0],
                "tolerance": 50,
                "step": 4,
            },
        },
        "hit": {
            "window_size": 10,
            "direction_threshold": 120,
            "velocity_threshold": 50,
            "min_event_interval": 1000,
        },
        "rep": {
            "throw_threshold": 0.9,
            "min_throw_angle": 100,
            "proximity_threshold": 0.2,
            "state_timeout": 2000,
        },
        "stats": {
            "duration_history_size": 20,
            "consistency_scale": 5.0,
        },
        "web": {"host": "127.0.0.1", "port": 5000},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


def make_track(points, start=0.0, period=FRAME_MS, confidence=1.0):
    """Build planar samples from (x, y) points at a fixed frame period."""
    return [
        Sample.from_xy(x, y, start + i * period, confidence)
        for i, (x, y) in enumerate(points)
    ]


# Arm geometry in normalised frame units. Shoulder is the anchor, elbow the joint.
SHOULDER = (0.5, 0.5)
ELBOW = (0.6, 0.5)


def extended_pose(wrist_x, timestamp):
    """Wrist in line with shoulder and elbow: joint angle 180 degrees."""
    return PoseSample(
        endpoint=Sample.from_xy(wrist_x, 0.5, timestamp),
        joint=ELBOW,
        anchor=SHOULDER,
    )


def bent_pose_near_shoulder(timestamp):
    """Wrist folded back next to the shoulder: small joint angle, close to the anchor."""
    return PoseSample(
        endpoint=Sample.from_xy(0.55, 0.45, timestamp),
        joint=ELBOW,
        anchor=SHOULDER,
    )


def rep_cycle(start):
    """
    One full throw/catch: extension forward, reversal, return to the shoulder.

    Timestamps are 100 ms apart so every step stays inside the 2 s timeout.
    """
    return [
        extended_pose(0.70, start),
        extended_pose(0.85, start + 100),   # +1.5/s forward, arm straight -> THROWING
        extended_pose(0.70, start + 200),   # -1.5/s -> CATCHING
        bent_pose_near_shoulder(start + 300),  # near shoulder -> READY, one rep
    ]


@pytest.fixture
def sample_track():
    return make_track


@pytest.fixture
def pose_builders():
    return {
        "extended": extended_pose,
        "bent": bent_pose_near_shoulder,
        "cycle": rep_cycle,
    }
