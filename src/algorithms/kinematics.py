"""
Kinematic feature extraction.

Pure functions over samples and positions. Degenerate inputs (zero elapsed
time, zero-magnitude vectors, coincident points) produce neutral results
instead of raising.

The point geometry (joint angle, distance) lives with the sample models and
is re-exported here.
"""

from __future__ import annotations

import math

from models.sample import Sample, Velocity, distance, fold_degrees, joint_angle_degrees

# Sample timestamps are milliseconds; velocities are reported per second.
MS_PER_SECOND = 1000.0

__all__ = [
    "MS_PER_SECOND",
    "velocity",
    "direction_change_degrees",
    "joint_angle_degrees",
    "speed_change",
    "distance",
    "fold_degrees",
]


def velocity(s1: Sample, s2: Sample, scale: float = MS_PER_SECOND) -> Velocity:
    """
    Velocity from s1 to s2 in position units per second.

    Returns Velocity.zero() when dt <= 0.
    """
    dt = s2.timestamp - s1.timestamp
    if dt <= 0:
        return Velocity.zero()

    vx = (s2.x - s1.x) / dt * scale
    vy = (s2.y - s1.y) / dt * scale
    vz = (s2.z - s1.z) / dt * scale if s1.dimension == 3 and s2.dimension == 3 else 0.0
    return Velocity.from_components(vx, vy, vz)


def direction_change_degrees(v1: Velocity, v2: Velocity) -> float:
    """
    Angle between the planar headings of two velocities, in [0, 180].

    A stationary velocity has no heading, so the change is 0.
    """
    if v1.magnitude == 0 or v2.magnitude == 0:
        return 0.0

    angle1 = math.atan2(v1.vy, v1.vx)
    angle2 = math.atan2(v2.vy, v2.vx)
    return fold_degrees(math.degrees(angle2 - angle1))


def speed_change(v1: Velocity, v2: Velocity) -> float:
    return abs(v2.magnitude - v1.magnitude)
