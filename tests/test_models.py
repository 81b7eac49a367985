"""
Smoke tests for typed models and adapters.
"""

import dataclasses
import math

import numpy as np
import pytest

from algorithms import kinematics
from models.config import Config, DetectionConfig, HitConfig, RepConfig
from models.event import EventRecord
from models.frame import FrameData, monotonic_ms
from models.sample import PoseSample, Sample, Velocity, distance, joint_angle_degrees


class TestSample:
    def test_planar_sample(self):
        s = Sample.from_xy(10, 20, 100.0, 0.8)

        assert s.dimension == 2
        assert (s.x, s.y, s.z) == (10.0, 20.0, 0.0)
        assert s.confidence == 0.8

    def test_depth_sample(self):
        s = Sample.from_xyz(0.1, 0.2, -0.3, 0.0)
        assert s.dimension == 3
        assert s.z == pytest.approx(-0.3)

    @pytest.mark.parametrize("position", [(1.0,), (1.0, 2.0, 3.0, 4.0)])
    def test_rejects_bad_dimension(self, position):
        with pytest.raises(ValueError):
            Sample(position=position, timestamp=0.0)

    def test_confidence_is_clamped(self):
        assert Sample.from_xy(0, 0, 0.0, 1.7).confidence == 1.0
        assert Sample.from_xy(0, 0, 0.0, -0.2).confidence == 0.0
        assert Sample.from_xy(0, 0, 0.0, None).confidence == 1.0

    def test_immutable(self):
        s = Sample.from_xy(0, 0, 0.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            s.timestamp = 5.0

    def test_to_dict(self):
        assert Sample.from_xy(1, 2, 3.0).to_dict() == {
            "position": [1.0, 2.0],
            "timestamp": 3.0,
            "confidence": 1.0,
        }


class TestVelocity:
    def test_from_components(self):
        v = Velocity.from_components(3, 4, 12)
        assert v.magnitude == pytest.approx(13.0)

    def test_component(self):
        v = Velocity.from_components(1, 2, 3)
        assert (v.component("x"), v.component("y"), v.component("z")) == (1, 2, 3)
        with pytest.raises(ValueError):
            v.component("w")


class TestPoseSample:
    def test_delegates_to_endpoint(self):
        pose = PoseSample(
            endpoint=Sample.from_xy(0.8, 0.5, 250.0, 0.9),
            joint=(0.6, 0.5),
            anchor=(0.5, 0.5),
        )

        assert pose.timestamp == 250.0
        assert pose.confidence == 0.9
        assert pose.joint_angle == pytest.approx(180.0)
        assert pose.anchor_distance == pytest.approx(0.3)

    def test_bent_limb_geometry(self):
        pose = PoseSample(
            endpoint=Sample.from_xy(0.6, 0.4, 0.0),
            joint=(0.6, 0.5),
            anchor=(0.5, 0.5),
        )

        assert pose.joint_angle == pytest.approx(90.0)
        assert pose.anchor_distance == pytest.approx(math.hypot(0.1, 0.1))

    def test_geometry_shared_with_kinematics(self):
        assert kinematics.joint_angle_degrees is joint_angle_degrees
        assert kinematics.distance is distance


class TestEventRecord:
    def test_to_dict(self):
        record = EventRecord(sequence_number=3, timestamp=1500.0, kind="rep")
        assert record.to_dict() == {"sequence_number": 3, "timestamp": 1500.0, "kind": "rep"}

    def test_immutable(self):
        record = EventRecord(sequence_number=1, timestamp=0.0, kind="hit")
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.sequence_number = 2


class TestFrameData:
    def test_capture(self):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        before = monotonic_ms()

        data = FrameData.capture(frame, frame_index=7, source="cam")

        assert data.size == (640, 480)
        assert data.frame_index == 7
        assert data.source == "cam"
        assert data.timestamp >= before


class TestConfig:
    def test_from_dict_minimal(self):
        cfg = Config.from_dict({"mode": "rep", "detection": {"backend": "pose"}})

        assert cfg.mode == "rep"
        assert cfg.detection.backend == "pose"
        assert cfg.detection.yolo is None
        assert cfg.camera.resolution == [640, 480]
        assert cfg.hit == HitConfig()
        assert cfg.rep == RepConfig()
        assert cfg.web.port == 5000

    def test_roundtrip(self, valid_config):
        cfg = Config.from_dict(valid_config)
        again = Config.from_dict(cfg.to_dict())

        assert again == cfg
        assert again.camera.resolution == [1280, 720]
        assert again.detection.color.target_rgb == [255, 165, 0]

    def test_detection_yolo_section(self):
        cfg = DetectionConfig.from_dict({"backend": "yolo", "yolo": {"model": "ball.pt", "side": "left"}})

        assert cfg.yolo.model == "ball.pt"
        assert cfg.yolo.side == "left"
        assert cfg.to_dict()["yolo"]["conf_threshold"] == 0.25
