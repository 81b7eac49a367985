"""
Tests for the event pipeline stage.
"""

from unittest.mock import MagicMock

import pytest

from algorithms.events.hit import HitDetector
from algorithms.events.rep import RepCounter
from pipeline.stages.events import (
    EventStage,
    EventStageConfig,
    create_event_detector,
    create_event_stage,
)
from conftest import make_track, rep_cycle

BOUNCE = [(0, 0), (10, 0), (20, 0), (30, 0), (20, 0)]


class TestCreateEventDetector:
    def test_hit_mode(self):
        assert isinstance(create_event_detector(EventStageConfig(mode="hit")), HitDetector)

    def test_rep_mode(self):
        detector = create_event_detector(EventStageConfig(mode="rep", rep_config={"throw_threshold": 0.5}))

        assert isinstance(detector, RepCounter)
        assert detector.throw_threshold == pytest.approx(0.5)

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            create_event_detector(EventStageConfig(mode="squat"))


class TestEventStage:
    def test_process_returns_events(self):
        stage = EventStage(EventStageConfig(mode="hit"))

        events = []
        for sample in make_track(BOUNCE):
            events.extend(stage.process(sample))

        assert len(events) == 1
        assert events[0].sequence_number == 1
        assert stage.count == 1

    def test_none_sample_is_skipped(self):
        stage = EventStage(EventStageConfig(mode="hit"))

        assert stage.process(None) == []
        assert len(stage.detector.window) == 0

    def test_listeners_receive_events(self):
        received = []
        stage = EventStage(EventStageConfig(mode="rep"), on_event=received.append)
        extra = MagicMock()
        stage.add_listener(extra)

        for sample in rep_cycle(0.0):
            stage.process(sample)

        assert [e.kind for e in received] == ["rep"]
        extra.assert_called_once_with(received[0])

    def test_listener_error_does_not_propagate(self):
        def broken(_event):
            raise RuntimeError("listener failed")

        stage = EventStage(EventStageConfig(mode="hit"), on_event=broken)

        events = []
        for sample in make_track(BOUNCE):
            events.extend(stage.process(sample))

        assert len(events) == 1

    def test_commands(self):
        stage = EventStage(EventStageConfig(mode="hit"))
        for sample in make_track(BOUNCE):
            stage.process(sample)

        stage.stop()
        assert not stage.is_running
        assert stage.status()["running"] is False

        stage.start()
        stage.set_sensitivity(2.5)
        assert stage.status()["sensitivity"] == 2.5

        stage.reset()
        status = stage.status()
        assert status["count"] == 0
        assert status["last_event"] is None

    def test_injected_detector(self):
        detector = MagicMock()
        detector.kind = "hit"
        detector.ingest.return_value = None
        stage = EventStage(EventStageConfig(), detector=detector)

        sample = make_track([(1, 1)])[0]
        stage.process(sample, now=77.0)

        detector.ingest.assert_called_once_with(sample, 77.0)


class TestCreateEventStage:
    def test_from_full_config(self, valid_config):
        valid_config["hit"]["direction_threshold"] = 90
        stage = create_event_stage(valid_config)

        assert stage.mode == "hit"
        assert stage.detector.direction_threshold == 90.0

    def test_rep_from_full_config(self, valid_config):
        valid_config["mode"] = "rep"
        valid_config["stats"]["consistency_scale"] = 2.0

        stage = create_event_stage(valid_config)

        assert stage.mode == "rep"
        assert stage.detector.config.consistency_scale == 2.0
