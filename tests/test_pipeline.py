"""
Tests for the pipeline engine.
"""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from detection.base import BallSampleProducer, Detection
from detection.color import ColorDetector, ColorDetectorConfig
from models.frame import FrameData
from observation.base import ObservationConfig, ObservationSource
from pipeline.engine import PipelineConfig, PipelineEngine, PipelineStats, create_engine_from_config
from pipeline.stages.events import EventStage, EventStageConfig
from conftest import FRAME_MS, make_track


class MockObservationSource(ObservationSource):
    """Replays frames with synthetic timestamps at 30 fps."""

    def __init__(self, config: ObservationConfig, count: int = 10):
        super().__init__(config)
        self._count = count
        self._pos = 0

    def open(self) -> None:
        self._is_open = True
        self._pos = 0
        self._frame_index = 0

    def read(self):
        if not self._is_open or self._pos >= self._count:
            return None

        frame = np.zeros((120, 160, 3), dtype=np.uint8)
        data = FrameData(
            frame=frame,
            timestamp=self._pos * FRAME_MS,
            frame_index=self._frame_index + 1,
            source=self.source_id,
        )
        self._pos += 1
        self._frame_index += 1
        return data

    def close(self) -> None:
        self._is_open = False


class ScriptedProducer:
    """Returns the scripted sample for each frame (None = nothing detected)."""

    def __init__(self, samples):
        self._samples = list(samples)
        self.calls = 0

    def produce(self, frame_data):
        sample = self._samples[self.calls] if self.calls < len(self._samples) else None
        self.calls += 1
        return sample


def bounce_samples():
    return make_track([(0, 0), (10, 0), (20, 0), (30, 0), (20, 0)])


def make_engine(producer, count=10, web_state=None, **config_kwargs):
    source = MockObservationSource(ObservationConfig(source_id="test"), count=count)
    stage = EventStage(EventStageConfig(mode="hit"))
    config = PipelineConfig(max_consecutive_failures=2, **config_kwargs)
    return PipelineEngine(source, producer, stage, config, web_state=web_state)


class TestPipelineConfig:
    def test_defaults(self):
        config = PipelineConfig()
        assert config.max_consecutive_failures == 10
        assert config.display is False
        assert config.record is False

    def test_stats_defaults(self):
        stats = PipelineStats()
        assert stats.frame_count == 0
        assert stats.event_count == 0


class TestPipelineEngine:
    def test_process_frame_feeds_stage(self):
        engine = make_engine(ScriptedProducer(bounce_samples()))
        engine.source.open()

        events = []
        for _ in range(5):
            events.extend(engine.process_frame(engine.source.read()))

        assert len(events) == 1
        assert engine.stage.count == 1
        assert engine.stats.sample_count == 5

    def test_frames_without_samples_are_skipped(self):
        samples = bounce_samples()
        # Detection drops out on two frames
        scripted = [samples[0], None, samples[1], samples[2], None, samples[3], samples[4]]
        engine = make_engine(ScriptedProducer(scripted))
        engine.source.open()

        events = []
        for _ in range(len(scripted)):
            events.extend(engine.process_frame(engine.source.read()))

        assert len(events) == 1
        assert engine.stats.missed_count == 2
        assert len(engine.stage.detector.window) == 5

    def test_stopped_stage_skips_detection(self):
        producer = ScriptedProducer(bounce_samples())
        engine = make_engine(producer)
        engine.stage.stop()
        engine.source.open()

        for _ in range(5):
            engine.process_frame(engine.source.read())

        assert producer.calls == 0
        assert engine.stage.count == 0

    @patch("pipeline.engine.time.sleep")
    def test_run_stops_on_consecutive_failures(self, mock_sleep):
        producer = ScriptedProducer(bounce_samples())
        engine = make_engine(producer, count=8)

        engine.run()

        assert engine.stats.frame_count == 8
        assert engine.stats.event_count == 1
        assert engine.stats.consecutive_failures == 2
        assert not engine.is_running
        assert not engine.source.is_open
        mock_sleep.assert_called_once_with(0.5)

    @patch("pipeline.engine.time.sleep")
    def test_callbacks_receive_events(self, _sleep):
        engine = make_engine(ScriptedProducer(bounce_samples()), count=6)
        seen = []
        engine.add_callback(lambda frame_data, events: seen.append(len(events)))

        engine.run()

        assert seen == [0, 0, 0, 0, 1, 0]

    @patch("pipeline.engine.time.sleep")
    def test_callback_error_is_logged_not_raised(self, _sleep):
        engine = make_engine(ScriptedProducer([]), count=3)

        def broken(frame_data, events):
            raise RuntimeError("callback failed")

        engine.add_callback(broken)
        engine.run()

        assert engine.stats.frame_count == 3

    def test_stop(self):
        engine = make_engine(ScriptedProducer([]))
        engine._running = True
        engine.stop()
        assert not engine.is_running

    def test_web_state_gets_annotated_and_raw_frames(self):
        web_state = MagicMock()
        engine = make_engine(ScriptedProducer(bounce_samples()), web_state=web_state)
        engine.source.open()

        frame_data = engine.source.read()
        raw = frame_data.frame
        engine.process_frame(frame_data)

        annotated, = web_state.set_frame.call_args.args
        assert web_state.set_frame.call_args.kwargs["raw"] is raw
        assert annotated.shape == raw.shape
        # Overlay text is drawn on the copy, never on the raw frame
        assert annotated.any()
        assert not raw.any()
        web_state.update_system_stats.assert_called()

    def test_indicator_scales_pose_coordinates(self):
        engine = make_engine(ScriptedProducer([]))
        engine.stage = EventStage(EventStageConfig(mode="rep"))
        engine._last_sample = make_track([(0.5, 0.25)])[0]
        frame_data = FrameData(frame=np.zeros((100, 200, 3), dtype=np.uint8), timestamp=0.0)

        assert engine._indicator_position(frame_data) == (100, 25)

    def test_indicator_uses_pixels_for_ball(self):
        producer = BallSampleProducer(MagicMock())
        producer.detector.detect.return_value = [Detection.from_center(40, 30, 10)]
        engine = make_engine(producer)
        engine.source.open()

        frame_data = engine.source.read()
        engine.process_frame(frame_data)

        assert engine._indicator_position(frame_data) == (40, 30)

    def test_indicator_follows_live_ball_size(self):
        detector = ColorDetector(ColorDetectorConfig(ball_size=30))
        engine = make_engine(BallSampleProducer(detector), ball_size=30)
        assert engine._indicator_size() == 30

        detector.set_ball_size(80)

        assert engine._indicator_size() == 80

    def test_indicator_size_without_color_detector(self):
        engine = make_engine(ScriptedProducer([]), ball_size=24)
        assert engine._indicator_size() == 24


class TestCreateEngineFromConfig:
    def test_builds_engine(self, valid_config):
        producer = ScriptedProducer([])

        engine = create_engine_from_config(valid_config, producer, record=True)

        assert engine.producer is producer
        assert engine.stage.mode == "hit"
        assert engine.config.record is True
        assert engine.config.fps == 30
        assert engine.source.source_id == "main-camera"

    def test_reuses_given_stage(self, valid_config):
        stage = EventStage(EventStageConfig(mode="hit"))

        engine = create_engine_from_config(valid_config, ScriptedProducer([]), stage=stage)

        assert engine.stage is stage
