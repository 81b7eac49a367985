"""
Pipeline engine for the motion event counter.

The engine is the external driver of the event core: it pumps frames from an
ObservationSource, asks the sample producer for at most one sample per frame
and hands it to the EventStage. The core itself never waits for frames.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import cv2
import numpy as np

from detection.base import SampleProducer
from detection.factory import find_color_detector
from models.event import EventRecord
from models.frame import FrameData
from models.sample import PoseSample, Sample
from observation import ObservationSource, create_source_from_config
from pipeline.stages.events import EventStage, create_event_stage

# Colors (BGR)
COLOR_INDICATOR = (0, 255, 0)
COLOR_TEXT = (255, 255, 255)
COLOR_EVENT = (0, 0, 255)
COLOR_PAUSED = (0, 165, 255)
EVENT_FLASH_MS = 500.0


@dataclass
class PipelineConfig:
    """
    Configuration for the pipeline engine.

    Attributes:
        max_consecutive_failures: Max frame read failures before stopping.
        stats_log_interval: Seconds between status log messages.
        display: Enable cv2 display window.
        record: Enable video recording of the annotated frames.
        output_dir: Directory for recorded videos.
        fps: Frame rate written to recordings.
        ball_size: Indicator circle diameter in pixels.
    """
    max_consecutive_failures: int = 10
    stats_log_interval: float = 60.0
    display: bool = False
    record: bool = False
    output_dir: str = "output/video"
    fps: int = 30
    ball_size: int = 30


@dataclass
class PipelineStats:
    """Runtime statistics for the pipeline."""
    frame_count: int = 0
    sample_count: int = 0
    missed_count: int = 0
    event_count: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)
    consecutive_failures: int = 0


class PipelineEngine:
    """
    Main processing loop.

    This engine:
    - Reads frames from any ObservationSource
    - Produces at most one sample per frame (none when nothing is detected)
    - Feeds the EventStage, which owns the event core
    - Draws the overlay and updates the web state

    Example:
        source = OpenCVSource(OpenCVSourceConfig(device_id=0))
        stage = create_event_stage(config)
        engine = PipelineEngine(source, producer, stage, PipelineConfig())
        engine.run()
    """

    def __init__(
        self,
        source: ObservationSource,
        producer: SampleProducer,
        stage: EventStage,
        config: PipelineConfig,
        web_state: Any = None,
    ):
        self.source = source
        self.producer = producer
        self.stage = stage
        self.config = config
        self.web_state = web_state
        self.stats = PipelineStats()
        self._running = False
        self._video_writer: Optional[cv2.VideoWriter] = None
        self._output_path: Optional[str] = None
        self._callbacks: List[Callable[[FrameData, List[EventRecord]], None]] = []
        self._last_sample: Optional[Sample] = None

    def add_callback(self, callback: Callable[[FrameData, List[EventRecord]], None]) -> None:
        """
        Add a callback to be called after each frame is processed.

        Args:
            callback: Function taking (frame_data, events) as arguments.
        """
        self._callbacks.append(callback)

    @property
    def is_running(self) -> bool:
        return self._running

    def run(self) -> None:
        """
        Run the main processing loop.

        Opens the observation source, processes frames until stopped or
        exhausted, then closes resources.
        """
        self._running = True
        self.stats = PipelineStats()

        try:
            self.source.open()
            logging.info(f"Pipeline started: source={self.source.source_id} mode={self.stage.mode}")

            while self._running:
                frame_data = self.source.read()

                if frame_data is None:
                    self.stats.consecutive_failures += 1
                    if self.stats.consecutive_failures >= self.config.max_consecutive_failures:
                        logging.error(
                            f"Too many consecutive failures ({self.stats.consecutive_failures}), stopping"
                        )
                        break
                    logging.warning(
                        f"Frame read failed ({self.stats.consecutive_failures}/"
                        f"{self.config.max_consecutive_failures})"
                    )
                    time.sleep(0.5)
                    continue

                self.stats.consecutive_failures = 0
                events = self.process_frame(frame_data)

                for callback in self._callbacks:
                    try:
                        callback(frame_data, events)
                    except Exception as e:
                        logging.warning(f"Callback error: {e}")

                if self.config.display:
                    if not self._handle_display(frame_data):
                        break

                self._handle_periodic_tasks()

        except KeyboardInterrupt:
            logging.info("Pipeline interrupted by user")
        finally:
            self._cleanup()

    def stop(self) -> None:
        """Signal the pipeline to stop after the current frame."""
        self._running = False

    def process_frame(self, frame_data: FrameData) -> List[EventRecord]:
        """
        Process a single frame through detection and event inference.

        Returns the events confirmed by this frame.
        """
        self.stats.frame_count += 1
        events: List[EventRecord] = []

        if self.stage.is_running:
            sample = self.producer.produce(frame_data)
            if sample is None:
                self.stats.missed_count += 1
                self._last_sample = None
            else:
                self.stats.sample_count += 1
                self._last_sample = sample.endpoint if isinstance(sample, PoseSample) else sample
                events = self.stage.process(sample)

        self.stats.event_count += len(events)

        if self.config.display or self.config.record or self.web_state is not None:
            raw = frame_data.frame
            annotated = self._draw_overlays(raw.copy(), frame_data)
            frame_data.frame = annotated
            if self.web_state is not None:
                self.web_state.set_frame(annotated, raw=raw)
                self.web_state.update_system_stats({
                    "frames": self.stats.frame_count,
                    "samples": self.stats.sample_count,
                })
            if self.config.record:
                self._write_frame(annotated)

        return events

    def _indicator_position(self, frame_data: FrameData) -> Optional[Tuple[int, int]]:
        if self._last_sample is None:
            return None
        x, y = self._last_sample.x, self._last_sample.y
        # Pose keypoints are normalised to [0, 1]
        if self.stage.mode == "rep":
            x, y = x * frame_data.width, y * frame_data.height
        return int(x), int(y)

    def _indicator_size(self) -> int:
        """Live ball size from the colour detector, else the configured size."""
        detector = find_color_detector(self.producer)
        if detector is not None:
            return detector.ball_size
        return self.config.ball_size

    def _draw_overlays(self, frame: np.ndarray, frame_data: FrameData) -> np.ndarray:
        """Draw the counter, statistics and the tracked-point indicator."""
        status = self.stage.status()

        pos = self._indicator_position(frame_data)
        if pos is not None:
            cv2.circle(frame, pos, max(2, self._indicator_size() // 2), COLOR_INDICATOR, 2)

        last_event = status.get("last_event")
        flashing = (
            last_event is not None
            and frame_data.timestamp - last_event["timestamp"] < EVENT_FLASH_MS
        )
        label = "Hits" if status["mode"] == "hit" else "Reps"
        cv2.putText(
            frame, f"{label}: {status['count']}", (10, 40),
            cv2.FONT_HERSHEY_SIMPLEX, 1.2, COLOR_EVENT if flashing else COLOR_TEXT, 2,
        )

        lines = [f"State: {status['state']}"]
        if status["mode"] == "rep":
            lines.append(f"Rate: {status['rate']:.1f}/min")
            lines.append(f"Consistency: {status['consistency']:.0f}%")
        if not status["running"]:
            lines.append("Detection stopped")
        for i, text in enumerate(lines):
            color = COLOR_PAUSED if text == "Detection stopped" else COLOR_TEXT
            cv2.putText(frame, text, (10, 75 + i * 28), cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2)

        return frame

    def _handle_display(self, frame_data: FrameData) -> bool:
        """
        Handle cv2 display window.

        Returns False if user pressed 'q' to quit. 'r' resets, 's' toggles detection.
        """
        cv2.imshow("Motion Counter", frame_data.frame)
        key = cv2.waitKey(1) & 0xFF
        if key == ord("r"):
            self.stage.reset()
        elif key == ord("s"):
            if self.stage.is_running:
                self.stage.stop()
            else:
                self.stage.start()
        return key != ord("q")

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            status = self.stage.status()
            logging.info(
                f"Pipeline stats: frames={self.stats.frame_count}, "
                f"samples={self.stats.sample_count}, missed={self.stats.missed_count}, "
                f"count={status['count']}, rate={status['rate']:.1f}/min, "
                f"consistency={status['consistency']:.0f}%"
            )
            self.stats.last_stats_log_time = now

    def _write_frame(self, frame: np.ndarray) -> None:
        if self._video_writer is None:
            self._setup_recording(frame.shape[1], frame.shape[0])
        self._video_writer.write(frame)

    def _setup_recording(self, width: int, height: int) -> None:
        os.makedirs(self.config.output_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self._output_path = os.path.join(self.config.output_dir, f"session_{timestamp}.avi")

        fourcc = cv2.VideoWriter_fourcc(*"XVID")
        self._video_writer = cv2.VideoWriter(self._output_path, fourcc, self.config.fps, (width, height), True)
        logging.info(f"Video recording started: {self._output_path}")

    def _cleanup(self) -> None:
        self._running = False

        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")

        if self._video_writer is not None:
            self._video_writer.release()
            self._video_writer = None
            logging.info(f"Video saved: {self._output_path}")

        if self.config.display:
            cv2.destroyAllWindows()

        status = self.stage.status()
        logging.info(f"Pipeline stopped: frames={self.stats.frame_count}, count={status['count']}")


def create_engine_from_config(
    config: Dict[str, Any],
    producer: SampleProducer,
    stage: Optional[EventStage] = None,
    web_state: Any = None,
    display: bool = False,
    record: bool = False,
) -> PipelineEngine:
    """
    Factory function to create a PipelineEngine from the config dict.

    Args:
        config: Full application config dict.
        producer: Sample producer (see detection.create_sample_producer).
        stage: Existing EventStage; created from config when omitted.
        web_state: Shared web state receiving annotated frames.
        display: Enable display window.
        record: Enable video recording.
    """
    camera_cfg = config.get("camera", {}) or {}
    source = create_source_from_config(camera_cfg, source_id="main-camera")

    color_cfg = (config.get("detection", {}) or {}).get("color", {}) or {}
    pipeline_config = PipelineConfig(
        display=display,
        record=record,
        fps=int(camera_cfg.get("fps", 30)),
        ball_size=int(color_cfg.get("ball_size", 30)),
    )

    if stage is None:
        stage = create_event_stage(config)

    return PipelineEngine(source, producer, stage, pipeline_config, web_state=web_state)
