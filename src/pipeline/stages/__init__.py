"""
Pipeline stages for the motion event counter.

- events: sample ingestion and event emission
"""

from .events import EventStage, EventStageConfig, create_event_detector, create_event_stage

__all__ = ["EventStage", "EventStageConfig", "create_event_detector", "create_event_stage"]
