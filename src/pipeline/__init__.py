"""
Pipeline module for the motion event counter.

The pipeline orchestrates the full processing flow:
- Frame acquisition from observation sources
- Detection (one sample per frame at most)
- Event inference (via EventStage)
- Overlay, recording and web state updates
"""

from .engine import PipelineEngine, PipelineConfig, create_engine_from_config
from .stages.events import EventStage, EventStageConfig, create_event_stage

__all__ = [
    "PipelineEngine",
    "PipelineConfig",
    "create_engine_from_config",
    "EventStage",
    "EventStageConfig",
    "create_event_stage",
]
