"""
Motion Event Counter - Detection Module

This module turns video frames into samples for the event core.
"""

from .base import BallSampleProducer, Detection, Detector, SampleProducer, best_detection
from .color import ColorDetector, ColorDetectorConfig
from .factory import create_sample_producer, find_color_detector

__all__ = [
    "BallSampleProducer",
    "Detection",
    "Detector",
    "SampleProducer",
    "best_detection",
    "ColorDetector",
    "ColorDetectorConfig",
    "create_sample_producer",
    "find_color_detector",
]
