"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

MODE_HIT = "hit"
MODE_REP = "rep"
MODES = (MODE_HIT, MODE_REP)


@dataclass
class CameraConfig:
    """Camera configuration."""
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [640, 480])
    fps: int = 30
    flip_horizontal: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [640, 480]),
            fps=d.get("fps", 30),
            flip_horizontal=d.get("flip_horizontal", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "flip_horizontal": self.flip_horizontal,
        }


@dataclass
class ColorConfig:
    """Colour-match detector configuration (RGB target, as picked by calibration)."""
    target_rgb: List[int] = field(default_factory=lambda: [255, 165, 0])
    tolerance: float = 50.0
    step: int = 4
    ball_size: int = 30

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ColorConfig":
        return cls(
            target_rgb=d.get("target_rgb", [255, 165, 0]),
            tolerance=d.get("tolerance", 50.0),
            step=d.get("step", 4),
            ball_size=d.get("ball_size", 30),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_rgb": self.target_rgb,
            "tolerance": self.tolerance,
            "step": self.step,
            "ball_size": self.ball_size,
        }


@dataclass
class YoloConfig:
    """YOLO detector / pose estimator configuration."""
    model: str = ""
    conf_threshold: float = 0.25
    class_names: List[str] = field(default_factory=lambda: ["sports ball", "orange", "apple"])
    min_keypoint_confidence: float = 0.5
    side: str = "right"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "YoloConfig":
        return cls(
            model=d.get("model", ""),
            conf_threshold=d.get("conf_threshold", 0.25),
            class_names=d.get("class_names", ["sports ball", "orange", "apple"]),
            min_keypoint_confidence=d.get("min_keypoint_confidence", 0.5),
            side=d.get("side", "right"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "conf_threshold": self.conf_threshold,
            "class_names": self.class_names,
            "min_keypoint_confidence": self.min_keypoint_confidence,
            "side": self.side,
        }


@dataclass
class DetectionConfig:
    """Detection configuration. backend is one of: color, yolo, pose."""
    backend: str = "color"
    color: ColorConfig = field(default_factory=ColorConfig)
    yolo: Optional[YoloConfig] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        yolo_dict = d.get("yolo")
        return cls(
            backend=d.get("backend", "color"),
            color=ColorConfig.from_dict(d.get("color", {}) or {}),
            yolo=YoloConfig.from_dict(yolo_dict) if yolo_dict else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "backend": self.backend,
            "color": self.color.to_dict(),
        }
        if self.yolo:
            d["yolo"] = self.yolo.to_dict()
        return d


@dataclass
class HitConfig:
    """Velocity-reversal hit detection thresholds."""
    window_size: int = 10
    velocity_history_size: int = 5
    direction_threshold: float = 120.0
    velocity_threshold: float = 50.0
    sensitivity: float = 1.0
    min_event_interval: float = 1000.0
    min_confidence: float = 0.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HitConfig":
        return cls(
            window_size=d.get("window_size", 10),
            velocity_history_size=d.get("velocity_history_size", 5),
            direction_threshold=d.get("direction_threshold", 120.0),
            velocity_threshold=d.get("velocity_threshold", 50.0),
            sensitivity=d.get("sensitivity", 1.0),
            min_event_interval=d.get("min_event_interval", 1000.0),
            min_confidence=d.get("min_confidence", 0.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "window_size": self.window_size,
            "velocity_history_size": self.velocity_history_size,
            "direction_threshold": self.direction_threshold,
            "velocity_threshold": self.velocity_threshold,
            "sensitivity": self.sensitivity,
            "min_event_interval": self.min_event_interval,
            "min_confidence": self.min_confidence,
        }


@dataclass
class RepConfig:
    """Throw/catch rep state machine thresholds."""
    window_size: int = 10
    throw_threshold: float = 0.9
    min_throw_angle: float = 100.0
    min_catch_angle: Optional[float] = None
    proximity_threshold: float = 0.2
    state_timeout: float = 2000.0
    min_event_interval: float = 0.0
    require_depth: bool = False
    forward_axis: str = "x"
    forward_sign: int = 1
    sensitivity: float = 1.0
    min_confidence: float = 0.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RepConfig":
        return cls(
            window_size=d.get("window_size", 10),
            throw_threshold=d.get("throw_threshold", 0.9),
            min_throw_angle=d.get("min_throw_angle", 100.0),
            min_catch_angle=d.get("min_catch_angle"),
            proximity_threshold=d.get("proximity_threshold", 0.2),
            state_timeout=d.get("state_timeout", 2000.0),
            min_event_interval=d.get("min_event_interval", 0.0),
            require_depth=d.get("require_depth", False),
            forward_axis=d.get("forward_axis", "x"),
            forward_sign=d.get("forward_sign", 1),
            sensitivity=d.get("sensitivity", 1.0),
            min_confidence=d.get("min_confidence", 0.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "window_size": self.window_size,
            "throw_threshold": self.throw_threshold,
            "min_throw_angle": self.min_throw_angle,
            "proximity_threshold": self.proximity_threshold,
            "state_timeout": self.state_timeout,
            "min_event_interval": self.min_event_interval,
            "require_depth": self.require_depth,
            "forward_axis": self.forward_axis,
            "forward_sign": self.forward_sign,
            "sensitivity": self.sensitivity,
            "min_confidence": self.min_confidence,
        }
        if self.min_catch_angle is not None:
            d["min_catch_angle"] = self.min_catch_angle
        return d


@dataclass
class StatsConfig:
    """Rolling statistics configuration."""
    duration_history_size: int = 20
    consistency_scale: float = 5.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StatsConfig":
        return cls(
            duration_history_size=d.get("duration_history_size", 20),
            consistency_scale=d.get("consistency_scale", 5.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration_history_size": self.duration_history_size,
            "consistency_scale": self.consistency_scale,
        }


@dataclass
class WebConfig:
    """Control surface configuration."""
    host: str = "127.0.0.1"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(host=d.get("host", "127.0.0.1"), port=d.get("port", 5000))

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    mode: str = MODE_HIT
    camera: CameraConfig = field(default_factory=CameraConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    hit: HitConfig = field(default_factory=HitConfig)
    rep: RepConfig = field(default_factory=RepConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/motion_counter.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            mode=d.get("mode", MODE_HIT),
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            hit=HitConfig.from_dict(d.get("hit", {}) or {}),
            rep=RepConfig.from_dict(d.get("rep", {}) or {}),
            stats=StatsConfig.from_dict(d.get("stats", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/motion_counter.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "mode": self.mode,
            "camera": self.camera.to_dict(),
            "detection": self.detection.to_dict(),
            "hit": self.hit.to_dict(),
            "rep": self.rep.to_dict(),
            "stats": self.stats.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
