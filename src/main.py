"""
Motion event counter: camera-based hit detection and throw/catch rep counting.

Reads frames from a webcam or video file, turns each frame into at most one
sample (ball position or arm pose) and feeds it to the event core, which
counts hits (sudden velocity reversals) or reps (throw then catch).

Usage:
    python src/main.py --config config/config.yaml --display
    python src/main.py --mode rep --web

Arguments:
    --config: Path to configuration file
    --mode: Override the configured mode (hit or rep)
    --display: Enable visual display for debugging
    --record: Record annotated video output
    --web: Serve the control API (status, reset, start/stop, sensitivity)
"""

import argparse
import logging
import os
import sys
import threading
import time
from typing import Any, Dict, Optional, Tuple

import uvicorn
import yaml

from algorithms.events.rep import FORWARD_AXES
from detection import create_sample_producer
from detection.factory import DETECTION_BACKENDS
from models.config import MODE_REP, MODES, Config
from ops.logging import LOG_LEVELS, setup_logging
from pipeline.engine import create_engine_from_config
from pipeline.stages.events import create_event_stage
from web.app import create_app
from web.state import state as web_state


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_hit(hit: Dict[str, Any]) -> Optional[str]:
    window_size = hit.get('window_size', 10)
    if not isinstance(window_size, int) or window_size < 3:
        return "hit.window_size must be an integer >= 3"
    history = hit.get('velocity_history_size', 5)
    if not isinstance(history, int) or history < 1:
        return "hit.velocity_history_size must be a positive integer"
    direction = hit.get('direction_threshold', 120.0)
    if not _is_number(direction) or not (0 <= direction <= 180):
        return "hit.direction_threshold must be between 0 and 180 degrees"
    for key in ('velocity_threshold', 'sensitivity'):
        if key in hit and (not _is_number(hit[key]) or hit[key] <= 0):
            return f"hit.{key} must be a positive number"
    if 'min_event_interval' in hit and (not _is_number(hit['min_event_interval']) or hit['min_event_interval'] < 0):
        return "hit.min_event_interval must be a non-negative number"
    return None


def _validate_rep(rep: Dict[str, Any]) -> Optional[str]:
    window_size = rep.get('window_size', 10)
    if not isinstance(window_size, int) or window_size < 3:
        return "rep.window_size must be an integer >= 3"
    for key in ('throw_threshold', 'proximity_threshold', 'state_timeout', 'sensitivity'):
        if key in rep and (not _is_number(rep[key]) or rep[key] <= 0):
            return f"rep.{key} must be a positive number"
    for key in ('min_throw_angle', 'min_catch_angle'):
        value = rep.get(key)
        if value is None:
            continue
        if not _is_number(value) or not (0 <= value <= 180):
            return f"rep.{key} must be between 0 and 180 degrees"
    if 'min_event_interval' in rep and (not _is_number(rep['min_event_interval']) or rep['min_event_interval'] < 0):
        return "rep.min_event_interval must be a non-negative number"
    if rep.get('forward_axis', 'x') not in FORWARD_AXES:
        return f"rep.forward_axis must be one of: {', '.join(FORWARD_AXES)}"
    if rep.get('forward_sign', 1) not in (1, -1):
        return "rep.forward_sign must be 1 or -1"
    if not isinstance(rep.get('require_depth', False), bool):
        return "rep.require_depth must be a boolean"
    return None


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    # Required top-level sections
    required_sections = ['mode', 'camera', 'detection', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    mode = config['mode']
    if mode not in MODES:
        return False, f"mode must be one of: {', '.join(MODES)}"

    # Validate camera settings
    camera = config.get('camera', {}) or {}
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    if not isinstance(camera['device_id'], (int, str)) or isinstance(camera['device_id'], bool):
        return False, "camera.device_id must be an integer (index) or string (file path)"
    if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
        return False, "camera.device_id integer must be non-negative"

    if 'resolution' in camera:
        if not isinstance(camera['resolution'], list) or len(camera['resolution']) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in camera['resolution']):
            return False, "camera.resolution values must be positive integers"

    if 'fps' in camera:
        if not isinstance(camera['fps'], int) or camera['fps'] <= 0:
            return False, "camera.fps must be a positive integer"

    # Validate detection settings
    detection = config.get('detection', {}) or {}
    backend = detection.get('backend', 'color')
    if backend not in DETECTION_BACKENDS:
        return False, f"detection.backend must be one of: {', '.join(DETECTION_BACKENDS)}"
    if mode == MODE_REP and backend != 'pose':
        return False, "detection.backend must be 'pose' when mode is 'rep'"
    if mode != MODE_REP and backend == 'pose':
        return False, "detection.backend 'pose' is only valid when mode is 'rep'"

    color = detection.get('color', {}) or {}
    if 'target_rgb' in color:
        rgb = color['target_rgb']
        if not isinstance(rgb, list) or len(rgb) != 3 or not all(isinstance(c, int) and 0 <= c <= 255 for c in rgb):
            return False, "detection.color.target_rgb must be a list of three integers 0-255"
    if 'tolerance' in color and (not _is_number(color['tolerance']) or color['tolerance'] <= 0):
        return False, "detection.color.tolerance must be a positive number"
    if 'step' in color and (not isinstance(color['step'], int) or color['step'] <= 0):
        return False, "detection.color.step must be a positive integer"

    yolo = detection.get('yolo', {}) or {}
    if 'conf_threshold' in yolo:
        if not _is_number(yolo['conf_threshold']) or not (0 < yolo['conf_threshold'] <= 1):
            return False, "detection.yolo.conf_threshold must be between 0 and 1"
    if yolo.get('side', 'right') not in ('left', 'right'):
        return False, "detection.yolo.side must be one of: left, right"

    error = _validate_hit(config.get('hit', {}) or {})
    if error:
        return False, error
    rep = config.get('rep', {}) or {}
    error = _validate_rep(rep)
    if error:
        return False, error
    # The pose backend produces 2D keypoints, so vz is always 0
    if backend == 'pose':
        if rep.get('require_depth', False):
            return False, "rep.require_depth needs depth samples; the pose backend is 2D"
        if rep.get('forward_axis', 'x') == 'z':
            return False, "rep.forward_axis 'z' needs depth samples; the pose backend is 2D"

    stats = config.get('stats', {}) or {}
    if 'duration_history_size' in stats:
        if not isinstance(stats['duration_history_size'], int) or stats['duration_history_size'] < 2:
            return False, "stats.duration_history_size must be an integer >= 2"
    if 'consistency_scale' in stats:
        if not _is_number(stats['consistency_scale']) or stats['consistency_scale'] <= 0:
            return False, "stats.consistency_scale must be a positive number"

    web = config.get('web', {}) or {}
    if 'port' in web:
        if not isinstance(web['port'], int) or not (0 < web['port'] < 65536):
            return False, "web.port must be an integer between 1 and 65535"

    # Validate log settings
    if config['log_level'] not in LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(LOG_LEVELS)}"

    return True, None


def apply_cli_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Apply command-line overrides to the loaded config."""
    if args.mode:
        config['mode'] = args.mode
        detection = config.setdefault('detection', {})
        if args.mode == MODE_REP and detection.get('backend') != 'pose':
            logging.info("Mode 'rep' selected: switching detection.backend to 'pose'")
            detection['backend'] = 'pose'
        elif args.mode != MODE_REP and detection.get('backend') == 'pose':
            logging.info("Mode 'hit' selected: switching detection.backend to 'color'")
            detection['backend'] = 'color'
    return config


def start_web_server(host: str, port: int) -> threading.Thread:
    """Serve the control API from a daemon thread."""
    def run_web_app():
        uvicorn.run(
            create_app(),
            host=host,
            port=port,
            log_level="info",
        )

    web_thread = threading.Thread(target=run_web_app, daemon=True)
    web_thread.start()
    logging.info(f"Web interface started on http://{host}:{port}")
    return web_thread


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Motion Event Counter')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--mode', type=str, choices=MODES, default=None,
                        help='Override detection mode (hit or rep)')
    parser.add_argument('--display', action='store_true',
                        help='Enable visual display')
    parser.add_argument('--record', action='store_true',
                        help='Record annotated video output')
    parser.add_argument('--web', action='store_true',
                        help='Serve the control API')
    return parser


def main(argv=None):
    """Main application function."""
    args = build_parser().parse_args(argv)

    config = apply_cli_overrides(load_config(args.config), args)

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])
    typed = Config.from_dict(config)

    logging.info(f"Starting Motion Event Counter (mode={typed.mode}, backend={typed.detection.backend})")

    try:
        producer = create_sample_producer(config)
    except (ImportError, ValueError) as e:
        logging.error(f"Failed to initialize detector: {e}")
        sys.exit(1)

    stage = create_event_stage(config)

    web_state.attach(stage, producer)
    web_state.update_system_stats({"start_time": time.time()})

    if args.web:
        start_web_server(typed.web.host, typed.web.port)

    engine = create_engine_from_config(
        config,
        producer,
        stage=stage,
        web_state=web_state if args.web else None,
        display=args.display,
        record=args.record,
    )

    try:
        engine.run()
    except RuntimeError as e:
        logging.error(f"Pipeline failed: {e}")
        sys.exit(1)
    finally:
        logging.info("Motion Event Counter stopped")


if __name__ == "__main__":
    main()
