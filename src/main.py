"""
Camera classifier application.

Opens the camera, classifies frames with a bundled TFLite model on a
background worker, checks the top result on the UI thread, and captures
still photos on request (key 'c' in the preview window, or POST /api/capture).

Usage:
    python src/main.py --config config/config.yaml --display

Arguments:
    --config: Path to configuration file
    --display: Show the preview window
    --no-web: Do not start the web interface
"""

import os
import sys
import argparse
import logging
import threading
import time
from typing import Dict, Any, Tuple, Optional

import uvicorn
import yaml

from camera.opencv_source import create_source_from_config
from models.config import Config
from ops.logging import setup_logging
from pipeline.coordinator import CaptureCoordinator
from pipeline.engine import PipelineEngine, EngineConfig
from web.app import create_app
from web.state import state as web_state

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        config_dir = os.path.dirname(config_path)
        base_path = os.path.join(config_dir, "default.yaml")
        merged: Dict[str, Any] = _read_yaml(base_path) if os.path.exists(base_path) else {}

        local_overrides_path = os.path.join(config_dir, "config.yaml")
        if os.path.exists(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(local_overrides_path))

        if os.path.exists(config_path) and os.path.abspath(config_path) not in (
            os.path.abspath(local_overrides_path),
            os.path.abspath(base_path),
        ):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'classifier', 'capture', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera') or {}
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    if isinstance(camera['device_id'], bool) or not isinstance(camera['device_id'], (int, str)):
        return False, "camera.device_id must be an integer (index) or string (file/URL)"
    if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
        return False, "camera.device_id integer must be non-negative"

    if 'resolution' in camera:
        resolution = camera['resolution']
        if not isinstance(resolution, list) or len(resolution) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in resolution):
            return False, "camera.resolution values must be positive integers"

    if 'fps' in camera and (not isinstance(camera['fps'], int) or camera['fps'] <= 0):
        return False, "camera.fps must be a positive integer"

    if camera.get('backend', 'opencv') != 'opencv':
        return False, "camera.backend must be: opencv"

    rotation = camera.get('rotation', 0)
    if rotation is not None and rotation not in (0, 90, 180, 270):
        return False, "camera.rotation must be one of 0, 90, 180, 270 or null (unknown)"

    for key in ('max_retries', 'permission_retries'):
        if key in camera and (not isinstance(camera[key], int) or camera[key] < 0):
            return False, f"camera.{key} must be a non-negative integer"

    # Analysis
    analysis = config.get('analysis') or {}
    if analysis.get('backpressure', 'keep_only_latest') != 'keep_only_latest':
        return False, "analysis.backpressure must be: keep_only_latest"
    if analysis.get('output_format', 'rgba_8888') != 'rgba_8888':
        return False, "analysis.output_format must be: rgba_8888"
    if analysis.get('on_size_change', 'reallocate') not in ('reallocate', 'reject'):
        return False, "analysis.on_size_change must be one of: reallocate, reject"

    # Classifier
    classifier = config.get('classifier') or {}
    model_path = classifier.get('model_path')
    if not isinstance(model_path, str) or not model_path:
        return False, "classifier.model_path is required"
    threshold = classifier.get('score_threshold', 0.5)
    if not _is_number(threshold) or not (0 <= threshold <= 1):
        return False, "classifier.score_threshold must be between 0 and 1"
    max_results = classifier.get('max_results', 3)
    if not isinstance(max_results, int) or max_results <= 0:
        return False, "classifier.max_results must be a positive integer"
    num_threads = classifier.get('num_threads', 2)
    if not isinstance(num_threads, int) or num_threads <= 0:
        return False, "classifier.num_threads must be a positive integer"
    if 'input_std' in classifier and (not _is_number(classifier['input_std']) or classifier['input_std'] == 0):
        return False, "classifier.input_std must be a non-zero number"

    # Capture
    capture = config.get('capture') or {}
    filename = capture.get('filename', 'photo.jpg')
    if not isinstance(filename, str) or not filename or os.path.basename(filename) != filename:
        return False, "capture.filename must be a plain file name"
    quality = capture.get('jpeg_quality', 95)
    if not isinstance(quality, int) or not (0 <= quality <= 100):
        return False, "capture.jpeg_quality must be between 0 and 100"

    # Match
    match = config.get('match') or {}
    if 'target_index' in match and (not isinstance(match['target_index'], int) or match['target_index'] < 0):
        return False, "match.target_index must be a non-negative integer"
    if 'min_score' in match and (not _is_number(match['min_score']) or not (0 <= match['min_score'] <= 1)):
        return False, "match.min_score must be between 0 and 1"

    # Web
    web = config.get('web') or {}
    if 'port' in web and (not isinstance(web['port'], int) or not (0 < web['port'] < 65536)):
        return False, "web.port must be between 1 and 65535"

    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def start_web_server(cfg: Config) -> threading.Thread:
    """Run uvicorn on a daemon thread."""
    def run_web_app():
        uvicorn.run(
            create_app(),
            host=cfg.web.host,
            port=cfg.web.port,
            log_level="info",
        )

    web_thread = threading.Thread(target=run_web_app, name="web", daemon=True)
    web_thread.start()
    logging.info(f"Web interface started on {cfg.web.host}:{cfg.web.port}")
    return web_thread


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Camera Classifier')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--display', action='store_true',
                        help='Show the preview window')
    parser.add_argument('--no-web', action='store_true',
                        help='Do not start the web interface')
    args = parser.parse_args()

    raw_config = load_config(args.config)

    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    cfg = Config.from_dict(raw_config)
    setup_logging(cfg.log_path, cfg.log_level)
    logging.info("Starting Camera Classifier")

    source = create_source_from_config(raw_config['camera'], source_id="front-camera")
    coordinator = CaptureCoordinator(cfg, source)

    try:
        try:
            bound = coordinator.initialize()
        except RuntimeError as e:
            logging.error(f"Failed to open camera: {e}")
            sys.exit(1)
        if not bound:
            logging.error("Camera permission denied, exiting")
            sys.exit(1)

        web_state.set_config(cfg.to_dict())
        web_state.set_coordinator(coordinator)
        web_state.update_system_stats({"start_time": time.time()})

        engine = PipelineEngine(coordinator, EngineConfig(display=args.display))
        if cfg.web.enabled and not args.no_web:
            engine.add_callback(web_state.set_frame)
            start_web_server(cfg)

        engine.run()
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    finally:
        coordinator.close()
        logging.info("Camera Classifier stopped")


if __name__ == "__main__":
    main()
