"""
Configuration manager.
Loads config/config.yaml over built-in defaults and provides dict access
per section.

One Config per application; tests build their own instead of sharing
global state.
"""

import os
import copy
import yaml
import logging

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")

DEFAULTS = {
    "system": {
        "mode": "control",
        "display": True,
        "debug": False,
    },
    "camera": {
        "device_id": 0,
        "width": 640,
        "height": 480,
        "fps": 30,
        "backend": "auto",
        "buffer_size": 1,
        "flip_horizontal": True,
        "warmup_frames": 15,
        "max_read_failures": 30,
    },
    "mediapipe": {
        "model_path": None,
        "max_num_hands": 2,
        "min_detection_confidence": 0.5,
        "min_presence_confidence": 0.5,
        "min_tracking_confidence": 0.5,
    },
    "recognition": {
        "finger_extended_angle": 160.0,
        "finger_curled_angle": 70.0,
        "thumb_extended_angle": 150.0,
        "thumb_curled_angle": 210.0,
        "fingertip_cluster_distance": 40.0,
        "palm_facing_threshold": 0.5,
    },
    "tracking": {
        "fist_hold_frames": 5,
        "window_size": 5,
        "scrub_threshold": 20.0,
        "seek_seconds": 5.0,
        "volume_threshold": 20.0,
        "volume_step": 0.5,
        "volume_debounce_ms": 100.0,
        "volume_range": [0.0, 1.0],
        "handedness_fallback": "position",
    },
    "media": {
        "player": "vlc",
        "window_name": "VLC",
        "backend": "simulated",
        "async_exec": True,
        "autoplay": False,
        "initial_volume": 1.0,
        "command_timeout_s": 1.0,
        "keybindings": {
            "play": "space",
            "pause": "space",
            "seek_forward": "Right",
            "seek_backward": "Left",
            "volume_up": "Up",
            "volume_down": "Down",
        },
    },
    "visualization": {
        "window_name": "Gesture Media Control",
        "show_landmarks": True,
        "show_pose_labels": True,
        "show_status": True,
        "show_volume": True,
        "effect_banner_s": 1.0,
    },
    "logging": {
        "level": "INFO",
        "file": "logs/gesture_control.log",
        "max_size_mb": 10,
        "backup_count": 3,
    },
}

# Schema: sections and the expected types of their critical fields
_CONFIG_SCHEMA = {
    "camera": {
        "device_id": int,
        "width": int,
        "height": int,
        "fps": int,
        "max_read_failures": int,
    },
    "mediapipe": {
        "max_num_hands": int,
        "min_detection_confidence": float,
        "min_tracking_confidence": float,
    },
    "tracking": {
        "fist_hold_frames": int,
        "window_size": int,
        "scrub_threshold": float,
        "volume_threshold": float,
        "volume_step": float,
        "volume_debounce_ms": float,
        "handedness_fallback": str,
    },
    "media": {
        "player": str,
        "backend": str,
        "autoplay": bool,
        "keybindings": dict,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """Configuration for one application run."""

    def __init__(self, data: dict = None):
        self._data = _deep_merge(copy.deepcopy(DEFAULTS), data or {})

    @classmethod
    def from_file(cls, config_path=None) -> "Config":
        return cls().load(config_path)

    def load(self, config_path=None):
        """Load configuration from a YAML file over the defaults."""
        config_path = config_path or os.path.join(_CONFIG_DIR, "config.yaml")

        try:
            with open(config_path, "r") as f:
                file_data = yaml.safe_load(f) or {}
            logger.info("Loaded config from %s", config_path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", config_path)
            file_data = {}

        if not isinstance(file_data, dict):
            logger.warning("Config file %s is not a mapping, using defaults", config_path)
            file_data = {}

        self._data = _deep_merge(copy.deepcopy(DEFAULTS), file_data)
        self._validate()
        return self

    def _validate(self) -> list:
        """Validate critical config fields against schema. Returns warnings."""
        warnings = []
        for section_name, fields in _CONFIG_SCHEMA.items():
            section = self._data.get(section_name)
            if not isinstance(section, dict):
                warnings.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
                continue
            for field_name, expected_type in fields.items():
                if field_name not in section:
                    continue
                value = section[field_name]
                # bool is an int subclass; never accept it for numbers
                if isinstance(value, bool) and expected_type is not bool:
                    pass
                elif expected_type is float and isinstance(value, (int, float)):
                    continue
                elif isinstance(value, expected_type):
                    continue
                warnings.append(
                    f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                    f"got {type(value).__name__} ({value!r})"
                )

        if warnings:
            for w in warnings:
                logger.warning("Config validation: %s", w)
        else:
            logger.debug("Config validation passed")
        return warnings

    def get(self, key_path: str, default=None):
        """Get nested config value using dot notation: 'camera.width'."""
        keys = key_path.split(".")
        value = self._data
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set(self, key_path: str, value):
        """Set a nested value, e.g. a command-line override."""
        keys = key_path.split(".")
        node = self._data
        for key in keys[:-1]:
            node = node.setdefault(key, {})
        node[keys[-1]] = value

    def get_section(self, section: str) -> dict:
        """Get an entire config section."""
        return self._data.get(section, {})

    @property
    def system(self) -> dict:
        return self._data.get("system", {})

    @property
    def camera(self) -> dict:
        return self._data.get("camera", {})

    @property
    def mediapipe(self) -> dict:
        return self._data.get("mediapipe", {})

    @property
    def recognition(self) -> dict:
        return self._data.get("recognition", {})

    @property
    def tracking(self) -> dict:
        return self._data.get("tracking", {})

    @property
    def media(self) -> dict:
        return self._data.get("media", {})

    @property
    def visualization(self) -> dict:
        return self._data.get("visualization", {})

    @property
    def logging(self) -> dict:
        return self._data.get("logging", {})

    @property
    def base_dir(self) -> str:
        return _BASE_DIR
