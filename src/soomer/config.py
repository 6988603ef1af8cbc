"""Configuration management for Soomer.

Configuration priority (highest to lowest):
1. CLI overrides (passed to load_config)
2. Environment variables (SOOMER_*)
3. Config file (~/.config/soomer/config.yaml)
4. Built-in defaults
"""

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Any

import yaml
from platformdirs import user_config_dir

ENV_PREFIX = "SOOMER"
CONFIG_DIR = Path(user_config_dir("soomer"))
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.yaml"


class ConfigError(Exception):
    """Raised when the configuration cannot be loaded or is invalid."""
    pass


@dataclass(frozen=True)
class BgColor:
    """Background color, each channel 0-255."""

    r: int = 10
    g: int = 0
    b: int = 15
    a: int = 255

    def as_floats(self) -> tuple[float, float, float, float]:
        return (self.r / 255.0, self.g / 255.0, self.b / 255.0, self.a / 255.0)


@dataclass(frozen=True)
class Config:
    """Viewer configuration. Immutable once loaded."""

    bg: BgColor = field(default_factory=BgColor)

    # Zoom
    scale_min: float = 0.1
    scale_max: float = 10.0
    zoom_factor: float = 1.1
    smoothing_factor: float = 0.15

    # Loop
    frame_delay_ms: int = 60
    center_small_image: bool = False

    # Capture
    monitor_index: int = 0
    wayland_capture: str = "wayland-capture"

    # Output
    save_dir: Path = field(default_factory=lambda: Path("./"))
    save_name: str = "screenshot.png"

    def __post_init__(self):
        if isinstance(self.save_dir, str):
            object.__setattr__(self, "save_dir", Path(self.save_dir))
        if isinstance(self.bg, dict):
            object.__setattr__(self, "bg", BgColor(**self.bg))

    @property
    def frame_interval(self) -> float:
        """Seconds to sleep at the end of each frame."""
        return self.frame_delay_ms / 4 / 1000.0


PATH_KEYS = {"save_dir"}
BG_CHANNELS = ("r", "g", "b", "a")


def _env(name: str) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}_{name}")


def _config_path_from_env() -> Optional[Path]:
    value = _env("CONFIG") or _env("CONFIG_PATH")
    if value:
        return Path(value).expanduser()
    return None


def _load_config_file(path: Path, strict: bool = False) -> dict:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as exc:
        if strict:
            raise ConfigError(f"Failed to parse config file {path}: {exc}")
        return {}

    if not isinstance(data, dict):
        if strict:
            raise ConfigError(f"Config file {path} must be a mapping")
        return {}

    return data


def _expand_path(value: Any) -> Any:
    if value is None:
        return value
    return str(Path(value).expanduser())


def config_defaults() -> dict:
    return {
        "bg": {"r": 10, "g": 0, "b": 15, "a": 255},
        "scale_min": 0.1,
        "scale_max": 10.0,
        "zoom_factor": 1.1,
        "smoothing_factor": 0.15,
        "frame_delay_ms": 60,
        "center_small_image": False,
        "monitor_index": 0,
        "wayland_capture": "wayland-capture",
        "save_dir": "./",
        "save_name": "screenshot.png",
    }


def _load_env_overrides() -> dict:
    config: dict[str, Any] = {}

    mapping = {
        "SCALE_MIN": ("scale_min", float),
        "SCALE_MAX": ("scale_max", float),
        "ZOOM_FACTOR": ("zoom_factor", float),
        "SMOOTHING_FACTOR": ("smoothing_factor", float),
        "FRAME_DELAY_MS": ("frame_delay_ms", int),
        "MONITOR_INDEX": ("monitor_index", int),
        "WAYLAND_CAPTURE": ("wayland_capture", str),
        "SAVE_DIR": ("save_dir", _expand_path),
        "SAVE_NAME": ("save_name", str),
    }

    for env_name, (key, convert) in mapping.items():
        value = _env(env_name)
        if value is None:
            continue
        try:
            config[key] = convert(value)
        except ValueError:
            continue

    value = _env("CENTER_SMALL_IMAGE")
    if value is not None:
        config["center_small_image"] = value.lower() in ("true", "1", "yes", "on")

    return config


def resolve_config_path(config_path: Optional[Path] = None) -> Path:
    return config_path or _config_path_from_env() or DEFAULT_CONFIG_PATH


def _merge(base: dict, update: dict) -> None:
    for key, value in update.items():
        if key == "bg" and isinstance(value, dict) and isinstance(base.get("bg"), dict):
            base["bg"] = {**base["bg"], **value}
        else:
            base[key] = value


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[dict] = None,
    strict: bool = False,
) -> Config:
    """Load configuration from all sources.

    The merged values are always validated; ``strict`` only controls whether
    an unreadable config file is an error or silently ignored.

    Raises:
        ConfigError: If the merged configuration is invalid
    """
    resolved_path = resolve_config_path(config_path)

    config_dict = config_defaults()
    _merge(config_dict, _load_config_file(resolved_path, strict=strict))
    _merge(config_dict, _load_env_overrides())

    if overrides:
        _merge(config_dict, {k: v for k, v in overrides.items() if v is not None})

    errors = validate_config_dict(config_dict)
    if errors:
        raise ConfigError("; ".join(errors))

    for key in PATH_KEYS:
        if key in config_dict and config_dict[key] is not None:
            config_dict[key] = _expand_path(config_dict[key])

    return Config(**config_dict)


def config_schema() -> dict:
    channel = {"type": "integer", "minimum": 0, "maximum": 255}
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": {
            "bg": {
                "type": "object",
                "properties": {name: channel for name in BG_CHANNELS},
                "additionalProperties": False,
            },
            "scale_min": {"type": "number", "exclusiveMinimum": 0},
            "scale_max": {"type": "number", "exclusiveMinimum": 0},
            "zoom_factor": {"type": "number", "exclusiveMinimum": 1},
            "smoothing_factor": {"type": "number", "exclusiveMinimum": 0, "maximum": 1},
            "frame_delay_ms": {"type": "integer", "minimum": 0},
            "center_small_image": {"type": "boolean"},
            "monitor_index": {"type": "integer", "minimum": 0},
            "wayland_capture": {"type": "string"},
            "save_dir": {"type": "string"},
            "save_name": {"type": "string", "minLength": 1},
        },
        "additionalProperties": False,
    }


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    """Finite int or float; NaN and infinities are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def _check_bg(value: Any, errors: list[str]) -> None:
    if not isinstance(value, dict):
        errors.append("bg must be a mapping with keys r, g, b, a")
        return
    for key in value:
        if key not in BG_CHANNELS:
            errors.append(f"Unknown bg channel: {key}")
    for name in BG_CHANNELS:
        if name not in value:
            continue
        channel = value[name]
        if not _is_int(channel) or not 0 <= channel <= 255:
            errors.append(f"bg.{name} must be an integer between 0 and 255")


def validate_config_dict(data: Any) -> list[str]:
    errors: list[str] = []
    if not isinstance(data, dict):
        return ["Config must be a mapping/object"]

    props = config_schema()["properties"]

    for key in data.keys():
        if key not in props:
            errors.append(f"Unknown config key: {key}")

    def check_type(key: str, value: Any, expected: str) -> bool:
        if expected == "string" and not isinstance(value, str):
            errors.append(f"{key} must be a string")
        elif expected == "integer" and not _is_int(value):
            errors.append(f"{key} must be an integer")
        elif expected == "number" and not _is_number(value):
            errors.append(f"{key} must be a finite number")
        elif expected == "boolean" and not isinstance(value, bool):
            errors.append(f"{key} must be a boolean")
        else:
            return True
        return False

    for key, value in data.items():
        if key not in props:
            continue
        if key == "bg":
            _check_bg(value, errors)
            continue
        if not check_type(key, value, props[key]["type"]):
            continue

        if key in ("scale_min", "scale_max") and value <= 0:
            errors.append(f"{key} must be > 0")
        if key == "zoom_factor" and value <= 1.0:
            errors.append("zoom_factor must be > 1.0")
        if key == "smoothing_factor" and not 0 < value <= 1:
            errors.append("smoothing_factor must be in (0, 1]")
        if key in ("frame_delay_ms", "monitor_index") and value < 0:
            errors.append(f"{key} must be >= 0")
        if key == "save_name" and not value:
            errors.append("save_name must not be empty")

    scale_min = data.get("scale_min")
    scale_max = data.get("scale_max")
    if _is_number(scale_min) and _is_number(scale_max) and scale_min > scale_max:
        errors.append("scale_min must be <= scale_max")

    return errors


def validate_config_file(config_path: Optional[Path] = None) -> list[str]:
    path = resolve_config_path(config_path)
    if not path.exists():
        return []
    data = _load_config_file(path, strict=True)
    return validate_config_dict(data)


def config_to_dict(config: Config) -> dict:
    return {
        "bg": {name: getattr(config.bg, name) for name in BG_CHANNELS},
        "scale_min": config.scale_min,
        "scale_max": config.scale_max,
        "zoom_factor": config.zoom_factor,
        "smoothing_factor": config.smoothing_factor,
        "frame_delay_ms": config.frame_delay_ms,
        "center_small_image": config.center_small_image,
        "monitor_index": config.monitor_index,
        "wayland_capture": config.wayland_capture,
        "save_dir": str(config.save_dir),
        "save_name": config.save_name,
    }
