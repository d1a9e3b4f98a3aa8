"""Configuration and constants for fire/smoke detection."""

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

CONFIG_ENV_VAR = "IFIRE_CONFIG"

SUPPORTED_EXTS = (".png", ".jpg", ".jpeg", ".bmp", ".gif", ".webp", ".tif", ".tiff")

MERGE_POLICIES = ("envelope", "connected")


@dataclass(frozen=True)
class DetectorConfig:
    """Tuned constants of the color heuristic.

    The thresholds were tuned against the fixed working resolution, so
    ``max_dimension`` and ``grid_size`` should change together with them.
    """
    max_dimension: int = 600
    grid_size: int = 10
    fire_cell_ratio: float = 0.15
    smoke_cell_ratio: float = 0.20
    fire_pixel_percent: float = 1.5
    smoke_pixel_percent: float = 2.0
    fire_score_gain: float = 10.0
    smoke_score_gain: float = 5.0
    fire_score_min: float = 25.0
    smoke_score_min: float = 10.0
    fire_confidence_cap: int = 95
    smoke_confidence_cap: int = 90
    no_fire_confidence_floor: int = 60
    max_boxes: int = 5
    merge_policy: str = "envelope"

    def __post_init__(self):
        if self.max_dimension <= 0:
            raise ValueError("max_dimension must be positive")
        if self.grid_size <= 0:
            raise ValueError("grid_size must be positive")
        if self.merge_policy not in MERGE_POLICIES:
            raise ValueError(f"merge_policy must be one of {MERGE_POLICIES}, got {self.merge_policy!r}")


@dataclass(frozen=True)
class AppConfig:
    """Settings of the dashboard around the detector."""
    detector: DetectorConfig = DetectorConfig()
    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB
    # Fallback hotspot box: center (lat, lon) and full span in degrees.
    fallback_center: Tuple[float, float] = (0.5, 101.0)
    fallback_span: float = 4.0
    auxiliary_model: str = "yolov8n.pt"
    auxiliary_enabled: bool = True
    log_level: str = "INFO"


def _coerce(cls, values: Dict[str, Any]):
    known = {f.name: f for f in fields(cls)}
    unknown = set(values) - set(known)
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} keys: {', '.join(sorted(unknown))}")
    kwargs = {}
    for name, value in values.items():
        default = getattr(cls(), name)
        if isinstance(default, bool):
            if not isinstance(value, bool):
                raise ValueError(f"{name} must be a boolean")
        elif isinstance(default, (int, float)) and not isinstance(default, bool):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be numeric")
            if isinstance(default, int) and not isinstance(value, int):
                raise ValueError(f"{name} must be an integer")
            value = type(default)(value)
        elif isinstance(default, tuple):
            value = tuple(float(v) for v in value)
        kwargs[name] = value
    return replace(cls(), **kwargs)


def load_config(config_file: Optional[Path] = None) -> AppConfig:
    """Load settings from JSON; fall back to defaults.

    Args:
        config_file: Optional JSON path. When omitted, ``IFIRE_CONFIG`` is
            consulted; when neither is set the defaults are returned.

    Returns:
        AppConfig with file values merged over the defaults
    """
    if config_file is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if not env_path:
            return AppConfig()
        config_file = Path(env_path)

    config_file = Path(config_file)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_file}")
    with config_file.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("Config file must contain a JSON object")

    detector_values = data.pop("detector", {})
    if not isinstance(detector_values, dict):
        raise ValueError("'detector' must be a JSON object")
    app = _coerce(AppConfig, data)
    return replace(app, detector=_coerce(DetectorConfig, detector_values))
