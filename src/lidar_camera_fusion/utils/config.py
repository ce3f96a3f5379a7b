"""Configuration loader.

Reads fusion settings from YAML files and turns them into a
`FusionConfig`.  The recognised keys mirror the parameters of the
LiDAR/camera fusion node: the pass-through filter bounds, the frame
names used for the transform lookup and a few rendering and lookup
options.  A commented example lives in `configs/fusion.yaml` at the
project root.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

import yaml

from .logging import get_logger

logger = get_logger(__name__)


def load_config(path: str) -> Dict[str, Any]:
    """Load a YAML configuration file into a dictionary.

    Parameters
    ----------
    path : str
        Path to the YAML configuration file.

    Returns
    -------
    dict
        Parsed configuration dictionary.  Returns an empty dict if the
        file does not exist or is empty.
    """
    cfg_path = Path(path)
    if not cfg_path.is_file():
        logger.warning("Config file %s not found, using defaults", cfg_path)
        return {}
    with open(cfg_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"config file {cfg_path} must contain a mapping at top level")
    return data


@dataclass
class ExtrinsicsConfig:
    """Static LiDAR to camera transform as stored in the config file."""

    translation: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    """Translation (x, y, z) in metres, expressed in the camera frame."""

    rotation: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)
    """Rotation quaternion (qx, qy, qz, qw)."""


@dataclass
class FusionConfig:
    """Parameters of the fusion pipeline."""

    min_x: float = -10.0
    max_x: float = 10.0
    min_y: float = -10.0
    max_y: float = 10.0
    min_z: float = -2.0
    max_z: float = 2.0
    """Pass-through filter bounds in the LiDAR frame (metres)."""

    lidar_frame: str = "lidar_frame"
    """Default source frame name when a scan carries none."""

    camera_frame: str = "camera_frame"
    """Target frame of the transform lookup and of every output."""

    transform_timeout: float = 1.0
    """Seconds the transform resolver may block per frame."""

    enforce_unique_ids: bool = False
    """Reject detections whose id repeats an earlier one in the frame."""

    overlay_radius: int = 5
    overlay_color: Tuple[int, int, int] = (0, 0, 255)
    """Circle radius (pixels) and BGR colour of matched points in the overlay."""

    extrinsics: Optional[ExtrinsicsConfig] = None
    """Static LiDAR to camera transform, if one is configured."""

    extra: Dict[str, Any] = field(default_factory=dict)
    """Unrecognised keys, kept for callers that extend the config."""

    def __post_init__(self):
        for axis in ("x", "y", "z"):
            lo = getattr(self, f"min_{axis}")
            hi = getattr(self, f"max_{axis}")
            if lo > hi:
                raise ValueError(f"min_{axis} ({lo}) must not exceed max_{axis} ({hi})")
        if self.transform_timeout < 0:
            raise ValueError("transform_timeout must be non-negative")

    @property
    def bounds(self) -> Tuple[float, float, float, float, float, float]:
        """Filter bounds as (min_x, max_x, min_y, max_y, min_z, max_z)."""
        return (self.min_x, self.max_x, self.min_y, self.max_y, self.min_z, self.max_z)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FusionConfig":
        """Build a config from a parsed YAML mapping.

        Unknown keys are collected in `extra` and reported once.
        """
        known = {f.name for f in fields(cls)} - {"extra"}
        kwargs: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in data.items():
            if key in known:
                kwargs[key] = value
            else:
                extra[key] = value
        if extra:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(extra)))

        for name in ("min_x", "max_x", "min_y", "max_y", "min_z", "max_z", "transform_timeout"):
            if name in kwargs:
                kwargs[name] = float(kwargs[name])
        if "overlay_color" in kwargs:
            kwargs["overlay_color"] = _as_tuple(kwargs["overlay_color"], 3, "overlay_color", int)
        if kwargs.get("extrinsics") is not None:
            ext = kwargs["extrinsics"]
            kwargs["extrinsics"] = ExtrinsicsConfig(
                translation=_as_tuple(ext.get("translation", (0.0, 0.0, 0.0)), 3, "extrinsics.translation"),
                rotation=_as_tuple(ext.get("rotation", (0.0, 0.0, 0.0, 1.0)), 4, "extrinsics.rotation"),
            )
        return cls(extra=extra, **kwargs)

    @classmethod
    def from_yaml(cls, path: str) -> "FusionConfig":
        """Load a config from a YAML file; missing files give the defaults."""
        return cls.from_dict(load_config(path))


def _as_tuple(values: Sequence[Any], length: int, name: str, cast=float) -> tuple:
    if len(values) != length:
        raise ValueError(f"{name} must have {length} elements, got {len(values)}")
    return tuple(cast(v) for v in values)
