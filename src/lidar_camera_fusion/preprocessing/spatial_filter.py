"""Pass-through filtering of raw LiDAR points.

This module crops a point cloud to an axis-aligned keep-box before it
is transformed into the camera frame.  The three axis tests are
independent and conjunctive, so the order in which they are applied
does not change the result.

The point cloud is assumed to be stored in an `(N, 3)` array holding
XYZ coordinates.  Besides the surviving points the filter returns the
index of every survivor in the unfiltered input, so that fused objects
can later be traced back to the raw scan.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np


def as_points(points, name: str = "points") -> np.ndarray:
    """Return `points` as a float64 `(N, 3)` array.

    An empty sequence is accepted and yields a `(0, 3)` array.
    """
    arr = np.asarray(points, dtype=np.float64)
    if arr.size == 0:
        return np.empty((0, 3), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"{name} must have shape (N, 3), got {arr.shape}")
    return arr


def crop_box(
    points: np.ndarray,
    bounds: Tuple[float, float, float, float, float, float],
) -> Tuple[np.ndarray, np.ndarray]:
    """Keep the points inside an axis-aligned box.

    Parameters
    ----------
    points : numpy.ndarray
        Array of shape (N, 3) with XYZ coordinates.
    bounds : tuple of float
        `(min_x, max_x, min_y, max_y, min_z, max_z)`.  Both ends are
        inclusive.

    Returns
    -------
    tuple of numpy.ndarray
        The surviving points (a new array, input order preserved) and
        their indices in `points`.
    """
    coords = as_points(points)
    min_x, max_x, min_y, max_y, min_z, max_z = bounds
    x = coords[:, 0]
    y = coords[:, 1]
    z = coords[:, 2]
    # NaN coordinates fail every comparison and are dropped here
    mask = (
        (x >= min_x) & (x <= max_x)
        & (y >= min_y) & (y <= max_y)
        & (z >= min_z) & (z <= max_z)
    )
    indices = np.nonzero(mask)[0]
    return coords[indices].copy(), indices


@dataclass(frozen=True)
class SpatialFilter:
    """Crop LiDAR points to a keep-box given in the sensor frame."""

    min_x: float = -10.0
    max_x: float = 10.0
    min_y: float = -10.0
    max_y: float = 10.0
    min_z: float = -2.0
    max_z: float = 2.0

    def __post_init__(self):
        for axis in ("x", "y", "z"):
            if getattr(self, f"min_{axis}") > getattr(self, f"max_{axis}"):
                raise ValueError(f"min_{axis} must not exceed max_{axis}")

    @classmethod
    def from_config(cls, config) -> "SpatialFilter":
        """Build the filter from a `FusionConfig`."""
        return cls(*config.bounds)

    @property
    def bounds(self) -> Tuple[float, float, float, float, float, float]:
        return (self.min_x, self.max_x, self.min_y, self.max_y, self.min_z, self.max_z)

    def apply(self, points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Filter `points`; see `crop_box` for the return value."""
        return crop_box(points, self.bounds)
