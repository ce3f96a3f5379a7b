"""Pinhole projection of camera-frame points onto the image plane.

`PerspectiveProjector` maps 3D points expressed in the camera optical
frame (x right, y down, z forward) to integer pixel coordinates using
the focal lengths and principal point of `CameraIntrinsics`.  Points
that cannot land on the sensor are discarded: points on or behind the
camera plane, points with non-finite coordinates, and points whose
pixel falls outside the image.

Pixel coordinates are truncated toward zero, so a point projecting to
u = -0.4 lands on column 0 rather than being rejected.
"""

from dataclasses import dataclass
from typing import Iterator, NamedTuple, Sequence

import numpy as np

from ..preprocessing.spatial_filter import as_points


@dataclass(frozen=True)
class CameraIntrinsics:
    """Pinhole intrinsics and image size of the camera."""

    fx: float
    fy: float
    """Focal lengths in pixels."""

    cx: float
    cy: float
    """Principal point in pixels."""

    width: int
    height: int
    """Image size in pixels."""

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError("image width and height must be positive")
        if self.fx == 0 or self.fy == 0:
            raise ValueError("focal lengths must be non-zero")

    @classmethod
    def from_camera_info(cls, k: Sequence[float], width: int, height: int) -> "CameraIntrinsics":
        """Build intrinsics from a row-major 3×3 camera matrix `K`."""
        k = np.asarray(k, dtype=np.float64).reshape(-1)
        if k.shape != (9,):
            raise ValueError("K must contain nine elements (row-major 3x3)")
        return cls(fx=float(k[0]), fy=float(k[4]), cx=float(k[2]), cy=float(k[5]),
                   width=int(width), height=int(height))

    @property
    def matrix(self) -> np.ndarray:
        return np.array([[self.fx, 0.0, self.cx],
                         [0.0, self.fy, self.cy],
                         [0.0, 0.0, 1.0]])


class ProjectedPoint(NamedTuple):
    u: int
    v: int
    x: float
    y: float
    z: float
    source_index: int


@dataclass(frozen=True, eq=False)
class ProjectedPoints:
    """Columnar store of points that landed on the image."""

    pixels: np.ndarray
    """Integer `(N, 2)` array of (u, v) pixel coordinates."""

    points: np.ndarray
    """`(N, 3)` camera-frame coordinates, every z > 0."""

    indices: np.ndarray
    """`(N,)` index of each point in the unfiltered scan."""

    @classmethod
    def empty(cls) -> "ProjectedPoints":
        return cls(np.empty((0, 2), dtype=np.int64),
                   np.empty((0, 3), dtype=np.float64),
                   np.empty(0, dtype=np.int64))

    @property
    def u(self) -> np.ndarray:
        return self.pixels[:, 0]

    @property
    def v(self) -> np.ndarray:
        return self.pixels[:, 1]

    def __len__(self) -> int:
        return len(self.pixels)

    def __iter__(self) -> Iterator[ProjectedPoint]:
        for (u, v), (x, y, z), idx in zip(self.pixels, self.points, self.indices):
            yield ProjectedPoint(int(u), int(v), float(x), float(y), float(z), int(idx))


@dataclass(frozen=True)
class PerspectiveProjector:
    """Project camera-frame points with a pinhole model."""

    intrinsics: CameraIntrinsics

    def project(self, points: np.ndarray, indices: np.ndarray = None) -> ProjectedPoints:
        """Project points onto the image plane.

        Parameters
        ----------
        points : numpy.ndarray
            Array of shape (N, 3) in the camera optical frame.
        indices : numpy.ndarray, optional
            Provenance index of every input row.  Defaults to
            `arange(N)`.

        Returns
        -------
        ProjectedPoints
            The points that land on the image, in input order.
        """
        coords = as_points(points)
        if indices is None:
            indices = np.arange(len(coords))
        indices = np.asarray(indices, dtype=np.int64)
        if len(indices) != len(coords):
            raise ValueError("indices must have one entry per point")
        if len(coords) == 0:
            return ProjectedPoints.empty()

        intr = self.intrinsics
        x = coords[:, 0]
        y = coords[:, 1]
        z = coords[:, 2]
        # Prevent division by zero or projecting points behind the camera
        front = np.isfinite(coords).all(axis=1) & (z > 0)
        if not np.any(front):
            return ProjectedPoints.empty()

        x, y, z = x[front], y[front], z[front]
        u_f = (x / z) * intr.fx + intr.cx
        v_f = (y / z) * intr.fy + intr.cy
        # Guard the integer cast against overflow for points grazing the camera plane
        limit = float(np.iinfo(np.int32).max)
        finite = (np.abs(u_f) < limit) & (np.abs(v_f) < limit)
        u = np.trunc(np.where(finite, u_f, -1.0)).astype(np.int64)
        v = np.trunc(np.where(finite, v_f, -1.0)).astype(np.int64)

        on_image = finite & (u >= 0) & (u < intr.width) & (v >= 0) & (v < intr.height)
        keep = np.nonzero(front)[0][on_image]
        return ProjectedPoints(
            pixels=np.column_stack([u[on_image], v[on_image]]),
            points=coords[keep].copy(),
            indices=indices[keep],
        )
