"""Rigid transforms between sensor frames.

A `RigidTransform` maps points from a source frame (e.g. the LiDAR) to
a target frame (e.g. the camera optical frame) as `R @ p + t`.  The
transform is only meaningful at or near the timestamp it was looked up
for and is never cached by the pipeline.

Looking a transform up is the job of a *resolver*: any callable
`(source_frame, target_frame, stamp, timeout) -> RigidTransform` that
raises `TransformUnavailable` when it cannot answer.  The
`StaticTransformResolver` below serves fixed, calibrated extrinsics.
"""

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence, Tuple

import numpy as np

from ..errors import TransformUnavailable
from ..preprocessing.spatial_filter import as_points

TransformResolver = Callable[[str, str, float, float], "RigidTransform"]

_ORTHONORMAL_TOL = 1e-6


def quat_to_rotation(qx: float, qy: float, qz: float, qw: float) -> np.ndarray:
    """Convert a quaternion (x, y, z, w) into a 3×3 rotation matrix.

    The quaternion is normalised first; a zero quaternion is rejected.
    """
    n = math.sqrt(qx * qx + qy * qy + qz * qz + qw * qw)
    if n < 1e-12:
        raise ValueError("rotation quaternion must be non-zero")
    qx, qy, qz, qw = qx / n, qy / n, qz / n, qw / n

    xx, yy, zz = qx * qx, qy * qy, qz * qz
    xy, xz, yz = qx * qy, qx * qz, qy * qz
    wx, wy, wz = qw * qx, qw * qy, qw * qz

    return np.array([
        [1 - 2 * (yy + zz), 2 * (xy - wz), 2 * (xz + wy)],
        [2 * (xy + wz), 1 - 2 * (xx + zz), 2 * (yz - wx)],
        [2 * (xz - wy), 2 * (yz + wx), 1 - 2 * (xx + yy)],
    ], dtype=np.float64)


@dataclass(frozen=True, eq=False)
class RigidTransform:
    """Rotation plus translation from `source_frame` to `target_frame`."""

    rotation: np.ndarray
    """3×3 orthonormal rotation matrix."""

    translation: np.ndarray
    """Translation vector of shape (3,)."""

    source_frame: str = ""
    target_frame: str = ""
    stamp: float = 0.0
    """Time (seconds) the transform was resolved for."""

    def __post_init__(self):
        rotation = np.asarray(self.rotation, dtype=np.float64)
        translation = np.asarray(self.translation, dtype=np.float64).reshape(-1)
        if rotation.shape != (3, 3):
            raise ValueError("rotation must be a 3x3 matrix")
        if translation.shape != (3,):
            raise ValueError("translation must have three elements")
        if not np.allclose(rotation @ rotation.T, np.eye(3), atol=_ORTHONORMAL_TOL):
            raise ValueError("rotation must be orthonormal")
        if np.linalg.det(rotation) < 0:
            raise ValueError("rotation must be proper (det = +1), not a reflection")
        # frozen dataclass: bypass __setattr__ to store the normalised arrays
        object.__setattr__(self, "rotation", rotation)
        object.__setattr__(self, "translation", translation)

    @classmethod
    def identity(cls, frame: str = "", stamp: float = 0.0) -> "RigidTransform":
        return cls(np.eye(3), np.zeros(3), frame, frame, stamp)

    @classmethod
    def from_quaternion(
        cls,
        translation: Sequence[float],
        rotation: Sequence[float],
        source_frame: str = "",
        target_frame: str = "",
        stamp: float = 0.0,
    ) -> "RigidTransform":
        """Build a transform from a translation and an (x, y, z, w) quaternion."""
        if len(rotation) != 4:
            raise ValueError("rotation quaternion must have four elements (x, y, z, w)")
        return cls(quat_to_rotation(*rotation), np.asarray(translation, dtype=np.float64),
                   source_frame, target_frame, stamp)

    @classmethod
    def from_matrix(cls, matrix: np.ndarray, source_frame: str = "",
                    target_frame: str = "", stamp: float = 0.0) -> "RigidTransform":
        """Build a transform from a 4×4 homogeneous matrix."""
        m = np.asarray(matrix, dtype=np.float64)
        if m.shape != (4, 4):
            raise ValueError("matrix must be 4x4")
        return cls(m[:3, :3], m[:3, 3], source_frame, target_frame, stamp)

    def as_matrix(self) -> np.ndarray:
        """Return the 4×4 homogeneous matrix of this transform."""
        T = np.eye(4)
        T[:3, :3] = self.rotation
        T[:3, 3] = self.translation
        return T

    def inverse(self) -> "RigidTransform":
        """Return the transform mapping `target_frame` back to `source_frame`."""
        r_inv = self.rotation.T
        return RigidTransform(r_inv, -r_inv @ self.translation,
                              self.target_frame, self.source_frame, self.stamp)

    def compose(self, other: "RigidTransform") -> "RigidTransform":
        """Return `self ∘ other`: apply `other` first, then `self`."""
        if other.target_frame and self.source_frame and other.target_frame != self.source_frame:
            raise ValueError(
                f"cannot chain {other.source_frame}->{other.target_frame} "
                f"with {self.source_frame}->{self.target_frame}"
            )
        return RigidTransform(
            self.rotation @ other.rotation,
            self.rotation @ other.translation + self.translation,
            other.source_frame,
            self.target_frame,
            self.stamp,
        )

    def apply(self, points: np.ndarray) -> np.ndarray:
        """Transform an `(N, 3)` array of points; see `transform_points`."""
        return transform_points(points, self)


def transform_points(points: np.ndarray, transform: RigidTransform) -> np.ndarray:
    """Apply a rigid transform to a set of points.

    Parameters
    ----------
    points : numpy.ndarray
        Array of shape (N, 3) in the transform's source frame.
    transform : RigidTransform
        Transform into the target frame.

    Returns
    -------
    numpy.ndarray
        New `(N, 3)` array, `R @ p + t` for every row, order preserved.
    """
    coords = as_points(points)
    return coords.dot(transform.rotation.T) + transform.translation


@dataclass
class StaticTransformResolver:
    """Resolve transforms from a fixed set of calibrated extrinsics.

    Each registered transform can be looked up in its own direction and
    inverted on the fly.  Asking for a frame to itself yields the
    identity.  Static extrinsics are valid at every timestamp, so the
    returned transform is stamped with the requested time.
    """

    transforms: Dict[Tuple[str, str], RigidTransform] = field(default_factory=dict)
    """Known transforms keyed by `(source_frame, target_frame)`."""

    def add(self, transform: RigidTransform) -> None:
        if not transform.source_frame or not transform.target_frame:
            raise ValueError("static transforms need both a source and a target frame")
        self.transforms[(transform.source_frame, transform.target_frame)] = transform

    @classmethod
    def from_config(cls, config) -> "StaticTransformResolver":
        """Register the configured LiDAR to camera extrinsics, if any."""
        resolver = cls()
        ext = config.extrinsics
        if ext is not None:
            resolver.add(RigidTransform.from_quaternion(
                ext.translation, ext.rotation, config.lidar_frame, config.camera_frame))
        return resolver

    def lookup(self, source_frame: str, target_frame: str) -> Optional[RigidTransform]:
        if source_frame == target_frame:
            return RigidTransform.identity(source_frame)
        direct = self.transforms.get((source_frame, target_frame))
        if direct is not None:
            return direct
        reverse = self.transforms.get((target_frame, source_frame))
        if reverse is not None:
            return reverse.inverse()
        return None

    def __call__(self, source_frame: str, target_frame: str,
                 stamp: float, timeout: float = 0.0) -> RigidTransform:
        found = self.lookup(source_frame, target_frame)
        if found is None:
            raise TransformUnavailable(source_frame, target_frame, "no static transform registered")
        return RigidTransform(found.rotation, found.translation, source_frame, target_frame, stamp)
