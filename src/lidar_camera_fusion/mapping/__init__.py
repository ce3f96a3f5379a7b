"""Mapping between LiDAR points and the camera image.

This package moves points into the camera frame, projects them onto
the image plane, joins them with 2D detection boxes and aggregates the
matches into per-object centroids.
"""

from .rigid_transform import (
    RigidTransform,
    StaticTransformResolver,
    TransformResolver,
    quat_to_rotation,
    transform_points,
)
from .projection import CameraIntrinsics, PerspectiveProjector, ProjectedPoint, ProjectedPoints
from .association import Association, PointBoxAssociator, association_mask
from .aggregation import Aggregator, FusedObject

__all__ = [
    "RigidTransform",
    "StaticTransformResolver",
    "TransformResolver",
    "quat_to_rotation",
    "transform_points",
    "CameraIntrinsics",
    "PerspectiveProjector",
    "ProjectedPoint",
    "ProjectedPoints",
    "Association",
    "PointBoxAssociator",
    "association_mask",
    "Aggregator",
    "FusedObject",
]
