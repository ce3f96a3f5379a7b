"""Fusion of LiDAR range points with 2D camera detections.

Given one synchronised frame (detections, image, range scan) the
pipeline estimates a 3D centroid and collects the supporting LiDAR
points for every detected object.
"""

from .errors import (
    DetectionIdentifierInvalid,
    FusionError,
    ImageDecodeFailure,
    IntrinsicsUnavailable,
    TransformUnavailable,
)
from .fusion import FusionPipeline, FusionResult, PointScan, fuse_frame
from .mapping import CameraIntrinsics, RigidTransform, StaticTransformResolver
from .detection import BoundingBox, DetectionRecord, DetectionRegistry
from .preprocessing import SpatialFilter
from .utils import FusionConfig

__version__ = "0.1.0"

__all__ = [
    "DetectionIdentifierInvalid",
    "FusionError",
    "ImageDecodeFailure",
    "IntrinsicsUnavailable",
    "TransformUnavailable",
    "FusionPipeline",
    "FusionResult",
    "PointScan",
    "fuse_frame",
    "CameraIntrinsics",
    "RigidTransform",
    "StaticTransformResolver",
    "BoundingBox",
    "DetectionRecord",
    "DetectionRegistry",
    "SpatialFilter",
    "FusionConfig",
]
