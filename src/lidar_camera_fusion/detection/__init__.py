"""2D detection handling.

Converts detector output into validated pixel-space bounding boxes
that the association stage can join against projected LiDAR points.
"""

from .registry import (
    BoundingBox,
    DetectionRecord,
    DetectionRegistry,
    parse_detection_id,
    register_detections,
)

__all__ = [
    "BoundingBox",
    "DetectionRecord",
    "DetectionRegistry",
    "parse_detection_id",
    "register_detections",
]
