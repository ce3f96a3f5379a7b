"""Frame-level fusion of LiDAR points and 2D detections.

The pipeline ties the preprocessing, detection and mapping stages
together and produces one `FusionResult` per synchronised frame.
"""

from .pipeline import FusionPipeline, FrameOutput, PointScan, fuse_frame
from .result import FusionResult, Pose, export_result
from .overlay import draw_points, render_overlay, to_bgr8

__all__ = [
    "FusionPipeline",
    "FrameOutput",
    "PointScan",
    "fuse_frame",
    "FusionResult",
    "Pose",
    "export_result",
    "draw_points",
    "render_overlay",
    "to_bgr8",
]
