"""Preprocessing package.

Prepares raw range scans for fusion.  Currently this is the
pass-through crop that limits the scan to the region of interest
before the points are moved into the camera frame.
"""

from .spatial_filter import SpatialFilter, crop_box, as_points

__all__ = [
    "SpatialFilter",
    "crop_box",
    "as_points",
]
