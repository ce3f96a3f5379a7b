"""Per-object aggregation of associated points.

The `Aggregator` keeps one accumulator slot per bounding box, indexed
by the box's position in the frame: a running sum of (x, y, z), a point
count and the growing list of member points.  The centroid is the sum
divided by the count, computed once when the frame is finalised.  Boxes
that never received a point produce no object at all.
"""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from ..detection.registry import BoundingBox
from ..preprocessing.spatial_filter import as_points


@dataclass(frozen=True, eq=False)
class FusedObject:
    """A detection together with its LiDAR support."""

    box: BoundingBox
    centroid: np.ndarray
    """Mean (x, y, z) of the member points in the camera frame."""

    points: np.ndarray
    """`(N, 3)` member points, association order."""

    source_indices: np.ndarray
    """Index of every member point in the unfiltered scan."""

    @property
    def id(self) -> int:
        return self.box.id

    @property
    def count(self) -> int:
        return len(self.points)


class Aggregator:
    """Accumulate associated points per box for one frame."""

    def __init__(self, boxes: Sequence[BoundingBox]):
        self.boxes = list(boxes)
        n = len(self.boxes)
        self.sums = np.zeros((n, 3), dtype=np.float64)
        self.counts = np.zeros(n, dtype=np.int64)
        self._points: List[List[np.ndarray]] = [[] for _ in range(n)]
        self._indices: List[List[np.ndarray]] = [[] for _ in range(n)]

    def add(self, slot: int, points: np.ndarray, source_indices: np.ndarray = None) -> None:
        """Add a block of points to the accumulator of box `slot`."""
        coords = as_points(points)
        if len(coords) == 0:
            return
        if source_indices is None:
            source_indices = np.full(len(coords), -1, dtype=np.int64)
        source_indices = np.asarray(source_indices, dtype=np.int64)
        if len(source_indices) != len(coords):
            raise ValueError("source_indices must have one entry per point")
        self.sums[slot] += coords.sum(axis=0)
        self.counts[slot] += len(coords)
        self._points[slot].append(coords)
        self._indices[slot].append(source_indices)

    def finalize(self) -> List[FusedObject]:
        """Return one `FusedObject` per box that received points, in box order."""
        objects: List[FusedObject] = []
        for slot, box in enumerate(self.boxes):
            count = int(self.counts[slot])
            if count == 0:
                continue
            objects.append(FusedObject(
                box=box,
                centroid=self.sums[slot] / count,
                points=np.vstack(self._points[slot]),
                source_indices=np.concatenate(self._indices[slot]),
            ))
        return objects
