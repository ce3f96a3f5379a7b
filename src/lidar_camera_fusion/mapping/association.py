"""Association of projected LiDAR points with 2D detection boxes.

Every projected point is tested against every box with inclusive bounds
on both axes.  The join is many-to-many: boxes may overlap and a point
inside several boxes is recorded once per box.  The test is vectorised
over points with numpy, one box at a time.
"""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from ..detection.registry import BoundingBox
from .projection import ProjectedPoints


@dataclass(frozen=True, eq=False)
class Association:
    """Result of joining projected points with boxes."""

    matches: List[np.ndarray]
    """Per box (same order as the boxes), the row indices of the matched
    projected points in point order."""

    matched_pixels: np.ndarray
    """`(M, 2)` pixels of every (point, box) match, point-major: a point
    inside two boxes appears twice, its box matches in box order."""

    def counts(self) -> np.ndarray:
        return np.array([len(m) for m in self.matches], dtype=np.int64)


def association_mask(projected: ProjectedPoints, boxes: Sequence[BoundingBox]) -> np.ndarray:
    """Return the `(P, B)` boolean matrix of point-in-box tests."""
    mask = np.zeros((len(projected), len(boxes)), dtype=bool)
    if len(projected) == 0:
        return mask
    u = projected.u
    v = projected.v
    for j, box in enumerate(boxes):
        mask[:, j] = (u >= box.x_min) & (u <= box.x_max) & (v >= box.y_min) & (v <= box.y_max)
    return mask


@dataclass
class PointBoxAssociator:
    """Join projected points with bounding boxes."""

    def associate(self, projected: ProjectedPoints, boxes: Sequence[BoundingBox]) -> Association:
        """Find, for every box, the projected points that fall inside it.

        Parameters
        ----------
        projected : ProjectedPoints
            Points that landed on the image.
        boxes : sequence of BoundingBox
            Validated boxes of the same frame.

        Returns
        -------
        Association
            Per-box matches and the matched pixels for rendering.
        """
        mask = association_mask(projected, boxes)
        matches = [np.nonzero(mask[:, j])[0] for j in range(len(boxes))]
        rows, _ = np.nonzero(mask)
        if len(rows):
            matched_pixels = projected.pixels[rows]
        else:
            matched_pixels = np.empty((0, 2), dtype=np.int64)
        return Association(matches=matches, matched_pixels=matched_pixels)
