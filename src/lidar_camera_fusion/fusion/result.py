"""Fusion output types and their tabular export.

A `FusionResult` holds the fused objects of one frame.  Its `poses` and
`point_subsets` views correspond to the two messages the fusion node
publishes (object positions and per-object point clouds), and
`matched_pixels` is what an overlay renderer draws.

Results can be flattened into pandas DataFrames and written to Parquet
for offline inspection.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, NamedTuple, Tuple

import numpy as np
import pandas as pd

from ..mapping.aggregation import FusedObject

IDENTITY_ORIENTATION = (0.0, 0.0, 0.0, 1.0)


class Pose(NamedTuple):
    position: Tuple[float, float, float]
    # quaternion (x, y, z, w)
    orientation: Tuple[float, float, float, float] = IDENTITY_ORIENTATION


@dataclass(frozen=True, eq=False)
class FusionResult:
    """Fused objects of one frame, expressed in `frame_id`."""

    stamp: float
    frame_id: str
    objects: List[FusedObject] = field(default_factory=list)
    matched_pixels: np.ndarray = field(default_factory=lambda: np.empty((0, 2), dtype=np.int64))
    """Pixels of every point-box match, for rendering."""

    @property
    def poses(self) -> List[Pose]:
        """Centroid pose of every object, identity orientation."""
        return [Pose(tuple(float(c) for c in obj.centroid)) for obj in self.objects]

    @property
    def point_subsets(self) -> List[Tuple[int, np.ndarray]]:
        """`(id, points)` for every object, in box order."""
        return [(obj.id, obj.points) for obj in self.objects]

    def __len__(self) -> int:
        return len(self.objects)

    def to_records(self) -> List[Dict]:
        """One dictionary per object (without the point arrays)."""
        records = []
        for obj in self.objects:
            records.append({
                "id": obj.id,
                "class_name": obj.box.class_name,
                "score": obj.box.score,
                "x": float(obj.centroid[0]),
                "y": float(obj.centroid[1]),
                "z": float(obj.centroid[2]),
                "point_count": obj.count,
                "stamp": self.stamp,
                "frame_id": self.frame_id,
            })
        return records

    def to_dataframe(self) -> pd.DataFrame:
        """Object table: one row per fused object."""
        columns = ["id", "class_name", "score", "x", "y", "z", "point_count", "stamp", "frame_id"]
        return pd.DataFrame(self.to_records(), columns=columns)

    def points_dataframe(self) -> pd.DataFrame:
        """Point table: one row per member point of every object.

        A point inside two boxes appears once for each box.
        """
        frames = []
        for obj in self.objects:
            df = pd.DataFrame(obj.points, columns=["x", "y", "z"])
            df.insert(0, "id", obj.id)
            df["source_index"] = obj.source_indices
            frames.append(df)
        if not frames:
            return pd.DataFrame(columns=["id", "x", "y", "z", "source_index"])
        return pd.concat(frames, ignore_index=True)


def export_result(result: FusionResult, output_dir: Path) -> Tuple[Path, Path]:
    """Write a result to Parquet.

    Parameters
    ----------
    result : FusionResult
        Result to export.
    output_dir : Path
        Directory where `objects.parquet` and `object_points.parquet`
        are written.  Created if missing.

    Returns
    -------
    tuple of Path
        Paths of the object table and the point table.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    objects_path = output_dir / "objects.parquet"
    points_path = output_dir / "object_points.parquet"
    result.to_dataframe().to_parquet(objects_path, index=False)
    result.points_dataframe().to_parquet(points_path, index=False)
    return objects_path, points_path
