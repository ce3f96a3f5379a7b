from pathlib import Path

import laspy
import numpy as np
import pandas as pd


def load_laz_points(path):
    path = Path(path)
    with laspy.open(path) as f:
        las = f.read()

    return np.column_stack([
        np.asarray(las.x, dtype=np.float64),
        np.asarray(las.y, dtype=np.float64),
        np.asarray(las.z, dtype=np.float64),
    ])


def load_points(path):
    """Read an (N, 3) XYZ array from .npy, .csv, .las or .laz."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in (".las", ".laz"):
        return load_laz_points(path)
    if suffix == ".npy":
        pts = np.load(path)
    elif suffix == ".csv":
        df = pd.read_csv(path)
        missing = {"x", "y", "z"} - set(df.columns)
        if missing:
            raise ValueError(f"{path} is missing columns: {', '.join(sorted(missing))}")
        pts = df[["x", "y", "z"]].to_numpy(dtype=np.float64)
    else:
        raise ValueError(f"unsupported point file format: {suffix}")

    pts = np.asarray(pts, dtype=np.float64)
    if pts.ndim != 2 or pts.shape[1] < 3:
        raise ValueError(f"{path} must hold an (N, 3) array, got {pts.shape}")
    return pts[:, :3]
