"""Demo script for the fusion pipeline with synthetic data.

Builds a LiDAR scan with two box-shaped objects in front of the sensor,
projects the object points to get matching 2D detections, runs one fusion
frame and writes the object tables and an overlay image.

Usage:
    python examples/demo_fusion_pipeline.py [output_dir]
"""

import sys
from pathlib import Path

import cv2
import numpy as np

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lidar_camera_fusion import CameraIntrinsics, FusionConfig, FusionPipeline, PointScan
from lidar_camera_fusion.fusion import export_result
from lidar_camera_fusion.mapping import RigidTransform, transform_points
from lidar_camera_fusion.utils import ExtrinsicsConfig


def create_synthetic_scan(n_ground: int = 20000, seed: int = 0) -> np.ndarray:
    """Create a LiDAR-frame scan (x forward, y left, z up).

    The scan holds a flat ground patch and two objects: a car-sized
    block 8 m ahead and slightly left, and a pedestrian-sized column
    5 m ahead and to the right.

    Parameters
    ----------
    n_ground : int
        Number of ground points.
    seed : int
        Random seed.

    Returns
    -------
    np.ndarray
        `(N, 3)` points.
    """
    rng = np.random.default_rng(seed)
    ground = np.column_stack([
        rng.uniform(1.0, 15.0, n_ground),
        rng.uniform(-8.0, 8.0, n_ground),
        np.full(n_ground, -1.5) + rng.normal(0.0, 0.02, n_ground),
    ])
    car = np.column_stack([
        rng.uniform(7.5, 9.5, 1500),
        rng.uniform(0.5, 2.3, 1500),
        rng.uniform(-1.4, 0.0, 1500),
    ])
    person = np.column_stack([
        rng.uniform(4.8, 5.2, 400),
        rng.uniform(-1.7, -1.3, 400),
        rng.uniform(-1.4, 0.3, 400),
    ])
    return np.vstack([ground, car, person])


def detection_from_points(points, config, intrinsics, obj_id, class_name):
    """Tight 2D box around the projection of `points`, as a detector would report."""
    rotation = config.extrinsics.rotation
    transform = RigidTransform.from_quaternion((0.0, 0.0, 0.0), rotation)
    cam = transform_points(points, transform)
    u = cam[:, 0] / cam[:, 2] * intrinsics.fx + intrinsics.cx
    v = cam[:, 1] / cam[:, 2] * intrinsics.fy + intrinsics.cy
    return {
        "id": str(obj_id),
        "class_name": class_name,
        "score": 0.9,
        "center": [(u.min() + u.max()) / 2, (v.min() + v.max()) / 2],
        "size": [u.max() - u.min(), v.max() - v.min()],
    }


def main():
    output_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("demo_output")

    config = FusionConfig(
        lidar_frame="lidar",
        camera_frame="camera",
        extrinsics=ExtrinsicsConfig(rotation=(0.5, -0.5, 0.5, 0.5)),
    )
    intrinsics = CameraIntrinsics(fx=600.0, fy=600.0, cx=640.0, cy=360.0, width=1280, height=720)

    points = create_synthetic_scan()
    print(f"Synthetic scan: {len(points):,} points")

    car = points[(points[:, 0] > 7.4) & (points[:, 2] > -1.45)]
    person = points[(points[:, 0] < 5.3) & (points[:, 0] > 4.7) & (points[:, 2] > -1.45)]
    detections = [
        detection_from_points(car, config, intrinsics, 1, "car"),
        detection_from_points(person, config, intrinsics, 2, "person"),
        {"id": "not-a-number", "center": [100, 100], "size": [20, 20]},
    ]

    pipeline = FusionPipeline(config)
    pipeline.update_intrinsics(intrinsics)
    image = np.full((intrinsics.height, intrinsics.width, 3), 40, dtype=np.uint8)

    output = pipeline.process_frame(detections, PointScan(points, "lidar", 0.0), image=image)
    if output is None:
        print("Frame skipped")
        return 1

    for pose, (obj_id, subset) in zip(output.result.poses, output.result.point_subsets):
        x, y, z = pose.position
        print(f"  object {obj_id}: {len(subset):5d} points, centroid ({x:.2f}, {y:.2f}, {z:.2f})")

    objects_path, points_path = export_result(output.result, output_dir)
    cv2.imwrite(str(output_dir / "overlay.png"), output.overlay)
    print(f"Results written to {objects_path.parent}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
