"""LiDAR/camera object fusion pipeline.

This module orchestrates one fusion frame: the range scan is cropped,
moved into the camera frame and projected onto the image; the 2D
detections are turned into bounding boxes; projected points are joined
with the boxes and aggregated into one centroid and point subset per
object.

`fuse_frame` is the stateless core.  `FusionPipeline` wraps it with the
frame-boundary policy: it keeps the latest camera intrinsics, looks up
the LiDAR to camera transform and skips a frame (logging why) when
either is unavailable.

Usage:
    python -m lidar_camera_fusion.fusion.pipeline --points scan.npy \
        --detections detections.json --camera-info camera.yaml \
        --config configs/fusion.yaml --output out/
"""

import argparse
import json
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import cv2
import numpy as np

from ..common.lidar_io import load_points
from ..detection.registry import BoundingBox, DetectionLike, DetectionRecord, DetectionRegistry
from ..errors import ImageDecodeFailure, IntrinsicsUnavailable, TransformUnavailable
from ..mapping.aggregation import Aggregator
from ..mapping.association import PointBoxAssociator
from ..mapping.projection import CameraIntrinsics, PerspectiveProjector
from ..mapping.rigid_transform import (
    RigidTransform,
    StaticTransformResolver,
    TransformResolver,
    transform_points,
)
from ..preprocessing.spatial_filter import SpatialFilter, as_points
from ..utils.config import FusionConfig, load_config
from ..utils.logging import get_logger
from .overlay import render_overlay
from .result import FusionResult, export_result

logger = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class PointScan:
    """A range scan: XYZ points in `frame_id`, captured at `stamp`."""

    points: np.ndarray
    frame_id: str = ""
    stamp: float = 0.0


@dataclass(frozen=True, eq=False)
class FrameOutput:
    """Everything produced for one frame."""

    result: FusionResult
    overlay: Optional[np.ndarray] = None
    """BGR8 image with matched points drawn, if an image was supplied
    and could be decoded."""


def fuse_frame(
    boxes: Sequence[BoundingBox],
    points: np.ndarray,
    intrinsics: CameraIntrinsics,
    transform: RigidTransform,
    spatial_filter: Optional[SpatialFilter] = None,
    stamp: Optional[float] = None,
) -> FusionResult:
    """Fuse one frame of LiDAR points with validated detection boxes.

    Parameters
    ----------
    boxes : sequence of BoundingBox
        Detection boxes of the frame (see `DetectionRegistry`).
    points : numpy.ndarray
        Raw `(N, 3)` scan in the transform's source frame.
    intrinsics : CameraIntrinsics
        Camera model used for projection.
    transform : RigidTransform
        LiDAR to camera transform valid for this frame.
    spatial_filter : SpatialFilter, optional
        Keep-box applied before the transform.  Defaults to the
        standard ±10 m / ±10 m / ±2 m box.
    stamp : float, optional
        Frame time.  Defaults to the transform's stamp.

    Returns
    -------
    FusionResult
        Objects with at least one point, in box order, expressed in the
        transform's target frame.
    """
    if spatial_filter is None:
        spatial_filter = SpatialFilter()
    raw = as_points(points)
    filtered, indices = spatial_filter.apply(raw)
    logger.debug("Spatial filter: %d/%d points retained", len(filtered), len(raw))

    camera_points = transform_points(filtered, transform)
    projected = PerspectiveProjector(intrinsics).project(camera_points, indices)
    logger.debug("Projection: %d/%d points on the image", len(projected), len(camera_points))

    association = PointBoxAssociator().associate(projected, boxes)
    aggregator = Aggregator(boxes)
    for slot, rows in enumerate(association.matches):
        aggregator.add(slot, projected.points[rows], projected.indices[rows])
    objects = aggregator.finalize()
    logger.debug("Association: %d/%d boxes received points", len(objects), len(boxes))

    return FusionResult(
        stamp=transform.stamp if stamp is None else stamp,
        frame_id=transform.target_frame,
        objects=objects,
        matched_pixels=association.matched_pixels,
    )


class FusionPipeline:
    """Frame-by-frame LiDAR/camera fusion.

    The only state kept across frames is the most recent camera
    intrinsics.  It may be updated from another thread while frames are
    processed; each frame reads one consistent snapshot at its start.
    """

    def __init__(
        self,
        config: Optional[FusionConfig] = None,
        resolver: Optional[TransformResolver] = None,
    ):
        """Initialize the pipeline.

        Parameters
        ----------
        config : FusionConfig, optional
            Pipeline parameters; defaults are used if omitted.
        resolver : callable, optional
            Transform resolver `(source, target, stamp, timeout)`.
            Defaults to a `StaticTransformResolver` built from the
            config's extrinsics.
        """
        self.config = config if config is not None else FusionConfig()
        self.spatial_filter = SpatialFilter.from_config(self.config)
        self.registry = DetectionRegistry(unique_ids=self.config.enforce_unique_ids)
        self.resolver = resolver if resolver is not None else StaticTransformResolver.from_config(self.config)

        self._intrinsics: Optional[CameraIntrinsics] = None
        self._intrinsics_lock = threading.Lock()

    def update_intrinsics(self, intrinsics: CameraIntrinsics) -> None:
        """Store new camera intrinsics, superseding any previous ones."""
        with self._intrinsics_lock:
            self._intrinsics = intrinsics

    @property
    def intrinsics(self) -> Optional[CameraIntrinsics]:
        with self._intrinsics_lock:
            return self._intrinsics

    def resolve_transform(self, source_frame: str, stamp: float) -> RigidTransform:
        """Look up the transform from `source_frame` to the camera frame.

        Timeouts and lookup errors of the resolver are reported as
        `TransformUnavailable`.
        """
        target_frame = self.config.camera_frame
        try:
            transform = self.resolver(source_frame, target_frame, stamp, self.config.transform_timeout)
        except TimeoutError as exc:
            raise TransformUnavailable(
                source_frame, target_frame, f"lookup timed out after {self.config.transform_timeout}s"
            ) from exc
        except LookupError as exc:
            raise TransformUnavailable(source_frame, target_frame, str(exc)) from exc
        if not transform.target_frame:
            transform = RigidTransform(transform.rotation, transform.translation,
                                       source_frame, target_frame, transform.stamp)
        return transform

    def run_frame(self, detections: Iterable[DetectionLike], scan: PointScan) -> FusionResult:
        """Fuse one frame, raising on frame-fatal errors.

        Raises
        ------
        IntrinsicsUnavailable
            If no intrinsics have been received yet.
        TransformUnavailable
            If the LiDAR to camera transform cannot be resolved.
        """
        intrinsics = self.intrinsics
        if intrinsics is None:
            raise IntrinsicsUnavailable("Camera info not yet received")

        boxes = self.registry.register(detections)
        source_frame = scan.frame_id or self.config.lidar_frame
        transform = self.resolve_transform(source_frame, scan.stamp)
        return fuse_frame(boxes, scan.points, intrinsics, transform,
                          spatial_filter=self.spatial_filter, stamp=scan.stamp)

    def process_frame(
        self,
        detections: Iterable[DetectionLike],
        scan: PointScan,
        image: Optional[np.ndarray] = None,
        encoding: str = "bgr8",
    ) -> Optional[FrameOutput]:
        """Fuse one frame and render the overlay if an image is given.

        Frame-fatal errors are logged and the frame is skipped: the
        return value is then `None`.  An image that cannot be decoded
        only loses the overlay; the fusion result is still returned.
        """
        try:
            result = self.run_frame(detections, scan)
        except (IntrinsicsUnavailable, TransformUnavailable) as exc:
            logger.warning("%s, skipping frame", exc)
            return None

        overlay = None
        if image is not None:
            try:
                overlay = render_overlay(image, result.matched_pixels, encoding,
                                         self.config.overlay_radius, self.config.overlay_color)
            except ImageDecodeFailure as exc:
                logger.error("Overlay rendering failed: %s", exc)
        return FrameOutput(result=result, overlay=overlay)


def load_detections(path: Path) -> List[DetectionRecord]:
    """Read detections from a JSON list (or `{"detections": [...]}`)."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("detections", [])
    return [DetectionRecord.from_dict(d) for d in data]


def load_camera_info(path: Path) -> CameraIntrinsics:
    """Read intrinsics from a YAML/JSON file with `k`, `width` and `height`."""
    info = load_config(str(path))
    if not info:
        raise ValueError(f"camera info file {path} is missing or empty")
    k = info.get("k", info.get("K"))
    if k is None:
        raise ValueError(f"camera info file {path} has no camera matrix 'k'")
    return CameraIntrinsics.from_camera_info(k, info["width"], info["height"])


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(
        description="Fuse one LiDAR scan with 2D detections"
    )
    parser.add_argument(
        "--points",
        type=str,
        required=True,
        help="Scan file (.npy, .csv, .las or .laz)"
    )
    parser.add_argument(
        "--detections",
        type=str,
        required=True,
        help="JSON file with the frame's detections"
    )
    parser.add_argument(
        "--camera-info",
        type=str,
        required=True,
        help="YAML/JSON file with k (row-major 3x3), width and height"
    )
    parser.add_argument(
        "--output",
        type=str,
        required=True,
        help="Output directory"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Fusion config YAML (filter bounds, frames, extrinsics)"
    )
    parser.add_argument(
        "--frame-id",
        type=str,
        default="",
        help="Frame of the scan (default: lidar_frame from the config)"
    )
    parser.add_argument(
        "--stamp",
        type=float,
        default=0.0,
        help="Scan timestamp in seconds"
    )
    parser.add_argument(
        "--image",
        type=str,
        default=None,
        help="Camera image to draw the matched points on"
    )

    args = parser.parse_args(argv)

    config = FusionConfig.from_yaml(args.config) if args.config else FusionConfig()
    pipeline = FusionPipeline(config)
    pipeline.update_intrinsics(load_camera_info(Path(args.camera_info)))

    scan = PointScan(load_points(args.points), args.frame_id, args.stamp)
    detections = load_detections(Path(args.detections))

    image = None
    if args.image:
        image = cv2.imread(args.image, cv2.IMREAD_COLOR)
        if image is None:
            logger.error("Could not read image %s", args.image)

    output = pipeline.process_frame(detections, scan, image=image)
    if output is None:
        return 1

    output_dir = Path(args.output)
    objects_path, points_path = export_result(output.result, output_dir)
    logger.info("Fused %d objects, written to %s and %s",
                len(output.result), objects_path, points_path)
    if output.overlay is not None:
        overlay_path = output_dir / "overlay.png"
        cv2.imwrite(str(overlay_path), output.overlay)
        logger.info("Overlay written to %s", overlay_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
