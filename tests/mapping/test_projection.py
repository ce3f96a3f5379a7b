"""Unit tests for the perspective projector."""

import numpy as np
import pytest

from lidar_camera_fusion.mapping.projection import (
    CameraIntrinsics,
    PerspectiveProjector,
    ProjectedPoint,
    ProjectedPoints,
)


@pytest.fixture
def intrinsics():
    return CameraIntrinsics(fx=100.0, fy=100.0, cx=50.0, cy=50.0, width=100, height=100)


class TestCameraIntrinsics:
    """Test suite for CameraIntrinsics."""

    def test_from_camera_info(self):
        """Test reading fx, fy, cx, cy from a row-major K."""
        k = [500.0, 0.0, 320.0, 0.0, 510.0, 240.0, 0.0, 0.0, 1.0]

        intr = CameraIntrinsics.from_camera_info(k, 640, 480)

        assert (intr.fx, intr.fy, intr.cx, intr.cy) == (500.0, 510.0, 320.0, 240.0)
        assert (intr.width, intr.height) == (640, 480)
        np.testing.assert_array_equal(intr.matrix, np.array(k).reshape(3, 3))

    def test_rejects_bad_values(self):
        """Test validation of image size, focal length and K."""
        with pytest.raises(ValueError):
            CameraIntrinsics(100.0, 100.0, 50.0, 50.0, 0, 100)
        with pytest.raises(ValueError):
            CameraIntrinsics(0.0, 100.0, 50.0, 50.0, 100, 100)
        with pytest.raises(ValueError):
            CameraIntrinsics.from_camera_info([1.0, 2.0], 100, 100)


class TestPerspectiveProjector:
    """Test suite for PerspectiveProjector."""

    def test_project_known_points(self, intrinsics):
        """Test pixel coordinates of the reference points."""
        points = np.array([
            [1.0, 1.0, 5.0],
            [1.0, 1.0, 5.0],
            [2.0, 2.0, 10.0],
        ])

        projected = PerspectiveProjector(intrinsics).project(points)

        np.testing.assert_array_equal(projected.pixels, [[70, 70], [70, 70], [70, 70]])
        np.testing.assert_array_equal(projected.points, points)
        np.testing.assert_array_equal(projected.indices, [0, 1, 2])

    def test_cheirality(self):
        """Test that points with z <= 0 never project, for any intrinsics."""
        rng = np.random.default_rng(1)
        points = np.column_stack([
            rng.uniform(-5, 5, 200),
            rng.uniform(-5, 5, 200),
            rng.uniform(-5, 0, 200),
        ])
        points[0, 2] = 0.0
        points[1] = [0.0, 0.0, 0.0]

        for fx, cx, size in [(100.0, 50.0, 100), (-300.0, 10.0, 2000), (1e6, 0.0, 10**6)]:
            intr = CameraIntrinsics(fx, fx, cx, cx, size, size)
            projected = PerspectiveProjector(intr).project(points)
            assert len(projected) == 0

    def test_image_bounds(self, intrinsics):
        """Test that pixels outside [0, width) x [0, height) are dropped."""
        points = np.array([
            [0.495, 0.0, 1.0],   # u = 99.5 -> 99, kept
            [0.5, 0.0, 1.0],     # u = 100, dropped
            [0.0, 0.495, 1.0],   # v = 99, kept
            [0.0, 0.5, 1.0],     # v = 100, dropped
            [-0.515, 0.0, 1.0],  # u = -1.5 -> -1, dropped
        ])

        projected = PerspectiveProjector(intrinsics).project(points)

        np.testing.assert_array_equal(projected.indices, [0, 2])
        np.testing.assert_array_equal(projected.pixels, [[99, 50], [50, 99]])

    def test_truncation_toward_zero(self, intrinsics):
        """Test that a pixel just left of column 0 lands on column 0."""
        points = np.array([[-0.505, 0.0, 1.0]])  # u = -0.5

        projected = PerspectiveProjector(intrinsics).project(points)

        assert len(projected) == 1
        assert projected.u[0] == 0

    def test_provenance_indices(self, intrinsics):
        """Test that provenance indices carry forward unchanged."""
        points = np.array([
            [0.0, 0.0, 1.0],
            [0.0, 0.0, -1.0],
            [0.1, 0.1, 1.0],
        ])

        projected = PerspectiveProjector(intrinsics).project(points, indices=np.array([10, 11, 12]))

        np.testing.assert_array_equal(projected.indices, [10, 12])

    def test_non_finite_points_dropped(self, intrinsics):
        """Test that NaN and infinite coordinates are dropped."""
        points = np.array([
            [np.nan, 0.0, 1.0],
            [0.0, 0.0, np.inf],
            [0.0, 0.0, 1.0],
        ])

        projected = PerspectiveProjector(intrinsics).project(points)

        np.testing.assert_array_equal(projected.indices, [2])

    def test_points_grazing_camera_plane(self, intrinsics):
        """Test that a tiny positive depth does not overflow the cast."""
        points = np.array([[1.0, 1.0, 1e-300]])

        projected = PerspectiveProjector(intrinsics).project(points)

        assert len(projected) == 0

    def test_empty_input(self, intrinsics):
        """Test projecting an empty point set."""
        projected = PerspectiveProjector(intrinsics).project(np.empty((0, 3)))

        assert len(projected) == 0
        assert projected.pixels.shape == (0, 2)

    def test_index_length_mismatch(self, intrinsics):
        """Test that indices must match the points."""
        with pytest.raises(ValueError):
            PerspectiveProjector(intrinsics).project(np.zeros((2, 3)), indices=np.array([0]))

    def test_deterministic(self, intrinsics):
        """Test that identical inputs give identical outputs."""
        rng = np.random.default_rng(3)
        points = rng.uniform(-1, 1, (300, 3)) + [0.0, 0.0, 2.0]
        projector = PerspectiveProjector(intrinsics)

        a = projector.project(points)
        b = projector.project(points)

        np.testing.assert_array_equal(a.pixels, b.pixels)
        np.testing.assert_array_equal(a.indices, b.indices)

    def test_iteration(self, intrinsics):
        """Test iterating projected points as named tuples."""
        projected = PerspectiveProjector(intrinsics).project(np.array([[1.0, 1.0, 5.0]]), indices=[4])

        (point,) = list(projected)

        assert point == ProjectedPoint(70, 70, 1.0, 1.0, 5.0, 4)

    def test_empty_constructor(self):
        """Test the empty ProjectedPoints helper."""
        empty = ProjectedPoints.empty()

        assert len(empty) == 0
        assert empty.points.shape == (0, 3)
