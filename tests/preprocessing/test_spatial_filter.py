"""Unit tests for the pass-through spatial filter."""

import numpy as np
import pytest

from lidar_camera_fusion.preprocessing.spatial_filter import SpatialFilter, crop_box
from lidar_camera_fusion.utils.config import FusionConfig


class TestSpatialFilter:
    """Test suite for SpatialFilter and crop_box."""

    def test_keeps_points_inside_box(self):
        """Test that only points inside all three ranges survive."""
        spatial_filter = SpatialFilter(-1.0, 1.0, -1.0, 1.0, -1.0, 1.0)

        points = np.array([
            [0.0, 0.0, 0.0],
            [2.0, 0.0, 0.0],   # x out
            [0.0, -2.0, 0.0],  # y out
            [0.0, 0.0, 5.0],   # z out
            [0.5, 0.5, 0.5],
        ])

        filtered, indices = spatial_filter.apply(points)

        assert len(filtered) == 2
        np.testing.assert_array_equal(indices, [0, 4])
        np.testing.assert_array_equal(filtered, points[[0, 4]])

    def test_bounds_are_inclusive(self):
        """Test that points exactly on the bounds are kept."""
        spatial_filter = SpatialFilter(-1.0, 1.0, -2.0, 2.0, -3.0, 3.0)

        points = np.array([
            [-1.0, -2.0, -3.0],
            [1.0, 2.0, 3.0],
        ])

        filtered, indices = spatial_filter.apply(points)

        assert len(filtered) == 2
        np.testing.assert_array_equal(indices, [0, 1])

    def test_indices_refer_to_unfiltered_input(self):
        """Test that indices map survivors back to the unfiltered scan."""
        points = np.array([
            [50.0, 0.0, 0.0],
            [60.0, 0.0, 0.0],
            [1.0, 1.0, 1.0],
            [70.0, 0.0, 0.0],
            [2.0, 2.0, 1.0],
        ])

        filtered, indices = SpatialFilter().apply(points)

        np.testing.assert_array_equal(indices, [2, 4])
        np.testing.assert_array_equal(points[indices], filtered)

    def test_idempotence(self):
        """Test that filtering twice with the same bounds removes nothing more."""
        rng = np.random.default_rng(0)
        points = rng.uniform(-20, 20, (1000, 3))
        spatial_filter = SpatialFilter()

        once, _ = spatial_filter.apply(points)
        twice, indices = spatial_filter.apply(once)

        np.testing.assert_array_equal(once, twice)
        np.testing.assert_array_equal(indices, np.arange(len(once)))

    def test_preserves_order(self):
        """Test that survivors keep their relative order."""
        points = np.array([[float(i) - 5.0, 0.0, 0.0] for i in range(30)])

        filtered, indices = SpatialFilter().apply(points)

        assert np.all(np.diff(indices) > 0)
        assert np.all(np.diff(filtered[:, 0]) > 0)

    def test_nan_points_dropped(self):
        """Test that points with NaN coordinates never pass."""
        points = np.array([
            [np.nan, 0.0, 0.0],
            [0.0, 0.0, 0.0],
            [0.0, np.inf, 0.0],
        ])

        filtered, indices = SpatialFilter().apply(points)

        np.testing.assert_array_equal(indices, [1])

    def test_empty_points(self):
        """Test handling of an empty point cloud."""
        filtered, indices = crop_box(np.empty((0, 3)), (-1, 1, -1, 1, -1, 1))

        assert filtered.shape == (0, 3)
        assert len(indices) == 0

    def test_does_not_modify_input(self):
        """Test that the returned array is independent from the input."""
        points = np.zeros((3, 3))

        filtered, _ = SpatialFilter().apply(points)
        filtered[0, 0] = 99.0

        assert points[0, 0] == 0.0

    def test_invalid_bounds(self):
        """Test that min > max is rejected."""
        with pytest.raises(ValueError):
            SpatialFilter(min_x=1.0, max_x=-1.0)

    def test_invalid_shape(self):
        """Test that points without three columns are rejected."""
        with pytest.raises(ValueError):
            SpatialFilter().apply(np.zeros((4, 2)))

    def test_from_config(self):
        """Test construction from the fusion config."""
        config = FusionConfig(min_z=-1.0, max_z=3.0)

        spatial_filter = SpatialFilter.from_config(config)

        assert spatial_filter.bounds == (-10.0, 10.0, -10.0, 10.0, -1.0, 3.0)
