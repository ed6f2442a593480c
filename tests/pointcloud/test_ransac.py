"""
Tests for pointcloud.segmentation module.
"""

import numpy as np
import pytest

from pointcloud.cloud import make_plane_cloud, make_sphere_cloud
from pointcloud.segmentation import fit_plane_ransac, fit_sphere_ransac


class TestPlaneRansac:
    """Tests for fit_plane_ransac."""

    def test_finds_plane(self):
        """The x + y + z = 0 plane is found despite half the points being outliers."""
        cloud = make_plane_cloud(500, outlier_ratio=0.5, seed=0)

        fit = fit_plane_ransac(cloud, distance_threshold=0.01)

        normal = fit.coefficients[:3]
        assert abs(normal @ np.ones(3) / np.sqrt(3)) == pytest.approx(1.0, abs=1e-3)
        assert fit.coefficients[3] == pytest.approx(0.0, abs=1e-3)

    def test_inliers_cover_plane_points(self):
        """Every point generated on the plane is an inlier."""
        cloud = make_plane_cloud(500, outlier_ratio=0.5, seed=0)
        on_plane = np.flatnonzero(np.abs(cloud.sum(axis=1)) < 1e-9)

        fit = fit_plane_ransac(cloud)

        assert set(on_plane) <= set(fit.inliers)
        assert len(fit.inliers) < len(cloud)

    def test_unit_normal(self):
        """Plane coefficients use a unit normal."""
        fit = fit_plane_ransac(make_plane_cloud(200, outlier_ratio=0.2, seed=4))
        assert np.linalg.norm(fit.coefficients[:3]) == pytest.approx(1.0)

    def test_degenerate_points(self):
        """Identical points never define a plane."""
        with pytest.raises(ValueError, match="degenerate"):
            fit_plane_ransac(np.ones((10, 3)), max_iterations=20)

    def test_too_few_points(self):
        """Three points are needed."""
        with pytest.raises(ValueError, match="at least 3"):
            fit_plane_ransac(np.zeros((2, 3)))

    def test_invalid_threshold(self):
        """The distance threshold must be positive."""
        with pytest.raises(ValueError, match="threshold"):
            fit_plane_ransac(make_plane_cloud(50), distance_threshold=0)


class TestSphereRansac:
    """Tests for fit_sphere_ransac."""

    def test_finds_sphere(self):
        """Center and radius of a noisy sphere cloud."""
        cloud = make_sphere_cloud(500, radius=2.0, center=(1.0, -1.0, 0.5), outlier_ratio=0.2)

        fit = fit_sphere_ransac(cloud)

        np.testing.assert_allclose(fit.coefficients, [1.0, -1.0, 0.5, 2.0], atol=0.02)
        assert len(fit.inliers) >= 350

    def test_reproducible(self):
        """The same seed gives the same inliers."""
        cloud = make_sphere_cloud(200, seed=5)
        first = fit_sphere_ransac(cloud, seed=1)
        second = fit_sphere_ransac(cloud, seed=1)
        np.testing.assert_array_equal(first.inliers, second.inliers)

    def test_too_few_points(self):
        """Four points are needed."""
        with pytest.raises(ValueError, match="at least 4"):
            fit_sphere_ransac(np.zeros((3, 3)))
