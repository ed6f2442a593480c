"""
Tests for pointcloud.cloud module.
"""

import numpy as np
import pytest

from pointcloud.cloud import (
    as_points,
    format_pcd,
    make_plane_cloud,
    make_sphere_cloud,
    make_transform,
    parse_pcd,
    read_pcd,
    transform_points,
    write_pcd,
)

POINTS = np.array([[0.0, 1.5, -2.0], [3.25, 0.0, 1e-3]])


class TestPcdFormat:
    """Tests for the ASCII PCD codec."""

    def test_header(self):
        """The header declares three float fields and the point count."""
        lines = format_pcd(POINTS).splitlines()

        assert "VERSION 0.7" in lines
        assert "FIELDS x y z" in lines
        assert "TYPE F F F" in lines
        assert "WIDTH 2" in lines
        assert "POINTS 2" in lines
        assert lines[10] == "DATA ascii"
        assert len(lines) == 13

    def test_parse_formatted(self):
        """Formatted clouds parse back to the same coordinates."""
        np.testing.assert_allclose(parse_pcd(format_pcd(POINTS)), POINTS, rtol=1e-6)

    def test_parse_extra_fields(self):
        """Only x, y and z are returned, whatever the field order."""
        text = "\n".join(
            [
                "VERSION 0.7",
                "FIELDS rgb z y x",
                "POINTS 2",
                "DATA ascii",
                "0.5 3 2 1",
                "0.7 6 5 4",
            ]
        )
        np.testing.assert_array_equal(parse_pcd(text), [[1, 2, 3], [4, 5, 6]])

    def test_empty_cloud(self):
        """A cloud without points is valid."""
        assert parse_pcd(format_pcd(np.zeros((0, 3)))).shape == (0, 3)

    def test_binary_rejected(self):
        """Binary data sections are not supported."""
        with pytest.raises(ValueError, match="ASCII"):
            parse_pcd("FIELDS x y z\nPOINTS 1\nDATA binary\n")

    def test_missing_data_line(self):
        """A header without DATA is invalid."""
        with pytest.raises(ValueError, match="DATA"):
            parse_pcd("FIELDS x y z\nPOINTS 1\n")

    def test_missing_field(self):
        """All three coordinates are required."""
        with pytest.raises(ValueError, match="lack"):
            parse_pcd("FIELDS x y\nPOINTS 1\nDATA ascii\n1 2\n")

    def test_short_body(self):
        """Fewer rows than declared raises ValueError."""
        with pytest.raises(ValueError, match="declares"):
            parse_pcd("FIELDS x y z\nPOINTS 3\nDATA ascii\n1 2 3\n")

    def test_file_round_trip(self, tmp_path):
        """write_pcd and read_pcd use the same format."""
        path = tmp_path / "cloud.pcd"
        assert write_pcd(path, POINTS) == 2
        np.testing.assert_allclose(read_pcd(path), POINTS, rtol=1e-6)

    def test_read_missing(self, tmp_path):
        """Missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            read_pcd(tmp_path / "missing.pcd")

    def test_as_points_shape(self):
        """Clouds must be (N, 3)."""
        with pytest.raises(ValueError, match="shape"):
            as_points([[1.0, 2.0]])


class TestSyntheticClouds:
    """Tests for generated clouds."""

    def test_plane_without_outliers(self):
        """Every point satisfies x + y + z = 0."""
        cloud = make_plane_cloud(200, outlier_ratio=0.0, seed=1)
        assert cloud.shape == (200, 3)
        np.testing.assert_allclose(cloud.sum(axis=1), 0.0, atol=1e-12)

    def test_plane_with_outliers(self):
        """Roughly the requested share of points leaves the plane."""
        cloud = make_plane_cloud(1000, outlier_ratio=0.5, seed=1)
        off_plane = np.abs(cloud.sum(axis=1)) > 1e-9
        assert 0.4 < off_plane.mean() < 0.6

    def test_plane_is_reproducible(self):
        """The same seed gives the same cloud."""
        np.testing.assert_array_equal(make_plane_cloud(seed=3), make_plane_cloud(seed=3))

    def test_sphere_without_outliers(self):
        """Every point lies on the sphere."""
        cloud = make_sphere_cloud(300, radius=2.0, center=(1, 2, 3), outlier_ratio=0.0)
        radii = np.linalg.norm(cloud - [1, 2, 3], axis=1)
        np.testing.assert_allclose(radii, 2.0)

    @pytest.mark.parametrize("kwargs", [{"n": 0}, {"outlier_ratio": 1.0}])
    def test_invalid_plane_parameters(self, kwargs):
        """Invalid sizes and ratios raise ValueError."""
        with pytest.raises(ValueError):
            make_plane_cloud(**kwargs)

    def test_invalid_sphere_radius(self):
        """The radius must be positive."""
        with pytest.raises(ValueError):
            make_sphere_cloud(radius=0)


class TestTransforms:
    """Tests for rigid transforms."""

    def test_identity(self):
        """No rotation and no translation."""
        np.testing.assert_array_equal(make_transform(), np.eye(4))

    def test_rotation_about_z(self):
        """90 degrees about z turns x into y."""
        matrix = make_transform((0, 0, 90), (1, 0, 0))
        np.testing.assert_allclose(
            transform_points([[1.0, 0.0, 0.0]], matrix), [[1.0, 1.0, 0.0]], atol=1e-12
        )

    def test_rotation_order(self):
        """Rotations apply about x first, then y, then z."""
        matrix = make_transform((90, 0, 90))
        # x-rotation takes (0, 1, 0) to (0, 0, 1), which z-rotation leaves alone
        np.testing.assert_allclose(
            transform_points([[0.0, 1.0, 0.0]], matrix), [[0.0, 0.0, 1.0]], atol=1e-12
        )

    def test_transform_must_be_4x4(self):
        """Other matrix shapes are rejected."""
        with pytest.raises(ValueError, match="4x4"):
            transform_points(POINTS, np.eye(3))
