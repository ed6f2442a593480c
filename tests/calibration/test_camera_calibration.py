"""
Tests for calibration.camera module.
"""

import cv2
import numpy as np
import pytest

from calibration.camera import (
    calibrate,
    calibrate_from_images,
    chessboard_object_points,
    draw_corners,
    find_chessboard_corners,
    undistort,
)
from image.test_patterns import create_chessboard

PATTERN = (9, 6)
IMAGE_SIZE = (640, 480)
CAMERA_MATRIX = np.array([[800.0, 0.0, 319.5], [0.0, 800.0, 239.5], [0.0, 0.0, 1.0]])


def synthetic_views():
    """Board corners projected through a known pinhole camera from several poses."""
    board = chessboard_object_points(PATTERN)
    poses = [
        ((0.2, -0.1, 0.05), (-4.0, -2.5, 20.0)),
        ((-0.3, 0.2, 0.0), (-4.0, -2.5, 22.0)),
        ((0.1, 0.35, -0.1), (-3.5, -2.0, 18.0)),
        ((0.4, 0.0, 0.2), (-4.5, -3.0, 24.0)),
    ]
    object_points, image_points = [], []
    for rvec, tvec in poses:
        projected, _ = cv2.projectPoints(
            board, np.array(rvec), np.array(tvec), CAMERA_MATRIX, np.zeros(5)
        )
        object_points.append(board)
        image_points.append(projected.astype(np.float32))
    return object_points, image_points


def tilted_board(offset):
    """Chessboard image under a mild perspective warp on a white 640x480 canvas."""
    board = create_chessboard(PATTERN)
    h, w = board.shape[:2]
    src = np.float32([[0, 0], [w, 0], [w, h], [0, h]])
    dst = np.float32(
        [[60 + offset, 50], [60 + w, 50 + offset], [60 + w - offset, 50 + h], [60, 50 + h]]
    )
    homography = cv2.getPerspectiveTransform(src, dst)
    return cv2.warpPerspective(
        board, homography, IMAGE_SIZE, borderValue=(255, 255, 255)
    )


class TestObjectPoints:
    """Tests for chessboard_object_points."""

    def test_row_by_row(self):
        """Points advance along x first and sit on z = 0."""
        points = chessboard_object_points((3, 2), square_size=2.0)

        assert points.shape == (6, 3)
        np.testing.assert_array_equal(points[:, 2], 0)
        np.testing.assert_array_equal(points[1], [2, 0, 0])
        np.testing.assert_array_equal(points[3], [0, 2, 0])

    def test_too_small_pattern(self):
        """Fewer than 2x2 corners is rejected."""
        with pytest.raises(ValueError, match="2x2"):
            chessboard_object_points((1, 5))

    def test_invalid_square_size(self):
        """square_size must be positive."""
        with pytest.raises(ValueError, match="square_size"):
            chessboard_object_points(PATTERN, 0)


class TestFindCorners:
    """Tests for find_chessboard_corners."""

    def test_finds_generated_board(self):
        """All 54 inner corners of a 9x6 board are found."""
        corners = find_chessboard_corners(create_chessboard(PATTERN), PATTERN)
        assert corners is not None
        assert corners.shape == (54, 1, 2)

    def test_missing_board(self):
        """None when the pattern is not in the image."""
        assert find_chessboard_corners(np.full((200, 200), 255, np.uint8), PATTERN) is None

    def test_draw_corners(self):
        """Drawing nothing keeps the image."""
        image = create_chessboard(PATTERN)
        np.testing.assert_array_equal(draw_corners(image, PATTERN, None), image)


class TestCalibrate:
    """Tests for calibrate and calibrate_from_images."""

    def test_recovers_focal_length(self):
        """Exact projections give a tiny RMS and the true focal length."""
        object_points, image_points = synthetic_views()

        result = calibrate(object_points, image_points, IMAGE_SIZE)

        assert result.rms < 1.0
        assert result.camera_matrix[0, 0] == pytest.approx(800.0, rel=0.01)
        assert result.camera_matrix[1, 1] == pytest.approx(800.0, rel=0.01)
        assert len(result.rvecs) == 4

    def test_to_dict(self):
        """The summary is JSON friendly."""
        object_points, image_points = synthetic_views()
        summary = calibrate(object_points, image_points, IMAGE_SIZE).to_dict()

        assert summary["views"] == 4
        assert summary["image_size"] == [640, 480]
        assert len(summary["camera_matrix"]) == 3
        assert len(summary["dist_coeffs"]) == 5

    def test_no_views(self):
        """An empty view list raises ValueError."""
        with pytest.raises(ValueError, match="at least one"):
            calibrate([], [], IMAGE_SIZE)

    def test_view_count_mismatch(self):
        """Object and image point lists must pair up."""
        object_points, image_points = synthetic_views()
        with pytest.raises(ValueError, match="View count"):
            calibrate(object_points, image_points[:2], IMAGE_SIZE)

    def test_from_images_skips_missing_board(self):
        """Images without the board are skipped and reported through the indices."""
        images = [tilted_board(0), tilted_board(20), tilted_board(40)]
        images.append(np.full_like(images[0], 255))

        result, used = calibrate_from_images(images, PATTERN)

        assert used == [0, 1, 2]
        assert result.to_dict()["views"] == 3
        assert np.isfinite(result.rms)

    def test_from_images_no_board(self):
        """No detected board at all raises ValueError."""
        with pytest.raises(ValueError, match="not found"):
            calibrate_from_images([np.full((100, 100), 255, np.uint8)], PATTERN)

    def test_from_images_size_mismatch(self):
        """All images must share a size."""
        with pytest.raises(ValueError, match="differ in size"):
            calibrate_from_images([np.zeros((10, 10), np.uint8), np.zeros((10, 12), np.uint8)])

    def test_from_images_empty(self):
        """An empty list raises ValueError."""
        with pytest.raises(ValueError):
            calibrate_from_images([])


class TestUndistort:
    """Tests for undistort."""

    def test_zero_distortion_is_identity(self, test_image):
        """Without distortion the remap keeps every pixel."""
        result = undistort(test_image, CAMERA_MATRIX, np.zeros(5))
        assert result.shape == test_image.shape
        assert np.abs(result.astype(int) - test_image.astype(int)).max() <= 1

    def test_invalid_camera_matrix(self, test_image):
        """The camera matrix must be 3x3."""
        with pytest.raises(ValueError, match="3x3"):
            undistort(test_image, np.eye(2), np.zeros(5))
