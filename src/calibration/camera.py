"""
Chessboard camera calibration and undistortion.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from domain_types import CalibrationConstants
from image.converters import ensure_bgr, ensure_grayscale

logger = logging.getLogger(__name__)

DEFAULT_CALIBRATION_FLAGS = (
    cv2.CALIB_FIX_ASPECT_RATIO
    | cv2.CALIB_FIX_K3
    | cv2.CALIB_ZERO_TANGENT_DIST
    | cv2.CALIB_FIX_PRINCIPAL_POINT
)

SUBPIX_CRITERIA = (
    cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER,
    CalibrationConstants.SUBPIX_MAX_ITER,
    CalibrationConstants.SUBPIX_EPS,
)


@dataclass
class CalibrationResult:
    """Intrinsics and per-view extrinsics from calibrateCamera."""

    rms: float
    camera_matrix: np.ndarray
    dist_coeffs: np.ndarray
    rvecs: List[np.ndarray]
    tvecs: List[np.ndarray]
    image_size: Tuple[int, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rms": self.rms,
            "camera_matrix": self.camera_matrix.tolist(),
            "dist_coeffs": self.dist_coeffs.flatten().tolist(),
            "views": len(self.rvecs),
            "image_size": list(self.image_size),
        }


def chessboard_object_points(
    pattern_size: Tuple[int, int] = CalibrationConstants.PATTERN_SIZE,
    square_size: float = 1.0,
) -> np.ndarray:
    """
    Board corner coordinates on the z = 0 plane, row by row.

    Returns:
        float32 array of shape (cols * rows, 3)
    """
    cols, rows = pattern_size
    if cols < 2 or rows < 2:
        raise ValueError(f"Pattern needs at least 2x2 inner corners, got {pattern_size}")
    if square_size <= 0:
        raise ValueError(f"square_size must be positive, got {square_size}")

    points = np.zeros((cols * rows, 3), np.float32)
    points[:, :2] = np.mgrid[0:cols, 0:rows].T.reshape(-1, 2) * square_size
    return points


def find_chessboard_corners(
    image: np.ndarray, pattern_size: Tuple[int, int] = CalibrationConstants.PATTERN_SIZE
) -> Optional[np.ndarray]:
    """
    Locate and refine the inner corners of a chessboard.

    Returns:
        (N, 1, 2) float32 corners, or None when the board is not found
    """
    gray = ensure_grayscale(image)
    flags = cv2.CALIB_CB_ADAPTIVE_THRESH | cv2.CALIB_CB_NORMALIZE_IMAGE
    found, corners = cv2.findChessboardCorners(gray, tuple(pattern_size), flags)
    if not found:
        logger.debug(f"Chessboard {pattern_size} not found")
        return None

    return cv2.cornerSubPix(
        gray, corners, CalibrationConstants.SUBPIX_WINDOW, (-1, -1), SUBPIX_CRITERIA
    )


def calibrate(
    object_points: Sequence[np.ndarray],
    image_points: Sequence[np.ndarray],
    image_size: Tuple[int, int],
    flags: int = DEFAULT_CALIBRATION_FLAGS,
) -> CalibrationResult:
    """
    Estimate intrinsics from matched board and image points.

    Args:
        object_points: Board coordinates per view
        image_points: Detected corners per view
        image_size: (width, height)
        flags: cv2.CALIB_* flags

    Raises:
        ValueError: If no views are given or the view lists differ in length
    """
    if not object_points:
        raise ValueError("Calibration needs at least one view")
    if len(object_points) != len(image_points):
        raise ValueError(
            f"View count differs: {len(object_points)} object vs {len(image_points)} image"
        )

    camera_matrix = np.eye(3, dtype=np.float64)
    dist_coeffs = np.zeros((5, 1), dtype=np.float64)

    rms, camera_matrix, dist_coeffs, rvecs, tvecs = cv2.calibrateCamera(
        [np.asarray(p, np.float32) for p in object_points],
        [np.asarray(p, np.float32) for p in image_points],
        tuple(image_size),
        camera_matrix,
        dist_coeffs,
        flags=flags,
    )

    logger.info(f"Calibrated from {len(object_points)} views, RMS error {rms:.4f}")
    return CalibrationResult(
        rms=float(rms),
        camera_matrix=camera_matrix,
        dist_coeffs=dist_coeffs,
        rvecs=list(rvecs),
        tvecs=list(tvecs),
        image_size=tuple(image_size),
    )


def calibrate_from_images(
    images: Sequence[np.ndarray],
    pattern_size: Tuple[int, int] = CalibrationConstants.PATTERN_SIZE,
    square_size: float = 1.0,
) -> Tuple[CalibrationResult, List[int]]:
    """
    Detect the board in every image and calibrate from the views where it was found.

    Returns:
        (result, indices of the images that were used)

    Raises:
        ValueError: If images differ in size or no image contains the pattern
    """
    if not images:
        raise ValueError("No calibration images given")

    sizes = {img.shape[:2] for img in images}
    if len(sizes) != 1:
        raise ValueError(f"Calibration images differ in size: {sorted(sizes)}")
    height, width = images[0].shape[:2]

    board = chessboard_object_points(pattern_size, square_size)
    object_points, image_points, used = [], [], []
    for index, img in enumerate(images):
        corners = find_chessboard_corners(img, pattern_size)
        if corners is None:
            logger.warning(f"Calibration image {index}: pattern {pattern_size} not found")
            continue
        object_points.append(board)
        image_points.append(corners)
        used.append(index)

    if not used:
        raise ValueError(f"Chessboard pattern {pattern_size} not found in any image")

    return calibrate(object_points, image_points, (width, height)), used


def undistort(image: np.ndarray, camera_matrix: np.ndarray, dist_coeffs: np.ndarray) -> np.ndarray:
    """Remove lens distortion keeping the same camera matrix."""
    height, width = image.shape[:2]
    camera_matrix = np.asarray(camera_matrix, dtype=np.float64)
    dist_coeffs = np.asarray(dist_coeffs, dtype=np.float64)
    if camera_matrix.shape != (3, 3):
        raise ValueError(f"Camera matrix must be 3x3, got {camera_matrix.shape}")

    map1, map2 = cv2.initUndistortRectifyMap(
        camera_matrix, dist_coeffs, None, camera_matrix, (width, height), cv2.CV_32FC1
    )
    return cv2.remap(image, map1, map2, cv2.INTER_LINEAR)


def draw_corners(
    image: np.ndarray, pattern_size: Tuple[int, int], corners: Optional[np.ndarray]
) -> np.ndarray:
    """Copy of image with the detected corners drawn (nothing drawn when corners is None)."""
    result = ensure_bgr(image).copy()
    if corners is not None:
        cv2.drawChessboardCorners(result, tuple(pattern_size), corners, True)
    return result
