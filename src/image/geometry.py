"""
Geometric transformations: translation, rotation, scaling, affine warps, cropping.
"""

import logging
from typing import Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from domain_types import ROI, GeometryConstants, InterpolationMethod

logger = logging.getLogger(__name__)

INTERPOLATION_FLAGS = {
    InterpolationMethod.NEAREST: cv2.INTER_NEAREST,
    InterpolationMethod.LINEAR: cv2.INTER_LINEAR,
    InterpolationMethod.CUBIC: cv2.INTER_CUBIC,
    InterpolationMethod.AREA: cv2.INTER_AREA,
    InterpolationMethod.LANCZOS: cv2.INTER_LANCZOS4,
}


def _size(image: np.ndarray) -> Tuple[int, int]:
    height, width = image.shape[:2]
    return width, height


def translate(
    image: np.ndarray,
    tx: float = GeometryConstants.TRANSLATION_DEFAULT[0],
    ty: float = GeometryConstants.TRANSLATION_DEFAULT[1],
) -> np.ndarray:
    """Shift by (tx, ty); uncovered pixels are black."""
    matrix = np.float32([[1, 0, tx], [0, 1, ty]])
    return cv2.warpAffine(image, matrix, _size(image))


def rotate(
    image: np.ndarray,
    angle: float = GeometryConstants.ROTATION_ANGLE_DEFAULT,
    scale: float = GeometryConstants.ROTATION_SCALE_DEFAULT,
    center: Optional[Tuple[float, float]] = None,
) -> np.ndarray:
    """Rotate by angle degrees (counter-clockwise) and scale about center."""
    width, height = _size(image)
    if center is None:
        center = (width / 2.0, height / 2.0)
    matrix = cv2.getRotationMatrix2D(center, angle, scale)
    return cv2.warpAffine(image, matrix, (width, height))


def resize(
    image: np.ndarray,
    fx: float,
    fy: Optional[float] = None,
    interpolation: Union[InterpolationMethod, str] = InterpolationMethod.LINEAR,
) -> np.ndarray:
    """Scale by factors fx, fy (fy defaults to fx)."""
    fy = fx if fy is None else fy
    if fx <= 0 or fy <= 0:
        raise ValueError(f"Scale factors must be positive, got fx={fx}, fy={fy}")
    flag = INTERPOLATION_FLAGS[InterpolationMethod(interpolation)]
    return cv2.resize(image, None, fx=fx, fy=fy, interpolation=flag)


def scale_up(
    image: np.ndarray, interpolation: Union[InterpolationMethod, str] = InterpolationMethod.LINEAR
) -> np.ndarray:
    """Double the size."""
    return resize(image, 2.0, 2.0, interpolation)


def scale_down(image: np.ndarray) -> np.ndarray:
    """Halve the size with area averaging."""
    return resize(image, 0.5, 0.5, InterpolationMethod.AREA)


def affine_warp(
    image: np.ndarray,
    src_points: Sequence[Sequence[float]],
    dst_points: Sequence[Sequence[float]],
) -> np.ndarray:
    """Warp with the affine map taking three source points onto three destination points."""
    src = np.float32(src_points)
    dst = np.float32(dst_points)
    if src.shape != (3, 2) or dst.shape != (3, 2):
        raise ValueError("Affine warp needs exactly three (x, y) source and destination points")
    matrix = cv2.getAffineTransform(src, dst)
    return cv2.warpAffine(image, matrix, _size(image))


def shear_points(width: int, height: int) -> Tuple[np.ndarray, np.ndarray]:
    """Reference point triplets for the default inclination warp."""
    src = np.float32([[0, 0], [width - 1, 0], [0, height - 1]])
    dst = np.float32(
        [[fx * width, fy * height] for fx, fy in GeometryConstants.SHEAR_DST_FRACTIONS]
    )
    return src, dst


def shear(image: np.ndarray) -> np.ndarray:
    """Inclination example: top-left, top-right and bottom-left corners pulled inward."""
    src, dst = shear_points(*_size(image))
    return affine_warp(image, src, dst)


def crop(image: np.ndarray, roi: ROI) -> np.ndarray:
    """
    Copy of the ROI clipped to the image.

    Raises:
        ValueError: If the ROI lies completely outside the image
    """
    width, height = _size(image)
    clipped = roi.clip(width, height)
    if clipped is None:
        raise ValueError(f"ROI {roi.to_dict()} lies outside image bounds {width}x{height}")
    return image[clipped.y : clipped.y2, clipped.x : clipped.x2].copy()


def calculate_contour_properties(contour: np.ndarray) -> dict:
    """
    Standard geometric properties of a contour.

    Returns:
        Dictionary with area, perimeter, center (x, y) from the moments
        (falls back to the bounding box center for degenerate contours)
        and bounding_box (x, y, w, h)
    """
    area = float(cv2.contourArea(contour))
    perimeter = float(cv2.arcLength(contour, True))
    x, y, w, h = cv2.boundingRect(contour)

    m = cv2.moments(contour)
    if m["m00"] != 0:
        center = (m["m10"] / m["m00"], m["m01"] / m["m00"])
    else:
        center = (x + w / 2.0, y + h / 2.0)

    return {
        "area": area,
        "perimeter": perimeter,
        "center": center,
        "bounding_box": (x, y, w, h),
    }
