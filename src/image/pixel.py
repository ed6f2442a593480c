"""
Point (pixel-to-pixel) operations and bitwise logic between masks.
"""

import logging
from typing import Optional, Tuple, Union

import cv2
import numpy as np

from domain_types import LogicOperation, PixelConstants
from image.converters import ensure_grayscale

logger = logging.getLogger(__name__)


def invert(image: np.ndarray) -> np.ndarray:
    """Negative image, 255 - p."""
    return cv2.bitwise_not(image)


def threshold(image: np.ndarray, value: int = PixelConstants.THRESHOLD_DEFAULT) -> np.ndarray:
    """Grayscale binarization: 255 where p > value, 0 elsewhere."""
    gray = ensure_grayscale(image)
    return np.where(gray > value, 255, 0).astype(np.uint8)


def invert_threshold(
    image: np.ndarray, value: int = PixelConstants.INVERSE_THRESHOLD_DEFAULT
) -> np.ndarray:
    """Binarize the negative image: 255 where 255 - p > value."""
    return threshold(invert(ensure_grayscale(image)), value)


def circle_mask(
    size: Tuple[int, int] = PixelConstants.MASK_SIZE,
    center: Optional[Tuple[int, int]] = None,
    radius: int = PixelConstants.MASK_RADIUS,
) -> np.ndarray:
    """
    Filled white circle on black.

    Args:
        size: (width, height) of the mask
        center: (x, y) center, defaults to the middle of the mask
        radius: Circle radius in pixels
    """
    width, height = size
    if center is None:
        center = (width // 2, height // 2)

    mask = np.zeros((height, width), dtype=np.uint8)
    cv2.circle(mask, tuple(int(c) for c in center), int(radius), 255, -1)
    return mask


def overlapping_circles() -> Tuple[np.ndarray, np.ndarray]:
    """The two partially overlapping circle masks used to show logic operations."""
    first, second = PixelConstants.MASK_CENTERS
    return circle_mask(center=first), circle_mask(center=second)


def logic_operation(
    first: np.ndarray,
    second: Optional[np.ndarray],
    operation: Union[LogicOperation, str],
) -> np.ndarray:
    """
    Bitwise AND/OR/XOR of two images, or NOT of the first.

    Raises:
        ValueError: If a binary operation gets a missing or differently shaped second image
    """
    operation = LogicOperation(operation)

    if operation == LogicOperation.NOT:
        return cv2.bitwise_not(first)

    if second is None:
        raise ValueError(f"Operation '{operation.value}' needs two images")
    if first.shape != second.shape:
        raise ValueError(f"Image shapes differ: {first.shape} vs {second.shape}")

    if operation == LogicOperation.AND:
        return cv2.bitwise_and(first, second)
    if operation == LogicOperation.OR:
        return cv2.bitwise_or(first, second)
    return cv2.bitwise_xor(first, second)
