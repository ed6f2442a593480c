"""
Erosion, dilation and the compound operations built from them.
"""

import logging
from typing import Union

import cv2
import numpy as np

from domain_types import ContourMode, ElementShape, MorphOperation, VisionConstants

logger = logging.getLogger(__name__)

ELEMENT_SHAPES = {
    ElementShape.RECT: cv2.MORPH_RECT,
    ElementShape.CROSS: cv2.MORPH_CROSS,
    ElementShape.ELLIPSE: cv2.MORPH_ELLIPSE,
}

MORPH_FLAGS = {
    MorphOperation.ERODE: cv2.MORPH_ERODE,
    MorphOperation.DILATE: cv2.MORPH_DILATE,
    MorphOperation.OPEN: cv2.MORPH_OPEN,
    MorphOperation.CLOSE: cv2.MORPH_CLOSE,
    MorphOperation.GRADIENT: cv2.MORPH_GRADIENT,
    MorphOperation.TOPHAT: cv2.MORPH_TOPHAT,
    MorphOperation.BLACKHAT: cv2.MORPH_BLACKHAT,
}


def structuring_element(
    shape: Union[ElementShape, str] = ElementShape.RECT,
    size: int = VisionConstants.MORPH_SIZE_DEFAULT,
) -> np.ndarray:
    """
    (2*size+1) square element anchored at its center.

    Raises:
        ValueError: If size is negative or above the supported maximum
    """
    if not 0 <= size <= VisionConstants.MORPH_SIZE_MAX:
        raise ValueError(
            f"Element size must be between 0 and {VisionConstants.MORPH_SIZE_MAX}, got {size}"
        )
    side = 2 * size + 1
    return cv2.getStructuringElement(
        ELEMENT_SHAPES[ElementShape(shape)], (side, side), (size, size)
    )


def morph(
    image: np.ndarray,
    operation: Union[MorphOperation, str],
    shape: Union[ElementShape, str] = ElementShape.RECT,
    size: int = VisionConstants.MORPH_SIZE_DEFAULT,
    iterations: int = 1,
) -> np.ndarray:
    """Apply one morphological operation."""
    if iterations < 1:
        raise ValueError(f"iterations must be at least 1, got {iterations}")
    element = structuring_element(shape, size)
    flag = MORPH_FLAGS[MorphOperation(operation)]
    return cv2.morphologyEx(image, flag, element, iterations=iterations)


def morphological_contour(
    image: np.ndarray,
    mode: Union[ContourMode, str] = ContourMode.INNER,
    shape: Union[ElementShape, str] = ElementShape.RECT,
    size: int = VisionConstants.MORPH_SIZE_DEFAULT,
) -> np.ndarray:
    """
    Object outline from the difference with an erosion or dilation.

    INNER keeps the boundary pixels that belong to the object (src - erode),
    OUTER the ring just outside it (dilate - src).
    """
    element = structuring_element(shape, size)
    if ContourMode(mode) == ContourMode.INNER:
        return cv2.subtract(image, cv2.erode(image, element))
    return cv2.subtract(cv2.dilate(image, element), image)
