"""
Color space conversions.

OpenCV covers most spaces directly; CMY and HSI are computed here.
"""

import logging
from typing import List, Sequence, Union

import cv2
import numpy as np

from domain_types import ColorSpace
from image.converters import ensure_bgr

logger = logging.getLogger(__name__)

_CV_CONVERSIONS = {
    ColorSpace.GRAY: cv2.COLOR_BGR2GRAY,
    ColorSpace.HSV: cv2.COLOR_BGR2HSV,
    ColorSpace.LAB: cv2.COLOR_BGR2LAB,
    ColorSpace.YCRCB: cv2.COLOR_BGR2YCrCb,
}


def bgr_to_cmy(image: np.ndarray) -> np.ndarray:
    """Subtractive CMY, 255 - BGR (channels ordered Y, M, C)."""
    return 255 - ensure_bgr(image)


def bgr_to_hsi(image: np.ndarray) -> np.ndarray:
    """
    Hue, saturation, intensity as an 8-bit three-plane image.

    With r, g, b in [0, 1]:
        H = acos(0.5((r-g)+(r-b)) / sqrt((r-g)^2 + (r-b)(g-b))), 360 - H when b > g
        S = 1 - 3 min(r, g, b) / (r + g + b)
        I = (r + g + b) / 3
    H is stored as H/360*255, S and I as S*255 and I*255.
    """
    bgr = ensure_bgr(image).astype(np.float64) / 255.0
    b, g, r = bgr[:, :, 0], bgr[:, :, 1], bgr[:, :, 2]
    eps = 1e-10

    numerator = 0.5 * ((r - g) + (r - b))
    denominator = np.sqrt((r - g) ** 2 + (r - b) * (g - b)) + eps
    hue = np.degrees(np.arccos(np.clip(numerator / denominator, -1.0, 1.0)))
    hue = np.where(b > g, 360.0 - hue, hue)

    total = r + g + b
    saturation = 1.0 - 3.0 * np.minimum(np.minimum(r, g), b) / (total + eps)
    intensity = total / 3.0

    hsi = np.dstack((hue / 360.0 * 255.0, saturation * 255.0, intensity * 255.0))
    return np.clip(np.rint(hsi), 0, 255).astype(np.uint8)


def convert_color(image: np.ndarray, space: Union[ColorSpace, str]) -> np.ndarray:
    """Convert a BGR (or grayscale) image to the requested color space."""
    space = ColorSpace(space)
    bgr = ensure_bgr(image)

    if space == ColorSpace.BGR:
        return bgr.copy()
    if space == ColorSpace.CMY:
        return bgr_to_cmy(bgr)
    if space == ColorSpace.HSI:
        return bgr_to_hsi(bgr)
    return cv2.cvtColor(bgr, _CV_CONVERSIONS[space])


def split_channels(image: np.ndarray) -> List[np.ndarray]:
    """Split into single-channel planes (a grayscale image yields one plane)."""
    if image.ndim == 2:
        return [image.copy()]
    return list(cv2.split(image))


def merge_channels(channels: Sequence[np.ndarray]) -> np.ndarray:
    """Merge planes of equal size back into one image."""
    if not channels:
        raise ValueError("No channels to merge")
    shapes = {channel.shape for channel in channels}
    if len(shapes) != 1:
        raise ValueError(f"Channel shapes differ: {sorted(shapes)}")
    if len(channels) == 1:
        return channels[0].copy()
    return cv2.merge(list(channels))
