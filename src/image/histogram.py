"""
Histogram computation, equalization, comparison and matching.
"""

import logging
from typing import List, Optional, Union

import cv2
import numpy as np

from domain_types import HistCompareMethod, HistogramConstants
from image.color import merge_channels, split_channels
from image.converters import ensure_bgr

logger = logging.getLogger(__name__)

COMPARE_FLAGS = {
    HistCompareMethod.CORRELATION: cv2.HISTCMP_CORREL,
    HistCompareMethod.CHI_SQUARE: cv2.HISTCMP_CHISQR,
    HistCompareMethod.INTERSECTION: cv2.HISTCMP_INTERSECT,
    HistCompareMethod.BHATTACHARYYA: cv2.HISTCMP_BHATTACHARYYA,
}


def calc_histograms(
    image: np.ndarray, bins: int = HistogramConstants.BINS, mask: Optional[np.ndarray] = None
) -> List[np.ndarray]:
    """One flat histogram per channel over the 0..256 range."""
    if bins <= 0:
        raise ValueError(f"bins must be positive, got {bins}")
    return [
        cv2.calcHist([channel], [0], mask, [bins], [0, 256]).flatten()
        for channel in split_channels(image)
    ]


def equalize(image: np.ndarray) -> np.ndarray:
    """Histogram equalization applied to every channel independently."""
    return merge_channels([cv2.equalizeHist(channel) for channel in split_channels(image)])


def hs_histogram(image: np.ndarray) -> np.ndarray:
    """Hue/saturation 2D histogram of a BGR image, min-max normalized to [0, 1]."""
    hsv = cv2.cvtColor(ensure_bgr(image), cv2.COLOR_BGR2HSV)
    hist = cv2.calcHist(
        [hsv],
        [0, 1],
        None,
        [HistogramConstants.HUE_BINS, HistogramConstants.SATURATION_BINS],
        [0, 180, 0, 256],
    )
    cv2.normalize(hist, hist, alpha=0, beta=1, norm_type=cv2.NORM_MINMAX)
    return hist


def compare_histograms(
    first: np.ndarray,
    second: np.ndarray,
    method: Union[HistCompareMethod, str] = HistCompareMethod.CORRELATION,
) -> float:
    """Compare two images through their HS histograms."""
    flag = COMPARE_FLAGS[HistCompareMethod(method)]
    return float(cv2.compareHist(hs_histogram(first), hs_histogram(second), flag))


def _normalized_cdf(channel: np.ndarray, mask: Optional[np.ndarray]) -> np.ndarray:
    hist = cv2.calcHist([channel], [0], mask, [256], [0, 256]).flatten().astype(np.float64)
    peak = hist.max()
    if peak <= 0:
        raise ValueError("Mask selects no pixels")
    cdf = np.cumsum(hist / peak)
    return cdf / cdf.max()


def build_matching_lut(source_cdf: np.ndarray, reference_cdf: np.ndarray) -> np.ndarray:
    """
    Map each source level to the first reference level whose CDF reaches it.

    The search for level j starts at the level chosen for j - 1, so the
    mapping is monotonic.
    """
    lut = np.full(256, 255, dtype=np.uint8)
    last = 0
    for j in range(256):
        f1 = source_cdf[j]
        for k in range(last, 256):
            f2 = reference_cdf[k]
            if abs(f2 - f1) < HistogramConstants.MATCH_EPSILON or f2 > f1:
                lut[j] = k
                last = k
                break
    return lut


def match_histogram(
    source: np.ndarray,
    reference: np.ndarray,
    source_mask: Optional[np.ndarray] = None,
    reference_mask: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Remap source intensities so their distribution follows the reference.

    Both images must have the same number of channels. Masks restrict which
    pixels contribute to each histogram; the mapping is applied everywhere.
    """
    source_channels = split_channels(source)
    reference_channels = split_channels(reference)
    if len(source_channels) != len(reference_channels):
        raise ValueError(
            f"Channel count differs: {len(source_channels)} vs {len(reference_channels)}"
        )

    matched = []
    for src, ref in zip(source_channels, reference_channels):
        lut = build_matching_lut(
            _normalized_cdf(src, source_mask), _normalized_cdf(ref, reference_mask)
        )
        matched.append(cv2.LUT(src, lut))

    return merge_channels(matched)
