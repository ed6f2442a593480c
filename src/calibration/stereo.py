"""
Stereo block matching and disparity post-filtering.
"""

import logging
from typing import Optional, Union

import cv2
import numpy as np

from domain_types import StereoAlgorithm, StereoConstants
from image.converters import ensure_grayscale

logger = logging.getLogger(__name__)


def _validate(max_disparity: int, window_size: int) -> None:
    if max_disparity <= 0 or max_disparity % 16 != 0:
        raise ValueError(f"max_disparity must be a positive multiple of 16, got {max_disparity}")
    if window_size <= 0 or window_size % 2 == 0:
        raise ValueError(f"window_size must be odd and positive, got {window_size}")


def create_matcher(
    algorithm: Union[StereoAlgorithm, str] = StereoAlgorithm.SGBM,
    max_disparity: int = StereoConstants.MAX_DISPARITY_DEFAULT,
    window_size: Optional[int] = None,
):
    """
    Build a left-view matcher.

    SGBM uses P1 = 24 w^2 and P2 = 96 w^2 with the 3-way mode; BM windows
    below the minimum supported size are raised to it.
    """
    algorithm = StereoAlgorithm(algorithm)

    if algorithm == StereoAlgorithm.BM:
        window = StereoConstants.WINDOW_BM_DEFAULT if window_size is None else window_size
        _validate(max_disparity, window)
        window = max(window, StereoConstants.WINDOW_BM_MIN)
        return cv2.StereoBM_create(numDisparities=max_disparity, blockSize=window)

    window = StereoConstants.WINDOW_SGBM_DEFAULT if window_size is None else window_size
    _validate(max_disparity, window)
    return cv2.StereoSGBM_create(
        minDisparity=0,
        numDisparities=max_disparity,
        blockSize=window,
        P1=24 * window * window,
        P2=96 * window * window,
        preFilterCap=StereoConstants.PRE_FILTER_CAP,
        mode=cv2.STEREO_SGBM_MODE_SGBM_3WAY,
    )


def _prepare(left: np.ndarray, right: np.ndarray, algorithm: StereoAlgorithm):
    if left.shape[:2] != right.shape[:2]:
        raise ValueError(f"Stereo pair sizes differ: {left.shape[:2]} vs {right.shape[:2]}")
    if algorithm == StereoAlgorithm.BM:
        return ensure_grayscale(left), ensure_grayscale(right)
    return left, right


def compute_disparity(
    left: np.ndarray,
    right: np.ndarray,
    algorithm: Union[StereoAlgorithm, str] = StereoAlgorithm.SGBM,
    max_disparity: int = StereoConstants.MAX_DISPARITY_DEFAULT,
    window_size: Optional[int] = None,
) -> np.ndarray:
    """
    Disparity of the left view in pixels.

    Returns:
        float32 map; unmatched pixels are negative
    """
    algorithm = StereoAlgorithm(algorithm)
    matcher = create_matcher(algorithm, max_disparity, window_size)
    left, right = _prepare(left, right, algorithm)

    disparity = matcher.compute(left, right).astype(np.float32) / 16.0
    logger.debug(f"{algorithm.value} disparity range {disparity.min():.1f}..{disparity.max():.1f}")
    return disparity


def wls_available() -> bool:
    """The WLS filter lives in the contrib ximgproc module."""
    return hasattr(cv2, "ximgproc")


def wls_filter(
    matcher,
    disparity_left: np.ndarray,
    left: np.ndarray,
    disparity_right: np.ndarray,
    lambda_: float = StereoConstants.WLS_LAMBDA,
    sigma: float = StereoConstants.WLS_SIGMA,
) -> np.ndarray:
    """
    Edge-aware smoothing of raw fixed-point disparities guided by the left image.

    Args:
        matcher: The left matcher that produced disparity_left
        disparity_left: Raw int16 left disparity (x16)
        left: Left guide image
        disparity_right: Raw int16 disparity of the matching right matcher
        lambda_: Regularization strength
        sigma: Sensitivity to guide image edges

    Raises:
        RuntimeError: If cv2.ximgproc is not available
    """
    if not wls_available():
        raise RuntimeError("WLS filtering requires opencv-contrib (cv2.ximgproc)")

    wls = cv2.ximgproc.createDisparityWLSFilter(matcher)
    wls.setLambda(lambda_)
    wls.setSigmaColor(sigma)
    filtered = wls.filter(disparity_left, left, disparity_map_right=disparity_right)
    return filtered.astype(np.float32) / 16.0


def compute_filtered_disparity(
    left: np.ndarray,
    right: np.ndarray,
    algorithm: Union[StereoAlgorithm, str] = StereoAlgorithm.SGBM,
    max_disparity: int = StereoConstants.MAX_DISPARITY_DEFAULT,
    window_size: Optional[int] = None,
    lambda_: float = StereoConstants.WLS_LAMBDA,
    sigma: float = StereoConstants.WLS_SIGMA,
) -> np.ndarray:
    """Left and right matching followed by WLS filtering, in pixels."""
    if not wls_available():
        raise RuntimeError("WLS filtering requires opencv-contrib (cv2.ximgproc)")

    algorithm = StereoAlgorithm(algorithm)
    left_matcher = create_matcher(algorithm, max_disparity, window_size)
    right_matcher = cv2.ximgproc.createRightMatcher(left_matcher)
    left_in, right_in = _prepare(left, right, algorithm)

    disparity_left = left_matcher.compute(left_in, right_in)
    disparity_right = right_matcher.compute(right_in, left_in)
    return wls_filter(left_matcher, disparity_left, left_in, disparity_right, lambda_, sigma)


def disparity_to_image(
    disparity: np.ndarray, max_disparity: int = StereoConstants.MAX_DISPARITY_DEFAULT
) -> np.ndarray:
    """Disparity scaled from 0..max_disparity to 0..255 (invalid pixels black)."""
    if max_disparity <= 0:
        raise ValueError(f"max_disparity must be positive, got {max_disparity}")
    scaled = np.clip(disparity, 0, max_disparity) / float(max_disparity) * 255.0
    return np.rint(scaled).astype(np.uint8)
