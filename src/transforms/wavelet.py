"""
Haar wavelet transform with shrinkage-based denoising.

The transform works in place on a single float plane. Every level splits the
current approximation region (top-left, halved each level) into four quadrants:

    +------+------+
    |  c   |  dh  |     c  = approximation
    +------+------+     dh = horizontal detail
    |  dv  |  dd  |     dv = vertical detail
    +------+------+     dd = diagonal detail

Denoising shrinks the three detail bands while reconstructing, the
approximation band is never modified.
"""

import logging
from typing import Union

import cv2
import numpy as np

from domain_types import ShrinkageType, TransformConstants
from image.converters import normalize_to_uint8, to_uint8

logger = logging.getLogger(__name__)


def _parse_shrinkage(shrinkage: Union[ShrinkageType, str]) -> ShrinkageType:
    if isinstance(shrinkage, ShrinkageType):
        return shrinkage
    return ShrinkageType(str(shrinkage).lower())


def shrink(
    coefficients: np.ndarray,
    threshold: float,
    shrinkage: Union[ShrinkageType, str] = ShrinkageType.HARD,
) -> np.ndarray:
    """
    Apply a shrinkage rule to detail coefficients.

    For a coefficient d and threshold T, every rule maps |d| <= T to 0:
        hard:    d
        soft:    sign(d) * (|d| - T)
        garrote: d - T^2 / d

    Args:
        coefficients: Detail coefficients (any shape)
        threshold: Non-negative threshold T
        shrinkage: Rule to apply; NONE returns an unchanged copy

    Returns:
        New float32 array with the shrunk coefficients
    """
    if threshold < 0:
        raise ValueError(f"Shrinkage threshold must be non-negative, got {threshold}")

    rule = _parse_shrinkage(shrinkage)
    d = np.asarray(coefficients, dtype=np.float32)

    if rule == ShrinkageType.NONE:
        return d.copy()

    keep = np.abs(d) > threshold

    if rule == ShrinkageType.HARD:
        result = np.where(keep, d, 0.0)
    elif rule == ShrinkageType.SOFT:
        result = np.where(keep, np.sign(d) * (np.abs(d) - threshold), 0.0)
    else:
        # keep implies |d| > T >= 0, so the substituted 1.0 is never used
        safe = np.where(keep, d, 1.0)
        result = np.where(keep, d - (threshold * threshold) / safe, 0.0)

    return result.astype(np.float32)


def _check_plane(image: np.ndarray, levels: int) -> np.ndarray:
    if levels < 0:
        raise ValueError(f"Decomposition levels must be non-negative, got {levels}")

    plane = np.asarray(image)
    if plane.ndim != 2:
        raise ValueError(f"Haar transform expects a single-channel image, got shape {plane.shape}")

    height, width = plane.shape
    block = 1 << levels
    if height % block or width % block:
        raise ValueError(
            f"Image size {width}x{height} is not divisible by 2^{levels}={block}; "
            "pad it with pad_for_levels() first"
        )
    return plane.astype(np.float32, copy=True)


def haar_forward(image: np.ndarray, levels: int) -> np.ndarray:
    """
    Multi-level forward Haar transform.

    Args:
        image: Single-channel image whose sides are divisible by 2**levels
        levels: Number of decomposition levels (0 returns a float copy)

    Returns:
        float32 coefficient plane of the same size as image
    """
    out = _check_plane(image, levels)
    height, width = out.shape

    for k in range(levels):
        half_h, half_w = height >> (k + 1), width >> (k + 1)
        region = out[: 2 * half_h, : 2 * half_w]

        p00 = region[0::2, 0::2]
        p01 = region[0::2, 1::2]
        p10 = region[1::2, 0::2]
        p11 = region[1::2, 1::2]

        c = (p00 + p01 + p10 + p11) * 0.5
        dh = (p00 + p10 - p01 - p11) * 0.5
        dv = (p00 + p01 - p10 - p11) * 0.5
        dd = (p00 - p01 - p10 + p11) * 0.5

        out[:half_h, :half_w] = c
        out[:half_h, half_w : 2 * half_w] = dh
        out[half_h : 2 * half_h, :half_w] = dv
        out[half_h : 2 * half_h, half_w : 2 * half_w] = dd

    return out


def haar_inverse(
    coefficients: np.ndarray,
    levels: int,
    shrinkage: Union[ShrinkageType, str] = ShrinkageType.NONE,
    threshold: float = TransformConstants.WAVELET_THRESHOLD_DEFAULT,
) -> np.ndarray:
    """
    Multi-level inverse Haar transform with optional detail shrinkage.

    Reconstructs from the coarsest level to the finest. With shrinkage NONE
    this is the exact inverse of haar_forward.

    Args:
        coefficients: Coefficient plane produced by haar_forward
        levels: Number of levels used by the forward transform
        shrinkage: Rule applied to dh, dv and dd at every level
        threshold: Shrinkage threshold

    Returns:
        float32 reconstructed plane
    """
    out = _check_plane(coefficients, levels)
    rule = _parse_shrinkage(shrinkage)
    height, width = out.shape

    for k in range(levels, 0, -1):
        half_h, half_w = height >> k, width >> k

        c = out[:half_h, :half_w].copy()
        dh = shrink(out[:half_h, half_w : 2 * half_w], threshold, rule)
        dv = shrink(out[half_h : 2 * half_h, :half_w], threshold, rule)
        dd = shrink(out[half_h : 2 * half_h, half_w : 2 * half_w], threshold, rule)

        region = np.empty((2 * half_h, 2 * half_w), dtype=np.float32)
        region[0::2, 0::2] = 0.5 * (c + dh + dv + dd)
        region[0::2, 1::2] = 0.5 * (c - dh + dv - dd)
        region[1::2, 0::2] = 0.5 * (c + dh - dv - dd)
        region[1::2, 1::2] = 0.5 * (c - dh - dv + dd)

        out[: 2 * half_h, : 2 * half_w] = region

    return out


def pad_for_levels(image: np.ndarray, levels: int) -> np.ndarray:
    """
    Replicate-pad the bottom and right edges up to a multiple of 2**levels.
    """
    block = 1 << levels
    height, width = image.shape[:2]
    pad_bottom = (-height) % block
    pad_right = (-width) % block

    if pad_bottom == 0 and pad_right == 0:
        return image
    return cv2.copyMakeBorder(image, 0, pad_bottom, 0, pad_right, cv2.BORDER_REPLICATE)


def wavelet_denoise(
    image: np.ndarray,
    levels: int = TransformConstants.WAVELET_LEVELS_DEFAULT,
    shrinkage: Union[ShrinkageType, str] = ShrinkageType.GARROTE,
    threshold: float = TransformConstants.WAVELET_DENOISE_THRESHOLD,
) -> np.ndarray:
    """
    Denoise an image by shrinking its Haar detail coefficients.

    Color images are processed channel by channel. The result has the input
    size and is saturated to uint8.
    """
    height, width = image.shape[:2]
    padded = pad_for_levels(image, levels)

    if padded.ndim == 2:
        planes = [padded]
    else:
        planes = list(cv2.split(padded))

    restored = []
    for plane in planes:
        coefficients = haar_forward(plane, levels)
        restored.append(haar_inverse(coefficients, levels, shrinkage, threshold))

    result = restored[0] if len(restored) == 1 else cv2.merge(restored)
    logger.debug(
        f"Wavelet denoise: {levels} levels, {_parse_shrinkage(shrinkage).value} "
        f"shrinkage, threshold {threshold}"
    )
    return to_uint8(result[:height, :width])


def coefficients_to_image(coefficients: np.ndarray) -> np.ndarray:
    """Min-max normalize a coefficient plane for display."""
    return normalize_to_uint8(coefficients)
