"""
Discrete cosine transform and low-frequency compression.
"""

import logging
from dataclasses import dataclass

import cv2
import numpy as np

from domain_types import TransformConstants
from image.converters import ensure_grayscale, normalize_to_uint8, to_uint8

logger = logging.getLogger(__name__)


@dataclass
class DctCompression:
    """Result of keeping only the low-frequency DCT block."""

    image: np.ndarray
    keep: int
    compression_ratio: float
    psnr: float


def pad_to_even(image: np.ndarray) -> np.ndarray:
    """cv2.dct needs even dimensions; replicate the last row/column if odd."""
    rows, cols = image.shape[:2]
    return cv2.copyMakeBorder(image, 0, rows % 2, 0, cols % 2, cv2.BORDER_REPLICATE)


def compute_dct(image: np.ndarray) -> np.ndarray:
    """DCT of the grayscale image scaled to [0, 1]."""
    gray = pad_to_even(ensure_grayscale(image))
    return cv2.dct(gray.astype(np.float32) / 255.0)


def inverse_dct(coefficients: np.ndarray) -> np.ndarray:
    """Inverse DCT back to an 8-bit image."""
    return to_uint8(cv2.idct(np.float32(coefficients)) * 255.0)


def dct_spectrum(coefficients: np.ndarray) -> np.ndarray:
    """log(1 + |c|) visualization of DCT coefficients."""
    return normalize_to_uint8(np.log1p(np.abs(coefficients)))


def compress(image: np.ndarray, keep: int = TransformConstants.DCT_KEEP_DEFAULT) -> DctCompression:
    """
    Zero every coefficient outside the top-left keep x keep block.

    Args:
        image: Input image (converted to grayscale)
        keep: Side of the retained low-frequency block, clamped to the image size

    Returns:
        DctCompression with the reconstruction cropped to the input size
    """
    if keep <= 0:
        raise ValueError(f"keep must be positive, got {keep}")

    gray = ensure_grayscale(image)
    coefficients = compute_dct(gray)
    rows, cols = coefficients.shape
    keep = min(keep, rows, cols)

    compressed = np.zeros_like(coefficients)
    compressed[:keep, :keep] = coefficients[:keep, :keep]

    reconstruction = inverse_dct(compressed)[: gray.shape[0], : gray.shape[1]]
    ratio = float(rows * cols) / float(keep * keep)
    psnr = float(cv2.PSNR(gray, np.ascontiguousarray(reconstruction)))

    logger.debug(f"DCT compression keep={keep}: ratio {ratio:.1f}:1, PSNR {psnr:.2f} dB")
    return DctCompression(
        image=reconstruction, keep=keep, compression_ratio=ratio, psnr=psnr
    )
