"""
Discrete Fourier transform helpers.

Spectra are OpenCV two-channel float32 arrays (real, imaginary) of shape
(rows, cols, 2).
"""

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from domain_types import TransformConstants
from image.converters import ensure_grayscale, normalize_to_uint8

logger = logging.getLogger(__name__)


def pad_to_optimal_size(image: np.ndarray) -> np.ndarray:
    """Zero-pad bottom/right edges to the fastest DFT size."""
    rows, cols = image.shape[:2]
    optimal_rows = cv2.getOptimalDFTSize(rows)
    optimal_cols = cv2.getOptimalDFTSize(cols)
    return cv2.copyMakeBorder(
        image,
        0,
        optimal_rows - rows,
        0,
        optimal_cols - cols,
        cv2.BORDER_CONSTANT,
        value=0,
    )


def compute_dft(image: np.ndarray, pad: bool = True) -> np.ndarray:
    """
    Complex DFT of the grayscale version of image.

    Args:
        image: Input image (converted to grayscale)
        pad: Pad to the optimal DFT size first

    Returns:
        float32 array of shape (rows, cols, 2)
    """
    gray = ensure_grayscale(image)
    if pad:
        gray = pad_to_optimal_size(gray)
    return cv2.dft(np.float32(gray), flags=cv2.DFT_COMPLEX_OUTPUT)


def fft_shift(spectrum: np.ndarray) -> np.ndarray:
    """
    Move the zero frequency to the center.

    The spectrum is cropped to even dimensions first, then quadrants are
    swapped diagonally. Applying it twice gives back the cropped input.
    """
    rows, cols = spectrum.shape[:2]
    cropped = spectrum[: rows & -2, : cols & -2]
    cy, cx = cropped.shape[0] // 2, cropped.shape[1] // 2
    return np.roll(cropped, shift=(cy, cx), axis=(0, 1))


def magnitude_spectrum(dft: np.ndarray, shift: bool = True) -> np.ndarray:
    """
    Displayable log-magnitude spectrum, log(1 + |F|) stretched to uint8.
    """
    magnitude = np.hypot(dft[:, :, 0], dft[:, :, 1])
    log_magnitude = np.log1p(magnitude)
    if shift:
        log_magnitude = fft_shift(log_magnitude)
    return normalize_to_uint8(log_magnitude)


def inverse_dft(dft: np.ndarray, shape: Optional[Tuple[int, int]] = None) -> np.ndarray:
    """
    Scaled real inverse DFT.

    Args:
        dft: Complex spectrum
        shape: Optional (rows, cols) to crop padding away

    Returns:
        float32 spatial image
    """
    spatial = cv2.idft(dft, flags=cv2.DFT_SCALE | cv2.DFT_REAL_OUTPUT)
    if shape is not None:
        spatial = spatial[: shape[0], : shape[1]]
    return spatial


def basis_wave(
    u: int,
    v: int,
    width: int = TransformConstants.BASIS_WAVE_SIZE,
    height: int = TransformConstants.BASIS_WAVE_SIZE,
) -> np.ndarray:
    """
    Fourier basis function Z(x, y) = cos(2*pi*(u*x/M + v*y/N)).

    u oscillations across the columns, v across the rows; values in [-1, 1].
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Basis wave size must be positive, got {width}x{height}")

    x = np.arange(width, dtype=np.float64)[np.newaxis, :]
    y = np.arange(height, dtype=np.float64)[:, np.newaxis]
    return np.cos(2.0 * np.pi * (u * x / width + v * y / height)).astype(np.float32)


def partial_reconstruction(image: np.ndarray, max_frequency: int) -> np.ndarray:
    """
    Rebuild an image from its low (u, v) coefficients only.

    Every coefficient (v, u) with u, v <= max_frequency is kept together with
    its complex conjugate at ((cols - u) % cols, (rows - v) % rows), so the
    inverse stays real. With max_frequency >= max(rows, cols) - 1 the image
    is reproduced.

    Returns:
        float32 reconstruction cropped to the input size
    """
    if max_frequency < 0:
        raise ValueError(f"max_frequency must be non-negative, got {max_frequency}")

    gray = ensure_grayscale(image)
    dft = compute_dft(gray, pad=False)
    rows, cols = dft.shape[:2]

    u = np.arange(min(max_frequency, cols - 1) + 1)
    v = np.arange(min(max_frequency, rows - 1) + 1)
    vv, uu = np.meshgrid(v, u, indexing="ij")

    partial = np.zeros_like(dft)
    partial[vv, uu] = dft[vv, uu]

    conj_v = (rows - vv) % rows
    conj_u = (cols - uu) % cols
    partial[conj_v, conj_u, 0] = dft[vv, uu, 0]
    partial[conj_v, conj_u, 1] = -dft[vv, uu, 1]

    logger.debug(f"Partial reconstruction with {u.size}x{v.size} frequencies")
    return inverse_dft(partial, gray.shape[:2])


def frequency_filter(image: np.ndarray, radius: int, high_pass: bool = False) -> np.ndarray:
    """
    Ideal circular low-pass (or high-pass) filter in the frequency domain.

    Returns:
        float32 filtered image with the input size
    """
    if radius <= 0:
        raise ValueError(f"Filter radius must be positive, got {radius}")

    gray = ensure_grayscale(image)
    dft = compute_dft(gray, pad=False)
    rows, cols = dft.shape[:2]

    # Distances to the zero frequency on the unshifted layout
    fy = np.minimum(np.arange(rows), rows - np.arange(rows))[:, np.newaxis]
    fx = np.minimum(np.arange(cols), cols - np.arange(cols))[np.newaxis, :]
    inside = (fx * fx + fy * fy) <= radius * radius
    mask = ~inside if high_pass else inside

    filtered = dft * mask[:, :, np.newaxis].astype(np.float32)
    return inverse_dft(filtered, gray.shape[:2])
