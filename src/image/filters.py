"""
Neighborhood operations: fixed convolution kernels and smoothing filters.
"""

import logging
from typing import Union

import cv2
import numpy as np

from domain_types import BlurMethod, KernelType, VisionConstants

logger = logging.getLogger(__name__)

_KERNELS = {
    KernelType.BOX: np.full((3, 3), 1.0 / 9.0, dtype=np.float32),
    KernelType.SOBEL_X: np.array([[1, 0, -1], [2, 0, -2], [1, 0, -1]], dtype=np.float32),
    KernelType.SOBEL_Y: np.array([[1, 2, 1], [0, 0, 0], [-1, -2, -1]], dtype=np.float32),
    KernelType.LAPLACIAN: np.array([[0, 1, 0], [1, -4, 1], [0, 1, 0]], dtype=np.float32),
    KernelType.SHARPEN: np.array([[0, -1, 0], [-1, 5, -1], [0, -1, 0]], dtype=np.float32),
}


def get_kernel(kind: Union[KernelType, str]) -> np.ndarray:
    """Copy of one of the predefined 3x3 kernels."""
    return _KERNELS[KernelType(kind)].copy()


def apply_kernel(image: np.ndarray, kernel: Union[KernelType, str, np.ndarray]) -> np.ndarray:
    """
    Correlate image with a kernel on float data.

    Args:
        image: Input image
        kernel: Predefined kernel name or explicit 2D array

    Returns:
        float32 response (may be negative)
    """
    if isinstance(kernel, np.ndarray):
        if kernel.ndim != 2:
            raise ValueError(f"Kernel must be 2D, got shape {kernel.shape}")
        weights = kernel.astype(np.float32)
    else:
        weights = get_kernel(kernel)

    return cv2.filter2D(image.astype(np.float32), -1, weights)


def to_display(response: np.ndarray) -> np.ndarray:
    """Absolute value saturated to uint8."""
    return cv2.convertScaleAbs(response)


def validate_kernel_size(kernel_size: int) -> int:
    """Smoothing kernels must be odd and within the supported range."""
    if kernel_size % 2 == 0:
        raise ValueError(f"Kernel size must be odd, got {kernel_size}")
    if not VisionConstants.BLUR_SIZE_MIN <= kernel_size <= VisionConstants.BLUR_SIZE_MAX:
        raise ValueError(
            f"Kernel size must be between {VisionConstants.BLUR_SIZE_MIN} and "
            f"{VisionConstants.BLUR_SIZE_MAX}, got {kernel_size}"
        )
    return kernel_size


def smooth(
    image: np.ndarray,
    method: Union[BlurMethod, str] = BlurMethod.GAUSSIAN,
    kernel_size: int = VisionConstants.BLUR_SIZE_DEFAULT,
) -> np.ndarray:
    """
    Smooth an image.

    The bilateral filter uses the kernel size as its diameter with
    sigmaColor = 2k and sigmaSpace = k/2.
    """
    method = BlurMethod(method)
    k = validate_kernel_size(kernel_size)

    if method == BlurMethod.BOX:
        return cv2.blur(image, (k, k))
    if method == BlurMethod.GAUSSIAN:
        return cv2.GaussianBlur(image, (k, k), 0)
    if method == BlurMethod.MEDIAN:
        return cv2.medianBlur(image, k)
    return cv2.bilateralFilter(image, k, k * 2, k / 2)
