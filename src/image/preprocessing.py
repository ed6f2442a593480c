"""
Preprocessing pipeline built from independent operations.

Each operation is a small strategy object that decides from the parameter
dictionary whether it runs. Operations always run in the same order so a
given parameter set gives a deterministic result:

1. Grayscale conversion
2. Smoothing (box, Gaussian, median or bilateral)
3. Histogram equalization
4. Thresholding
5. Morphology
6. Inversion

Usage:
    pipeline = PreprocessingPipeline()
    processed, applied = pipeline.process(image, {"smooth_enabled": True})
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import cv2
import numpy as np

from domain_types import BlurMethod, MorphOperation, PixelConstants, VisionConstants
from image.converters import ensure_grayscale
from image.filters import smooth
from image.histogram import equalize
from image.pixel import invert

logger = logging.getLogger(__name__)


class PreprocessOperation(ABC):
    """One step of the preprocessing pipeline."""

    @abstractmethod
    def apply(self, image: np.ndarray, params: Dict[str, Any]) -> np.ndarray:
        """Apply the step to image."""

    @abstractmethod
    def is_enabled(self, params: Dict[str, Any]) -> bool:
        """Whether params switch this step on."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Name reported in the applied operations list."""


class GrayscaleOperation(PreprocessOperation):
    def apply(self, image: np.ndarray, params: Dict[str, Any]) -> np.ndarray:
        return ensure_grayscale(image)

    def is_enabled(self, params: Dict[str, Any]) -> bool:
        return params.get("grayscale_enabled", False)

    @property
    def name(self) -> str:
        return "grayscale"


class SmoothOperation(PreprocessOperation):
    """Noise reduction through image.filters.smooth."""

    def apply(self, image: np.ndarray, params: Dict[str, Any]) -> np.ndarray:
        method = params.get("smooth_method", BlurMethod.GAUSSIAN)
        kernel_size = int(params.get("smooth_kernel", VisionConstants.BLUR_SIZE_DEFAULT))
        return smooth(image, method, kernel_size)

    def is_enabled(self, params: Dict[str, Any]) -> bool:
        return params.get("smooth_enabled", False)

    @property
    def name(self) -> str:
        return "smooth"


class EqualizeOperation(PreprocessOperation):
    def apply(self, image: np.ndarray, params: Dict[str, Any]) -> np.ndarray:
        return equalize(image)

    def is_enabled(self, params: Dict[str, Any]) -> bool:
        return params.get("equalize_enabled", False)

    @property
    def name(self) -> str:
        return "equalize"


class ThresholdOperation(PreprocessOperation):
    """Fixed or Otsu binarization; always yields a single-channel image."""

    def apply(self, image: np.ndarray, params: Dict[str, Any]) -> np.ndarray:
        gray = ensure_grayscale(image)
        if params.get("threshold_otsu", False):
            _, result = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        else:
            value = int(params.get("threshold_value", PixelConstants.THRESHOLD_DEFAULT))
            _, result = cv2.threshold(gray, value, 255, cv2.THRESH_BINARY)
        return result

    def is_enabled(self, params: Dict[str, Any]) -> bool:
        return params.get("threshold_enabled", False)

    @property
    def name(self) -> str:
        return "threshold"


class MorphologyOperation(PreprocessOperation):
    """Erode, dilate, open or close with a rectangular (2n+1) element."""

    OPERATIONS = {
        MorphOperation.ERODE: cv2.MORPH_ERODE,
        MorphOperation.DILATE: cv2.MORPH_DILATE,
        MorphOperation.OPEN: cv2.MORPH_OPEN,
        MorphOperation.CLOSE: cv2.MORPH_CLOSE,
    }

    def apply(self, image: np.ndarray, params: Dict[str, Any]) -> np.ndarray:
        operation = MorphOperation(params.get("morphology_operation", MorphOperation.CLOSE))
        if operation not in self.OPERATIONS:
            raise ValueError(f"Unsupported pipeline morphology operation: {operation.value}")
        size = int(params.get("morphology_size", VisionConstants.MORPH_SIZE_DEFAULT))
        kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (2 * size + 1, 2 * size + 1))
        return cv2.morphologyEx(image, self.OPERATIONS[operation], kernel)

    def is_enabled(self, params: Dict[str, Any]) -> bool:
        return params.get("morphology_enabled", False)

    @property
    def name(self) -> str:
        return "morphology"


class InvertOperation(PreprocessOperation):
    def apply(self, image: np.ndarray, params: Dict[str, Any]) -> np.ndarray:
        return invert(image)

    def is_enabled(self, params: Dict[str, Any]) -> bool:
        return params.get("invert_enabled", False)

    @property
    def name(self) -> str:
        return "invert"


class PreprocessingPipeline:
    """Applies the enabled operations in a fixed order."""

    def __init__(self):
        self.operations: List[PreprocessOperation] = [
            GrayscaleOperation(),
            SmoothOperation(),
            EqualizeOperation(),
            ThresholdOperation(),
            MorphologyOperation(),
            InvertOperation(),
        ]

    def process(
        self, image: np.ndarray, params: Optional[Dict[str, Any]]
    ) -> Tuple[np.ndarray, List[str]]:
        """
        Apply enabled operations to image.

        Args:
            image: Input image (BGR or grayscale)
            params: Dictionary of operation switches and parameters

        Returns:
            Tuple of (processed_image, list_of_applied_operation_names)
        """
        if params is None:
            params = {}

        result = image.copy()
        applied: List[str] = []

        for op in self.operations:
            if op.is_enabled(params):
                try:
                    result = op.apply(result, params)
                except Exception as e:
                    logger.error(f"Failed to apply {op.name}: {e}")
                    raise
                applied.append(op.name)
                logger.debug(f"Applied preprocessing: {op.name}")

        if not applied:
            logger.debug("No preprocessing operations applied")

        return result, applied

    def get_available_operations(self) -> List[str]:
        return [op.name for op in self.operations]
