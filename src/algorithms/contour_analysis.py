"""
Thresholding and contour analysis with image moments.
"""

from typing import Any, Dict, Optional, Union

import cv2
import numpy as np

from algorithms.base_detector import BaseDetector
from domain_types import ThresholdMethod, VisionConstants, VisionObjectType
from image.overlay import render_contours

_SPATIAL_MOMENTS = ("m00", "m10", "m01", "m20", "m11", "m02", "m30", "m21", "m12", "m03")
_CENTRAL_MOMENTS = ("mu20", "mu11", "mu02", "mu30", "mu21", "mu12", "mu03")
_NORMALIZED_MOMENTS = ("nu20", "nu11", "nu02", "nu30", "nu21", "nu12", "nu03")


def split_moments(moments: Dict[str, float]) -> Dict[str, Dict[str, float]]:
    """Group a cv2.moments dictionary into spatial, central and normalized parts."""
    return {
        "spatial": {name: float(moments[name]) for name in _SPATIAL_MOMENTS},
        "central": {name: float(moments[name]) for name in _CENTRAL_MOMENTS},
        "normalized": {name: float(moments[name]) for name in _NORMALIZED_MOMENTS},
    }


class ThresholdDetector(BaseDetector):
    """Global, Otsu and adaptive binarization."""

    def detect(
        self,
        image: np.ndarray,
        method: Union[ThresholdMethod, str] = ThresholdMethod.BINARY,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Binarize image.

        Params:
            threshold: Fixed threshold for BINARY (default 100)
            max_value: Value given to foreground pixels (default 255)
            block_size, c: Neighbourhood and offset for ADAPTIVE (default 11, 2)

        Returns:
            Result whose image is the binary mask; metadata["threshold"] is the
            value used (computed by Otsu, None for ADAPTIVE)
        """
        if params is None:
            params = {}
        method = ThresholdMethod(method)

        gray = self._ensure_grayscale(image)
        max_value = int(params.get("max_value", 255))
        used: Optional[float]

        if method == ThresholdMethod.BINARY:
            value = float(params.get("threshold", VisionConstants.BINARY_THRESHOLD_DEFAULT))
            used, binary = cv2.threshold(gray, value, max_value, cv2.THRESH_BINARY)
        elif method == ThresholdMethod.OTSU:
            used, binary = cv2.threshold(gray, 0, max_value, cv2.THRESH_OTSU)
        elif method == ThresholdMethod.BINARY_OTSU:
            used, binary = cv2.threshold(
                gray, 0, max_value, cv2.THRESH_BINARY + cv2.THRESH_OTSU
            )
        else:
            block_size = int(params.get("block_size", 11))
            if block_size < 3 or block_size % 2 == 0:
                raise ValueError(f"Adaptive block size must be odd and >= 3, got {block_size}")
            c = float(params.get("c", 2.0))
            binary = cv2.adaptiveThreshold(
                gray, max_value, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, block_size, c
            )
            used = None

        foreground = int(cv2.countNonZero(binary))
        self.logger.debug(f"{method.value} threshold={used}, foreground={foreground}")

        return self._create_result(
            True,
            [],
            binary,
            {
                "method": method.value,
                "threshold": float(used) if used is not None else None,
                "foreground_pixels": foreground,
            },
        )


class ContourDetector(BaseDetector):
    """Canny edges, full contour hierarchy and per-contour moments."""

    def detect(
        self, image: np.ndarray, params: Optional[Dict[str, Any]] = None, **kwargs
    ) -> Dict[str, Any]:
        """
        Find contours and describe them.

        Each object carries area, arc length, centroid, the spatial, central
        and normalized moments and the seven Hu invariants.
        """
        if params is None:
            params = {}

        blur = int(params.get("blur_kernel", 5))
        low = params.get("canny_low", 50)
        high = params.get("canny_high", 100)
        min_area = float(params.get("min_contour_area", 0.0))
        max_contours = int(params.get("max_contours", VisionConstants.MAX_CONTOURS_DEFAULT))

        gray = self._ensure_grayscale(image)
        if blur > 1:
            gray = cv2.GaussianBlur(gray, (blur, blur), 0)
        edges = cv2.Canny(gray, low, high)

        contours, hierarchy = cv2.findContours(edges, cv2.RETR_TREE, cv2.CHAIN_APPROX_SIMPLE)

        objects = []
        for i, contour in enumerate(contours):
            if len(objects) >= max_contours:
                break
            moments = cv2.moments(contour)
            if moments["m00"] < min_area:
                continue

            properties = split_moments(moments)
            properties["hu"] = [float(v) for v in cv2.HuMoments(moments).flatten()]
            properties["parent"] = int(hierarchy[0][i][3])

            objects.append(
                self._contour_to_object(
                    contour, f"contour_{i}", VisionObjectType.CONTOUR, properties
                )
            )

        self.logger.debug(f"Contour analysis: {len(contours)} contours, {len(objects)} reported")
        return self._create_result(
            True,
            objects,
            render_contours(image, objects),
            {"total_contours": len(contours), "edges": edges},
        )
