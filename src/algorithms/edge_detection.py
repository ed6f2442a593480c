"""
Edge detection algorithms.
"""

from typing import Any, Dict, List, Optional, Union

import cv2
import numpy as np

from algorithms.base_detector import BaseDetector
from domain_types import EdgeMethod, KernelType, VisionConstants, VisionObjectType
from image.filters import apply_kernel
from image.geometry import calculate_contour_properties
from image.overlay import render_contours
from schemas.common import VisionObject


class EdgeDetector(BaseDetector):
    """Edge detection followed by extraction of the external edge contours."""

    def detect(
        self,
        image: np.ndarray,
        method: Union[EdgeMethod, str] = EdgeMethod.CANNY,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Perform edge detection on image.

        Args:
            image: Input image (BGR or grayscale)
            method: Edge detection method
            params: Method-specific parameters

        Returns:
            Detection result; metadata["edges"] holds the raw edge image
        """
        if params is None:
            params = {}
        method = EdgeMethod(method)

        gray = self._ensure_grayscale(image)

        if method == EdgeMethod.CANNY:
            edges = self._detect_canny(gray, params)
        elif method == EdgeMethod.SOBEL:
            edges = self._detect_sobel(gray, params)
        elif method == EdgeMethod.SOBEL_MANUAL:
            edges = self._detect_sobel_manual(gray, params)
        elif method == EdgeMethod.LAPLACIAN:
            edges = self._detect_laplacian(gray, params)
        else:
            edges = self._detect_scharr(gray, params)

        # Gradient methods give a magnitude image; contours need a binary one
        if method == EdgeMethod.CANNY:
            binary = edges
        else:
            threshold = float(params.get("edge_threshold", 50.0))
            binary = np.where(edges > threshold, 255, 0).astype(np.uint8)

        contours, _ = cv2.findContours(binary, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        objects = self._contours_to_objects(self._filter_contours(contours, params), method)

        annotated = render_contours(image, objects, show_centers=params.get("show_centers", True))
        self.logger.debug(f"{method.value}: {len(objects)} edge contours")

        return self._create_result(
            True,
            objects,
            annotated,
            {"method": method.value, "edges": edges, "contour_count": len(objects)},
        )

    def _detect_canny(self, gray: np.ndarray, params: Dict[str, Any]) -> np.ndarray:
        low = params.get("canny_low", VisionConstants.CANNY_LOW_THRESHOLD_DEFAULT)
        high = params.get("canny_high", VisionConstants.CANNY_HIGH_THRESHOLD_DEFAULT)
        aperture = int(params.get("canny_aperture", 3))
        return cv2.Canny(gray, low, high, apertureSize=aperture)

    def _detect_sobel(self, gray: np.ndarray, params: Dict[str, Any]) -> np.ndarray:
        """|dI/dx| and |dI/dy| blended with equal weights."""
        ksize = int(params.get("sobel_kernel", 3))
        grad_x = cv2.convertScaleAbs(cv2.Sobel(gray, cv2.CV_16S, 1, 0, ksize=ksize))
        grad_y = cv2.convertScaleAbs(cv2.Sobel(gray, cv2.CV_16S, 0, 1, ksize=ksize))
        return cv2.addWeighted(grad_x, 0.5, grad_y, 0.5, 0)

    def _detect_sobel_manual(self, gray: np.ndarray, params: Dict[str, Any]) -> np.ndarray:
        """Same blend with the hand-written 3x3 Sobel kernels."""
        grad_x = cv2.convertScaleAbs(apply_kernel(gray, KernelType.SOBEL_X))
        grad_y = cv2.convertScaleAbs(apply_kernel(gray, KernelType.SOBEL_Y))
        return cv2.addWeighted(grad_x, 0.5, grad_y, 0.5, 0)

    def _detect_laplacian(self, gray: np.ndarray, params: Dict[str, Any]) -> np.ndarray:
        ksize = int(params.get("laplacian_kernel", 3))
        return cv2.convertScaleAbs(cv2.Laplacian(gray, cv2.CV_16S, ksize=ksize))

    def _detect_scharr(self, gray: np.ndarray, params: Dict[str, Any]) -> np.ndarray:
        grad_x = cv2.convertScaleAbs(cv2.Scharr(gray, cv2.CV_16S, 1, 0))
        grad_y = cv2.convertScaleAbs(cv2.Scharr(gray, cv2.CV_16S, 0, 1))
        return cv2.addWeighted(grad_x, 0.5, grad_y, 0.5, 0)

    def _filter_contours(self, contours, params: Dict[str, Any]) -> List[np.ndarray]:
        """Drop small contours, sort by area and keep the largest."""
        min_area = float(params.get("min_contour_area", VisionConstants.MIN_CONTOUR_AREA_DEFAULT))
        max_contours = int(params.get("max_contours", VisionConstants.MAX_CONTOURS_DEFAULT))

        kept = [c for c in contours if cv2.contourArea(c) >= min_area]
        kept.sort(key=cv2.contourArea, reverse=True)
        return kept[:max_contours]

    def _contours_to_objects(self, contours, method: EdgeMethod) -> List[VisionObject]:
        objects = []
        for i, contour in enumerate(contours):
            perimeter = calculate_contour_properties(contour)["perimeter"]
            epsilon = VisionConstants.CONTOUR_APPROX_EPSILON_FACTOR * perimeter
            approx = cv2.approxPolyDP(contour, epsilon, True)
            objects.append(
                self._contour_to_object(
                    contour,
                    f"contour_{i}",
                    VisionObjectType.EDGE_CONTOUR,
                    {"method": method.value, "vertex_count": len(approx)},
                )
            )
        return objects
