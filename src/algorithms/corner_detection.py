"""
Harris corner detection.
"""

from typing import Any, Dict, Optional

import cv2
import numpy as np

from algorithms.base_detector import BaseDetector
from domain_types import ROI, Point, VisionConstants, VisionObjectType
from image.converters import normalize_to_uint8
from image.overlay import render_points


class CornerDetector(BaseDetector):
    """Harris response, normalized to 0..255 and thresholded."""

    def detect(
        self, image: np.ndarray, params: Optional[Dict[str, Any]] = None, **kwargs
    ) -> Dict[str, Any]:
        """
        Detect corners.

        Params:
            block_size: Neighbourhood size (default 2)
            aperture: Sobel aperture (default 3)
            k: Harris free parameter (default 0.04)
            threshold: Normalized response above which a pixel is a corner (default 200)
            max_corners: Upper bound on returned corners, strongest first
        """
        if params is None:
            params = {}

        block_size = int(params.get("block_size", VisionConstants.HARRIS_BLOCK_SIZE))
        aperture = int(params.get("aperture", VisionConstants.HARRIS_APERTURE))
        k = float(params.get("k", VisionConstants.HARRIS_K))
        threshold = float(params.get("threshold", VisionConstants.HARRIS_THRESHOLD))
        max_corners = int(params.get("max_corners", 500))

        gray = np.float32(self._ensure_grayscale(image))
        response = cv2.cornerHarris(gray, block_size, aperture, k)
        normalized = cv2.normalize(response, None, 0, 255, cv2.NORM_MINMAX, cv2.CV_32F)

        ys, xs = np.nonzero(normalized > threshold)
        strengths = normalized[ys, xs]
        order = np.argsort(-strengths)[:max_corners]

        objects = []
        for rank, idx in enumerate(order):
            x, y = int(xs[idx]), int(ys[idx])
            strength = float(strengths[idx])
            objects.append(
                self._create_vision_object(
                    object_id=f"corner_{rank}",
                    object_type=VisionObjectType.CORNER,
                    bounding_box=ROI(x=x, y=y, width=1, height=1),
                    confidence=strength / 255.0,
                    center=Point(x=x, y=y),
                    properties={"response": strength},
                )
            )

        self.logger.debug(f"Harris: {len(objects)} corners above {threshold}")
        return self._create_result(
            True,
            objects,
            render_points(image, objects),
            {
                "corner_count": len(objects),
                "response": normalize_to_uint8(normalized),
            },
        )
