"""
Hough line detection.
"""

import math
from typing import Any, Dict, Optional, Union

import cv2
import numpy as np

from algorithms.base_detector import BaseDetector
from domain_types import ROI, HoughMethod, Point, VisionConstants, VisionObjectType
from image.overlay import render_lines


def polar_line_endpoints(rho: float, theta: float, length: float = 1000.0):
    """Two far-apart points on the line x cos(theta) + y sin(theta) = rho."""
    a, b = math.cos(theta), math.sin(theta)
    x0, y0 = a * rho, b * rho
    return (
        (x0 + length * -b, y0 + length * a),
        (x0 - length * -b, y0 - length * a),
    )


class LineDetector(BaseDetector):
    """Standard and probabilistic Hough transforms on Canny edges (50/200)."""

    def detect(
        self,
        image: np.ndarray,
        method: Union[HoughMethod, str] = HoughMethod.PROBABILISTIC,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Detect lines.

        STANDARD objects carry rho/theta; PROBABILISTIC objects carry the
        segment end points. Both expose x1, y1, x2, y2 for drawing.
        """
        if params is None:
            params = {}
        method = HoughMethod(method)

        gray = self._ensure_grayscale(image)
        edges = cv2.Canny(gray, params.get("canny_low", 50), params.get("canny_high", 200))
        height, width = gray.shape[:2]

        objects = []
        if method == HoughMethod.STANDARD:
            threshold = int(params.get("threshold", VisionConstants.HOUGH_THRESHOLD_STANDARD))
            lines = cv2.HoughLines(edges, 1, np.pi / 180, threshold)
            for i, (rho, theta) in enumerate(lines[:, 0] if lines is not None else []):
                (x1, y1), (x2, y2) = polar_line_endpoints(float(rho), float(theta))
                objects.append(
                    self._create_vision_object(
                        object_id=f"line_{i}",
                        object_type=VisionObjectType.LINE,
                        bounding_box=ROI(x=0, y=0, width=width, height=height),
                        confidence=1.0,
                        properties={
                            "rho": float(rho),
                            "theta": float(theta),
                            "x1": x1,
                            "y1": y1,
                            "x2": x2,
                            "y2": y2,
                        },
                    )
                )
        else:
            threshold = int(
                params.get("threshold", VisionConstants.HOUGH_THRESHOLD_PROBABILISTIC)
            )
            min_length = float(params.get("min_line_length", VisionConstants.HOUGH_MIN_LINE_LENGTH))
            max_gap = float(params.get("max_line_gap", VisionConstants.HOUGH_MAX_LINE_GAP))
            segments = cv2.HoughLinesP(
                edges, 1, np.pi / 180, threshold, minLineLength=min_length, maxLineGap=max_gap
            )
            for i, (x1, y1, x2, y2) in enumerate(segments[:, 0] if segments is not None else []):
                x1, y1, x2, y2 = int(x1), int(y1), int(x2), int(y2)
                objects.append(
                    self._create_vision_object(
                        object_id=f"line_{i}",
                        object_type=VisionObjectType.LINE,
                        bounding_box=ROI(
                            x=min(x1, x2),
                            y=min(y1, y2),
                            width=abs(x2 - x1) + 1,
                            height=abs(y2 - y1) + 1,
                        ),
                        confidence=1.0,
                        center=Point(x=(x1 + x2) / 2, y=(y1 + y2) / 2),
                        properties={
                            "x1": x1,
                            "y1": y1,
                            "x2": x2,
                            "y2": y2,
                            "length": float(math.hypot(x2 - x1, y2 - y1)),
                            "angle": float(math.degrees(math.atan2(y2 - y1, x2 - x1))),
                        },
                    )
                )

        self.logger.debug(f"Hough {method.value}: {len(objects)} lines")
        return self._create_result(
            True,
            objects,
            render_lines(image, objects),
            {"method": method.value, "line_count": len(objects), "edges": edges},
        )
