"""
Base detector class for vision algorithms.

Provides the common result format and helpers shared by all detectors.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import numpy as np

from domain_types import ROI, Point, VisionObjectType
from image.converters import ensure_bgr, ensure_grayscale
from image.geometry import calculate_contour_properties
from schemas.common import VisionObject


class BaseDetector(ABC):
    """
    Abstract base class for vision detectors.

    Every detector returns a dictionary with:
        - success: bool
        - objects: List[VisionObject]
        - image: np.ndarray (annotated or processed image)
        - metadata: Dict (detector-specific values)
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def detect(
        self,
        image: np.ndarray,
        params: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> Dict[str, Any]:
        """Perform detection on image."""

    def _create_vision_object(
        self,
        object_id: str,
        object_type: VisionObjectType,
        bounding_box: ROI,
        confidence: float,
        center: Optional[Point] = None,
        **fields: Any,
    ) -> VisionObject:
        """
        Create a VisionObject, deriving the center from the box when omitted.

        Extra keyword arguments (area, perimeter, properties, contour) are
        passed through to the model.
        """
        if center is None:
            center = Point(
                x=bounding_box.x + bounding_box.width / 2,
                y=bounding_box.y + bounding_box.height / 2,
            )

        return VisionObject(
            object_id=object_id,
            object_type=object_type.value,
            bounding_box=bounding_box,
            center=center,
            confidence=confidence,
            **fields,
        )

    def _contour_to_object(
        self,
        contour: np.ndarray,
        object_id: str,
        object_type: VisionObjectType,
        properties: Optional[Dict[str, Any]] = None,
    ) -> VisionObject:
        """VisionObject for a contour with area, perimeter, centroid and points."""
        props = calculate_contour_properties(contour)
        cx, cy = props["center"]
        return self._create_vision_object(
            object_id=object_id,
            object_type=object_type,
            bounding_box=ROI.from_rect(props["bounding_box"]),
            confidence=1.0,
            center=Point(x=cx, y=cy),
            area=props["area"],
            perimeter=props["perimeter"],
            properties=properties or {},
            contour=contour.reshape(-1, 2).tolist(),
        )

    def _create_result(
        self,
        success: bool,
        objects: List[VisionObject],
        image: np.ndarray,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Standardized detection result dictionary."""
        return {
            "success": success,
            "objects": objects,
            "image": image,
            "metadata": metadata or {},
        }

    def _ensure_grayscale(self, image: np.ndarray) -> np.ndarray:
        return ensure_grayscale(image)

    def _ensure_bgr(self, image: np.ndarray) -> np.ndarray:
        return ensure_bgr(image)
