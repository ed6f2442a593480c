"""
Tests for algorithms.edge_detection module.

Tests edge detection methods and the edge contour extraction on top of them.
"""

import cv2
import numpy as np
import pytest

from algorithms.edge_detection import EdgeDetector
from domain_types import EdgeMethod


class TestEdgeDetector:
    """Tests for EdgeDetector class."""

    @pytest.fixture
    def detector(self):
        """Create EdgeDetector instance."""
        return EdgeDetector()

    @pytest.fixture
    def test_image(self):
        """Create test image with clear edges."""
        image = np.zeros((200, 200, 3), dtype=np.uint8)
        cv2.rectangle(image, (50, 50), (150, 150), (255, 255, 255), -1)
        return image

    @pytest.fixture
    def grayscale_image(self):
        """Create grayscale test image."""
        image = np.zeros((200, 200), dtype=np.uint8)
        cv2.rectangle(image, (50, 50), (150, 150), 255, -1)
        return image

    def test_detect_canny_basic(self, detector, test_image):
        """Test basic Canny edge detection."""
        result = detector.detect(test_image, method=EdgeMethod.CANNY)

        assert result["success"] is True
        assert isinstance(result["objects"], list)
        assert len(result["objects"]) > 0
        assert result["metadata"]["method"] == "canny"

    def test_detect_finds_rectangle_edges(self, detector, test_image):
        """Test the largest contour outlines the rectangle."""
        result = detector.detect(test_image, method=EdgeMethod.CANNY)
        bbox = result["objects"][0].bounding_box

        assert abs(bbox.x - 50) <= 2
        assert abs(bbox.y - 50) <= 2
        assert abs(bbox.width - 101) <= 4
        assert abs(bbox.height - 101) <= 4

    @pytest.mark.parametrize("method", list(EdgeMethod))
    def test_all_methods_produce_results(self, detector, test_image, method):
        """Test every method finds the rectangle and returns its edge image."""
        result = detector.detect(test_image, method=method)

        assert result["success"] is True
        assert len(result["objects"]) > 0
        assert result["metadata"]["edges"].shape == (200, 200)
        assert result["metadata"]["contour_count"] == len(result["objects"])

    def test_detect_with_grayscale_input(self, detector, grayscale_image):
        """Test grayscale input gives a color annotation."""
        result = detector.detect(grayscale_image, method=EdgeMethod.SOBEL)

        assert result["success"] is True
        assert result["image"].shape == (200, 200, 3)

    def test_detect_with_min_area_filter(self, detector, test_image):
        """Test contours below min_contour_area are dropped."""
        result = detector.detect(test_image, params={"min_contour_area": 10**6})
        assert result["objects"] == []

    def test_detect_with_max_contours(self, detector, test_image):
        """Test max_contours limits the result."""
        image = test_image.copy()
        cv2.circle(image, (175, 25), 10, (255, 255, 255), -1)
        result = detector.detect(image, params={"max_contours": 1})
        assert len(result["objects"]) == 1

    def test_detect_empty_image(self, detector):
        """Test a blank image has no edges."""
        result = detector.detect(np.zeros((100, 100, 3), dtype=np.uint8))
        assert result["success"] is True
        assert result["objects"] == []

    def test_detect_vision_object_structure(self, detector, test_image):
        """Test edge contour objects carry geometry and properties."""
        obj = detector.detect(test_image)["objects"][0]

        assert obj.object_id == "contour_0"
        assert obj.object_type == "edge_contour"
        assert obj.area > 0
        assert obj.perimeter > 0
        assert obj.contour
        assert obj.properties["method"] == "canny"
        assert obj.properties["vertex_count"] >= 4

    def test_unknown_method(self, detector, test_image):
        """Test unknown method names raise ValueError."""
        with pytest.raises(ValueError):
            detector.detect(test_image, method="prewitt")
