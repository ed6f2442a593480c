"""
Pytest configuration and fixtures for Vision Lab tests
"""

from unittest.mock import MagicMock

import cv2
import numpy as np
import pytest

from core.image_manager import ImageManager
from services.analysis_service import AnalysisService
from services.image_service import ImageService
from services.processing_service import ProcessingService


@pytest.fixture
def test_image():
    """Create a test image for testing"""
    image = np.zeros((480, 640, 3), dtype=np.uint8)
    # Add some content
    cv2.rectangle(image, (100, 100), (300, 300), (255, 255, 255), -1)
    cv2.circle(image, (450, 350), 50, (128, 128, 128), -1)
    return image


@pytest.fixture
def gray_image(test_image):
    """Single-channel version of test_image"""
    return cv2.cvtColor(test_image, cv2.COLOR_BGR2GRAY)


@pytest.fixture
def noise_image():
    """Reproducible random texture (good for feature matching and stereo)"""
    rng = np.random.default_rng(42)
    image = rng.integers(0, 256, (240, 320), dtype=np.uint8)
    return cv2.GaussianBlur(image, (3, 3), 0)


@pytest.fixture
def image_manager():
    """Create ImageManager instance for testing"""
    manager = ImageManager(max_size_mb=100, max_images=50)
    yield manager
    # Cleanup
    manager.cleanup()


@pytest.fixture
def image_service(image_manager):
    """Create ImageService instance for testing"""
    return ImageService(image_manager=image_manager)


@pytest.fixture
def processing_service(image_manager):
    """Create ProcessingService instance for testing"""
    return ProcessingService(image_manager=image_manager)


@pytest.fixture
def analysis_service(image_manager):
    """Create AnalysisService instance for testing"""
    return AnalysisService(image_manager=image_manager)


@pytest.fixture
def mock_image_manager():
    """Create mock ImageManager for unit testing"""
    mock = MagicMock()
    test_image = np.zeros((480, 640, 3), dtype=np.uint8)
    mock.get.return_value = test_image
    mock.store.return_value = "test-image-id"
    mock.create_thumbnail.return_value = (test_image, "base64-thumbnail")
    mock.delete.return_value = True
    mock.list_images.return_value = []
    mock.get_metadata.return_value = None
    return mock
