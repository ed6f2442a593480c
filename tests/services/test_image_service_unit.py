"""
Unit tests for ImageService
"""

import base64

import cv2
import numpy as np
import pytest

from api.exceptions import (
    ImageLoadException,
    ImageNotFoundException,
    InvalidROIException,
    StorageException,
)
from domain_types import ROI, PatternType
from services.image_service import ImageService


class TestImageService:
    """Test ImageService functionality"""

    def test_get_image_success(self, mock_image_manager):
        """Test successful image retrieval"""
        service = ImageService(mock_image_manager)

        image = service.get_image("test-image-id")

        assert image.shape == (480, 640, 3)
        mock_image_manager.get.assert_called_once_with("test-image-id")

    def test_get_image_not_found(self, mock_image_manager):
        """Test image not found error"""
        service = ImageService(mock_image_manager)
        mock_image_manager.get.return_value = None

        with pytest.raises(ImageNotFoundException):
            service.get_image("non-existent-id")

    def test_get_region_with_roi(self, mock_image_manager):
        """Test getting image with ROI extraction"""
        service = ImageService(mock_image_manager)
        test_image = np.zeros((480, 640, 3), dtype=np.uint8)
        test_image[100:300, 100:300] = 255
        mock_image_manager.get.return_value = test_image

        region, offset = service.get_region("test-id", ROI(x=100, y=100, width=200, height=200))

        assert region.shape == (200, 200, 3)
        assert np.all(region == 255)
        assert offset == (100, 100)

    def test_get_region_clipped(self, mock_image_manager):
        """ROIs reaching past the border are clipped"""
        service = ImageService(mock_image_manager)

        region, offset = service.get_region("test-id", ROI(x=600, y=400, width=100, height=100))

        assert region.shape == (80, 40, 3)
        assert offset == (600, 400)

    def test_get_region_outside(self, mock_image_manager):
        """ROIs that miss the image raise InvalidROIException"""
        service = ImageService(mock_image_manager)

        with pytest.raises(InvalidROIException):
            service.get_region("test-id", ROI(x=700, y=10, width=10, height=10))

    def test_get_region_without_roi(self, mock_image_manager):
        """No ROI returns the whole image at offset (0, 0)"""
        service = ImageService(mock_image_manager)
        region, offset = service.get_region("test-id", None)
        assert region.shape == (480, 640, 3)
        assert offset == (0, 0)

    def test_store_image(self, mock_image_manager):
        """Test storing image with metadata"""
        service = ImageService(mock_image_manager)
        image = np.zeros((10, 10), dtype=np.uint8)

        image_id = service.store_image(image, {"source": "test"})

        assert image_id == "test-image-id"
        mock_image_manager.store.assert_called_once_with(image, {"source": "test"})

    def test_store_image_full(self, mock_image_manager):
        """MemoryError from the store becomes StorageException"""
        service = ImageService(mock_image_manager)
        mock_image_manager.store.side_effect = MemoryError("too big")

        with pytest.raises(StorageException):
            service.store_image(np.zeros((10, 10), dtype=np.uint8))

    def test_delete_image(self, mock_image_manager):
        """Test successful deletion"""
        service = ImageService(mock_image_manager)
        service.delete_image("test-id")
        mock_image_manager.delete.assert_called_once_with("test-id")

    def test_delete_image_not_found(self, mock_image_manager):
        """Test deletion of unknown image"""
        service = ImageService(mock_image_manager)
        mock_image_manager.delete.return_value = False

        with pytest.raises(ImageNotFoundException):
            service.delete_image("missing")

    def test_get_info_not_found(self, mock_image_manager):
        """Test info for unknown image"""
        service = ImageService(mock_image_manager)
        with pytest.raises(ImageNotFoundException):
            service.get_info("missing")


class TestImageServiceWithStore:
    """ImageService against a real ImageManager"""

    def test_upload(self, image_service, test_image):
        """Base64 PNG uploads are decoded and stored"""
        _, buffer = cv2.imencode(".png", test_image)
        data = base64.b64encode(buffer.tobytes()).decode("utf-8")

        image_id, image = image_service.upload(data, name="scene.png")

        np.testing.assert_array_equal(image, test_image)
        info = image_service.get_info(image_id)
        assert info["metadata"] == {"source": "upload", "name": "scene.png"}

    def test_upload_grayscale(self, image_service, test_image):
        """grayscale=True decodes a single plane"""
        _, buffer = cv2.imencode(".png", test_image)
        data = base64.b64encode(buffer.tobytes()).decode("utf-8")

        _, image = image_service.upload(data, grayscale=True)

        assert image.ndim == 2

    def test_upload_invalid(self, image_service):
        """Garbage payloads raise ImageLoadException"""
        with pytest.raises(ImageLoadException):
            image_service.upload("not an image")

    def test_decode(self, image_service, gray_image):
        """Raw encoded bytes are decoded and stored"""
        _, buffer = cv2.imencode(".png", gray_image)
        image_id, image = image_service.decode(buffer.tobytes())

        assert image_service.get_image(image_id).shape[:2] == gray_image.shape

    def test_decode_empty(self, image_service):
        """An empty buffer raises ImageLoadException"""
        with pytest.raises(ImageLoadException):
            image_service.decode(b"")

    def test_import_from_file(self, image_service, test_image, tmp_path):
        """Files are loaded and described"""
        path = tmp_path / "image.png"
        cv2.imwrite(str(path), test_image)

        image_id, image, metadata = image_service.import_from_file(str(path))

        assert image.shape == test_image.shape
        assert metadata["source"] == "file_import"
        assert metadata["file_size_bytes"] == path.stat().st_size
        assert image_service.get_info(image_id)["metadata"]["file_path"] == str(path)

    def test_import_missing_file(self, image_service, tmp_path):
        """Missing files raise FileNotFoundError"""
        with pytest.raises(FileNotFoundError):
            image_service.import_from_file(str(tmp_path / "missing.png"))

    def test_import_not_an_image(self, image_service, tmp_path):
        """Files that are not images raise ImageLoadException"""
        path = tmp_path / "notes.png"
        path.write_text("hello")
        with pytest.raises(ImageLoadException):
            image_service.import_from_file(str(path))

    def test_create_pattern(self, image_service):
        """Patterns are generated at the requested size"""
        image_id, image = image_service.create_pattern(PatternType.GRADIENT, 200, 100)

        assert image.shape[:2] == (100, 200)
        assert image_service.get_info(image_id)["metadata"]["pattern"] == "gradient"

    def test_thumbnail(self, image_service, test_image):
        """Thumbnails are data URIs"""
        image_id = image_service.store_image(test_image)
        assert image_service.thumbnail(test_image, image_id).startswith("data:image/jpeg")

    def test_cleanup(self, image_service, test_image):
        """cleanup reports the number of removed images"""
        image_service.store_image(test_image)
        image_service.store_image(test_image)

        assert image_service.cleanup() == 2
        assert image_service.list_images() == []
