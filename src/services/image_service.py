"""
Image Service - Business logic for image storage operations.

This service provides storing, decoding, importing and retrieval of images
and wraps library ValueErrors into API exceptions.
"""

import logging
import os
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from api.exceptions import (
    ImageLoadException,
    ImageNotFoundException,
    InvalidROIException,
    StorageException,
)
from core.image_manager import ImageManager
from domain_types import ROI, ImageConstants, PatternType
from image.converters import decode_image, from_base64, load_image
from image.geometry import crop
from image.test_patterns import create_pattern

logger = logging.getLogger(__name__)


class ImageService:
    """
    Service for image operations including storage, retrieval and import.

    This service provides high-level image operations for the API layer.
    """

    def __init__(self, image_manager: ImageManager):
        """
        Initialize image service.

        Args:
            image_manager: Image manager instance
        """
        self.image_manager = image_manager

    def get_image(self, image_id: str) -> np.ndarray:
        """
        Get image by ID.

        Raises:
            ImageNotFoundException: If image not found
        """
        image = self.image_manager.get(image_id)
        if image is None:
            raise ImageNotFoundException(image_id)
        return image

    def get_region(self, image_id: str, roi: Optional[ROI]) -> Tuple[np.ndarray, Tuple[int, int]]:
        """
        Get image restricted to roi (clipped to bounds).

        Returns:
            Tuple of (region, (x_offset, y_offset))

        Raises:
            ImageNotFoundException: If image not found
            InvalidROIException: If roi does not overlap the image
        """
        image = self.get_image(image_id)
        if roi is None:
            return image, (0, 0)

        height, width = image.shape[:2]
        clipped = roi.clip(width, height)
        if clipped is None:
            raise InvalidROIException(
                roi.to_dict(), f"does not overlap image bounds ({width}x{height})"
            )
        return crop(image, clipped), (clipped.x, clipped.y)

    def store_image(self, image: np.ndarray, metadata: Optional[Dict] = None) -> str:
        """
        Store image with optional metadata.

        Raises:
            StorageException: If the image does not fit into the store
        """
        try:
            image_id = self.image_manager.store(image, metadata or {})
        except MemoryError as e:
            raise StorageException("store", str(e))
        logger.debug(f"Image stored: {image_id}")
        return image_id

    def thumbnail(self, image: np.ndarray, image_id: Optional[str] = None) -> str:
        """Thumbnail data URI at the configured width."""
        _, thumbnail_base64 = self.image_manager.create_thumbnail(image, image_id=image_id)
        return thumbnail_base64

    def upload(self, data: str, grayscale: bool = False, name: str = "") -> Tuple[str, np.ndarray]:
        """
        Decode a base64 image and store it.

        Raises:
            ImageLoadException: If the payload is not base64 or not an image
        """
        try:
            image = from_base64(data, grayscale=grayscale)
        except ValueError as e:
            raise ImageLoadException("upload", str(e))

        image_id = self.store_image(image, {"source": "upload", "name": name})
        logger.info(f"Uploaded image {image_id}: {image.shape[1]}x{image.shape[0]}")
        return image_id, image

    def decode(self, data: bytes, source: str = "bytes") -> Tuple[str, np.ndarray]:
        """
        Decode raw encoded bytes and store the image.

        Raises:
            ImageLoadException: If the buffer is empty or undecodable
        """
        try:
            image = decode_image(data)
        except ValueError as e:
            raise ImageLoadException(source, str(e))
        return self.store_image(image, {"source": source}), image

    def import_from_file(
        self, file_path: str, grayscale: bool = False
    ) -> Tuple[str, np.ndarray, Dict]:
        """
        Import image from file system.

        Returns:
            Tuple of (image_id, image, metadata)

        Raises:
            FileNotFoundError: If file does not exist
            ImageLoadException: If file cannot be loaded as image
        """
        try:
            image = load_image(file_path, grayscale=grayscale)
        except ValueError as e:
            raise ImageLoadException(file_path, str(e))

        height, width = image.shape[:2]
        metadata = {
            "source": "file_import",
            "file_path": file_path,
            "file_size_bytes": os.path.getsize(file_path),
        }
        image_id = self.store_image(image, metadata)

        logger.info(f"Imported image from {file_path}: {image_id} ({width}x{height})")
        return image_id, image, metadata

    def create_pattern(
        self,
        pattern: PatternType,
        width: int = ImageConstants.DEFAULT_PATTERN_WIDTH,
        height: int = ImageConstants.DEFAULT_PATTERN_HEIGHT,
    ) -> Tuple[str, np.ndarray]:
        """Generate a test pattern and store it."""
        image = create_pattern(pattern, width, height)
        image_id = self.store_image(image, {"source": "pattern", "pattern": pattern.value})
        logger.info(f"Generated {pattern.value} pattern {image_id}")
        return image_id, image

    def get_info(self, image_id: str) -> Dict[str, Any]:
        """
        Describe a stored image.

        Raises:
            ImageNotFoundException: If image not found
        """
        info = self.image_manager.get_metadata(image_id)
        if info is None:
            raise ImageNotFoundException(image_id)
        return info

    def list_images(self) -> List[Dict[str, Any]]:
        return self.image_manager.list_images()

    def delete_image(self, image_id: str) -> None:
        """
        Delete a specific image.

        Raises:
            ImageNotFoundException: If image not found
        """
        if not self.image_manager.delete(image_id):
            raise ImageNotFoundException(image_id)
        logger.info(f"Deleted image {image_id}")

    def get_stats(self) -> Dict:
        return self.image_manager.get_stats()

    def cleanup(self) -> int:
        """
        Drop every stored image.

        Returns:
            Number of images removed
        """
        removed = self.get_stats()["total_images"]
        self.image_manager.cleanup()
        if removed > 0:
            logger.info(f"Cleaned up {removed} images")
        return removed
