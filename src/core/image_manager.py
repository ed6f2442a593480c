"""
Image Manager - in-memory image store with LRU eviction
"""

import logging
import time
import uuid
from collections import OrderedDict
from datetime import datetime
from threading import Lock
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from domain_types import ImageConstants
from image.converters import create_thumbnail

logger = logging.getLogger(__name__)


class ImageManager:
    """
    Keeps processed images addressable by id.

    Images are copied on the way in and on the way out, so callers can never
    mutate stored pixels. The least recently used image is evicted when either
    the count or the byte budget would be exceeded.
    """

    def __init__(
        self,
        max_size_mb: int = ImageConstants.DEFAULT_MAX_MEMORY_MB,
        max_images: int = ImageConstants.DEFAULT_MAX_IMAGES,
        thumbnail_width: int = ImageConstants.DEFAULT_THUMBNAIL_WIDTH,
        thumbnail_quality: int = ImageConstants.THUMBNAIL_JPEG_QUALITY,
    ):
        """
        Initialize Image Manager

        Args:
            max_size_mb: Maximum total size in megabytes
            max_images: Maximum number of images to store
            thumbnail_width: Width for thumbnail generation
            thumbnail_quality: JPEG quality for thumbnails
        """
        self.max_size_bytes = max_size_mb * 1024 * 1024
        self.max_images = max_images
        self.current_size = 0
        self.thumbnail_width = thumbnail_width
        self.thumbnail_quality = thumbnail_quality

        # image_id -> {"image", "size", "timestamp", "metadata"}
        self.cache: OrderedDict = OrderedDict()

        self.lock = Lock()

        # image_id -> data URI thumbnail at the default width
        self.thumbnail_cache: Dict[str, str] = {}

        logger.info(
            f"Image Manager initialized: {max_size_mb}MB, "
            f"max {max_images} images, thumbnail_width={thumbnail_width}px"
        )

    def store(self, image: np.ndarray, metadata: Optional[Dict[str, Any]] = None) -> str:
        """
        Store a copy of image.

        Args:
            image: NumPy array (OpenCV image)
            metadata: Optional metadata

        Returns:
            Image ID for retrieval

        Raises:
            MemoryError: If the image alone exceeds the byte budget
        """
        image_size = image.nbytes
        if image_size > self.max_size_bytes:
            raise MemoryError(
                f"Image of {image_size} bytes exceeds store capacity of {self.max_size_bytes}"
            )

        with self.lock:
            image_id = str(uuid.uuid4())
            self._ensure_space(image_size)

            self.cache[image_id] = {
                "image": image.copy(),
                "size": image_size,
                "timestamp": time.time(),
                "metadata": dict(metadata or {}),
            }
            self.current_size += image_size

            logger.debug(f"Stored image {image_id}: {image.shape}, {image_size} bytes")
            return image_id

    def get(self, image_id: str) -> Optional[np.ndarray]:
        """
        Retrieve a copy of an image.

        Args:
            image_id: Image identifier

        Returns:
            NumPy array or None if not found
        """
        with self.lock:
            entry = self.cache.get(image_id)
            if entry is None:
                logger.warning(f"Image {image_id} not found")
                return None

            entry["last_access"] = time.time()
            self.cache.move_to_end(image_id)
            return entry["image"].copy()

    def has(self, image_id: str) -> bool:
        """Check whether an image is stored without touching its LRU position."""
        with self.lock:
            return image_id in self.cache

    def get_metadata(self, image_id: str) -> Optional[Dict[str, Any]]:
        """Get image description without copying pixels"""
        with self.lock:
            entry = self.cache.get(image_id)
            if entry is None:
                return None
            return self._describe(image_id, entry)

    def list_images(self) -> List[Dict[str, Any]]:
        """Describe all stored images, oldest first."""
        with self.lock:
            return [self._describe(image_id, entry) for image_id, entry in self.cache.items()]

    def delete(self, image_id: str) -> bool:
        """
        Delete image from the store

        Returns:
            True if deleted, False if not found
        """
        with self.lock:
            if image_id not in self.cache:
                return False
            self._delete_image(image_id)
            return True

    def _describe(self, image_id: str, entry: Dict[str, Any]) -> Dict[str, Any]:
        image = entry["image"]
        return {
            "image_id": image_id,
            "width": int(image.shape[1]),
            "height": int(image.shape[0]),
            "channels": 1 if image.ndim == 2 else int(image.shape[2]),
            "dtype": str(image.dtype),
            "size": entry["size"],
            "timestamp": datetime.fromtimestamp(entry["timestamp"]).isoformat(),
            "metadata": dict(entry["metadata"]),
        }

    def _delete_image(self, image_id: str) -> None:
        entry = self.cache.pop(image_id)
        self.current_size -= entry["size"]
        self.thumbnail_cache.pop(image_id, None)
        logger.debug(f"Deleted image {image_id}")

    def _ensure_space(self, required_size: int) -> None:
        """Evict least recently used images until the new one fits"""
        while len(self.cache) >= self.max_images:
            self._evict_oldest()

        while self.cache and self.current_size + required_size > self.max_size_bytes:
            self._evict_oldest()

    def _evict_oldest(self) -> None:
        image_id = next(iter(self.cache))
        logger.info(f"Evicting least recently used image {image_id}")
        self._delete_image(image_id)

    def get_stats(self) -> Dict[str, Any]:
        """Get store statistics"""
        with self.lock:
            return {
                "total_images": len(self.cache),
                "max_images": self.max_images,
                "total_size_mb": self.current_size / (1024 * 1024),
                "max_size_mb": self.max_size_bytes / (1024 * 1024),
                "usage_percent": (self.current_size / self.max_size_bytes) * 100,
                "cached_thumbnails": len(self.thumbnail_cache),
            }

    def cleanup(self) -> None:
        """Drop every stored image"""
        with self.lock:
            logger.info("Cleaning up Image Manager...")
            self.cache.clear()
            self.thumbnail_cache.clear()
            self.current_size = 0
            logger.info("Image Manager cleanup complete")

    def create_thumbnail(
        self, image: np.ndarray, width: Optional[int] = None, image_id: Optional[str] = None
    ) -> Tuple[Optional[np.ndarray], str]:
        """
        Create thumbnail from image with caching support.

        Args:
            image: Source image
            width: Target width (uses configured width if None)
            image_id: Optional image ID; enables the cache at the default width

        Returns:
            Thumbnail array (None on a cache hit) and data URI string
        """
        if width is None:
            width = self.thumbnail_width

        use_cache = image_id is not None and width == self.thumbnail_width
        if use_cache:
            with self.lock:
                cached = self.thumbnail_cache.get(image_id)
            if cached:
                logger.debug(f"Thumbnail cache hit for {image_id}")
                return None, cached

        thumbnail_array, thumbnail_uri = create_thumbnail(
            image, width=width, quality=self.thumbnail_quality
        )

        if use_cache:
            with self.lock:
                if image_id in self.cache:
                    self.thumbnail_cache[image_id] = thumbnail_uri

        return thumbnail_array, thumbnail_uri
