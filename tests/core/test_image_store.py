"""
Tests for ImageManager
"""

import numpy as np
import pytest

from core.image_manager import ImageManager


class TestStoreAndGet:
    """Basic storage behaviour"""

    def test_store_returns_unique_ids(self, image_manager, test_image):
        """Each stored image gets a fresh id"""
        first = image_manager.store(test_image)
        second = image_manager.store(test_image)
        assert first != second
        assert image_manager.has(first) and image_manager.has(second)

    def test_get_returns_copy(self, image_manager, test_image):
        """Mutating a retrieved image does not change the stored one"""
        image_id = image_manager.store(test_image)

        retrieved = image_manager.get(image_id)
        retrieved[:] = 0

        np.testing.assert_array_equal(image_manager.get(image_id), test_image)

    def test_store_copies_input(self, image_manager, test_image):
        """Mutating the source after storing does not change the stored image"""
        image_id = image_manager.store(test_image)
        test_image[:] = 7
        assert image_manager.get(image_id).max() == 255

    def test_get_missing(self, image_manager):
        """Unknown ids return None"""
        assert image_manager.get("missing") is None
        assert image_manager.get_metadata("missing") is None

    def test_metadata(self, image_manager, gray_image):
        """Descriptions carry geometry and the user metadata"""
        image_id = image_manager.store(gray_image, {"source": "unit"})

        info = image_manager.get_metadata(image_id)

        assert info["image_id"] == image_id
        assert (info["width"], info["height"], info["channels"]) == (640, 480, 1)
        assert info["dtype"] == "uint8"
        assert info["size"] == gray_image.nbytes
        assert info["metadata"] == {"source": "unit"}

    def test_delete(self, image_manager, test_image):
        """Deleted images are gone and their bytes released"""
        image_id = image_manager.store(test_image)

        assert image_manager.delete(image_id) is True
        assert image_manager.delete(image_id) is False
        assert image_manager.get(image_id) is None
        assert image_manager.current_size == 0

    def test_list_images(self, image_manager, test_image):
        """Listing is in insertion order"""
        ids = [image_manager.store(test_image) for _ in range(3)]
        assert [info["image_id"] for info in image_manager.list_images()] == ids


class TestEviction:
    """LRU eviction on count and byte limits"""

    def test_count_limit(self, test_image):
        """The oldest image is evicted when max_images is reached"""
        manager = ImageManager(max_size_mb=100, max_images=2)
        first = manager.store(test_image)
        second = manager.store(test_image)
        third = manager.store(test_image)

        assert not manager.has(first)
        assert manager.has(second) and manager.has(third)

    def test_access_refreshes_position(self, test_image):
        """Reading an image protects it from the next eviction"""
        manager = ImageManager(max_size_mb=100, max_images=2)
        first = manager.store(test_image)
        second = manager.store(test_image)

        manager.get(first)
        manager.store(test_image)

        assert manager.has(first)
        assert not manager.has(second)

    def test_byte_limit(self):
        """Images are evicted until the new one fits the byte budget"""
        manager = ImageManager(max_size_mb=1, max_images=10)
        block = np.zeros((512, 768), dtype=np.uint8)  # 0.375 MB
        ids = [manager.store(block) for _ in range(3)]

        assert not manager.has(ids[0])
        assert manager.has(ids[1]) and manager.has(ids[2])
        assert manager.current_size <= manager.max_size_bytes

    def test_oversized_image_rejected(self):
        """An image larger than the whole store raises MemoryError"""
        manager = ImageManager(max_size_mb=1, max_images=10)
        with pytest.raises(MemoryError, match="exceeds"):
            manager.store(np.zeros((1024, 1025), dtype=np.uint8))


class TestStatsAndThumbnails:
    """Statistics, cleanup and thumbnail cache"""

    def test_stats(self, image_manager, test_image):
        """Stats reflect the stored images"""
        image_manager.store(test_image)
        stats = image_manager.get_stats()

        assert stats["total_images"] == 1
        assert stats["max_images"] == 50
        assert stats["total_size_mb"] == pytest.approx(test_image.nbytes / (1024 * 1024))

    def test_cleanup(self, image_manager, test_image):
        """cleanup empties the store"""
        image_manager.store(test_image)
        image_manager.cleanup()
        assert image_manager.list_images() == []
        assert image_manager.current_size == 0

    def test_thumbnail_cached_at_default_width(self, image_manager, test_image):
        """The second request for the same id is served from the cache"""
        image_id = image_manager.store(test_image)

        array, uri = image_manager.create_thumbnail(test_image, image_id=image_id)
        cached_array, cached_uri = image_manager.create_thumbnail(test_image, image_id=image_id)

        assert array is not None
        assert cached_array is None
        assert cached_uri == uri
        assert uri.startswith("data:image/jpeg;base64,")

    def test_thumbnail_other_width_not_cached(self, image_manager, test_image):
        """Non-default widths bypass the cache"""
        image_id = image_manager.store(test_image)
        array, _ = image_manager.create_thumbnail(test_image, width=64, image_id=image_id)

        assert array.shape[1] == 64
        assert image_manager.get_stats()["cached_thumbnails"] == 0

    def test_delete_drops_thumbnail(self, image_manager, test_image):
        """Deleting an image also forgets its thumbnail"""
        image_id = image_manager.store(test_image)
        image_manager.create_thumbnail(test_image, image_id=image_id)
        image_manager.delete(image_id)
        assert image_manager.get_stats()["cached_thumbnails"] == 0
