"""
Tests for image.converters and image.test_patterns modules.
"""

import base64

import cv2
import numpy as np
import pytest

from domain_types import PatternType
from image.converters import (
    DATA_URI_PREFIX,
    create_thumbnail,
    decode_image,
    encode_image,
    ensure_bgr,
    ensure_grayscale,
    from_base64,
    load_image,
    normalize_to_uint8,
    to_base64,
    to_uint8,
)
from image.test_patterns import create_chessboard, create_pattern


class TestDecodeEncode:
    """Tests for decoding and encoding buffers."""

    def test_decode_empty(self):
        """An empty buffer cannot be opened."""
        with pytest.raises(ValueError, match="Could not open"):
            decode_image(b"")

    def test_decode_garbage(self):
        """Random bytes are not an image."""
        with pytest.raises(ValueError, match="Could not open"):
            decode_image(b"definitely not an image")

    def test_png_is_lossless(self, test_image):
        """PNG encoding keeps every pixel."""
        np.testing.assert_array_equal(decode_image(encode_image(test_image, "PNG")), test_image)

    def test_decode_grayscale(self, test_image):
        """grayscale=True yields a single plane."""
        assert decode_image(encode_image(test_image), grayscale=True).ndim == 2

    def test_encode_float_image(self):
        """Float data is saturated to 8-bit before encoding."""
        data = encode_image(np.full((4, 4), 300.0, dtype=np.float32))
        assert np.all(decode_image(data, grayscale=True) == 255)

    def test_load_image(self, tmp_path, test_image):
        """Images are read from disk."""
        path = tmp_path / "input.png"
        path.write_bytes(encode_image(test_image))
        assert load_image(path).shape == test_image.shape

    def test_load_missing_file(self, tmp_path):
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_image(tmp_path / "missing.png")


class TestBase64:
    """Tests for base64 helpers."""

    def test_to_base64_decodes(self, test_image):
        """The string is valid base64."""
        assert len(base64.b64decode(to_base64(test_image))) > 0

    def test_from_data_uri(self, test_image):
        """The data URI prefix is stripped."""
        encoded = "data:image/png;base64," + to_base64(test_image, format="PNG")
        np.testing.assert_array_equal(from_base64(encoded), test_image)

    def test_invalid_base64(self):
        """Characters outside the alphabet raise ValueError."""
        with pytest.raises(ValueError):
            from_base64("not base64 at all!!")


class TestChannelConversion:
    """Tests for channel and dtype helpers."""

    def test_ensure_grayscale(self, test_image, gray_image):
        """Color becomes one plane; gray passes through."""
        assert ensure_grayscale(test_image).shape == (480, 640)
        assert ensure_grayscale(gray_image) is gray_image

    def test_ensure_grayscale_bgra(self):
        """Four-channel input is supported."""
        assert ensure_grayscale(np.zeros((5, 5, 4), np.uint8)).shape == (5, 5)

    def test_ensure_bgr(self, gray_image, test_image):
        """Gray becomes three planes; BGR passes through."""
        assert ensure_bgr(gray_image).shape == (480, 640, 3)
        assert ensure_bgr(test_image) is test_image

    def test_normalize_constant(self):
        """A flat image maps to zeros."""
        result = normalize_to_uint8(np.full((3, 3), 7.5))
        assert result.dtype == np.uint8
        assert np.all(result == 0)

    def test_normalize_range(self):
        """The minimum maps to 0 and the maximum to the top of the range."""
        result = normalize_to_uint8(np.array([[-1.0, 0.0, 1.0]]))
        assert result[0, 0] == 0
        assert result[0, 2] >= 254

    def test_to_uint8(self):
        """Float values are rounded and saturated; booleans become 0/255."""
        np.testing.assert_array_equal(
            to_uint8(np.array([-5.0, 12.6, 300.0])), np.array([0, 13, 255], np.uint8)
        )
        np.testing.assert_array_equal(to_uint8(np.array([True, False])), [255, 0])

    def test_to_uint8_passthrough(self, test_image):
        """uint8 data is returned as is."""
        assert to_uint8(test_image) is test_image


class TestThumbnail:
    """Tests for create_thumbnail."""

    def test_downscaled(self, test_image):
        """Wide images are scaled to the thumbnail width."""
        thumbnail, uri = create_thumbnail(test_image, width=320)
        assert thumbnail.shape == (240, 320, 3)
        assert uri.startswith(DATA_URI_PREFIX)

    def test_not_upscaled(self):
        """Narrow images keep their size."""
        image = np.zeros((50, 100, 3), np.uint8)
        thumbnail, _ = create_thumbnail(image, width=320)
        assert thumbnail.shape == (50, 100, 3)


class TestPatterns:
    """Tests for synthetic images."""

    @pytest.mark.parametrize(
        "pattern",
        [p for p in PatternType if p != PatternType.CHESSBOARD],
    )
    def test_requested_size(self, pattern):
        """Patterns fill the requested canvas."""
        image = create_pattern(pattern, 200, 100)
        assert image.shape == (100, 200, 3)
        assert image.dtype == np.uint8

    def test_chessboard_size_follows_board(self):
        """A 9x6 inner-corner board with 40 px squares and margins."""
        image = create_pattern(PatternType.CHESSBOARD, 200, 100)
        assert image.shape == (360, 480, 3)

    def test_checkerboard_starts_white(self):
        """The top-left square is white."""
        image = create_pattern("checkerboard", 128, 128)
        assert np.all(image[0, 0] == 255)
        assert np.all(image[0, 40] == 0)

    def test_noise_is_reproducible(self):
        """The noise pattern uses a fixed seed."""
        np.testing.assert_array_equal(
            create_pattern(PatternType.NOISE, 64, 64), create_pattern(PatternType.NOISE, 64, 64)
        )

    def test_chessboard_is_detectable(self):
        """OpenCV finds every inner corner of the generated board."""
        gray = cv2.cvtColor(create_chessboard((9, 6)), cv2.COLOR_BGR2GRAY)
        found, corners = cv2.findChessboardCorners(gray, (9, 6))
        assert found
        assert len(corners) == 54

    def test_invalid_size(self):
        """Non-positive sizes raise ValueError."""
        with pytest.raises(ValueError, match="Invalid"):
            create_pattern(PatternType.GRADIENT, 0, 10)

    def test_too_large(self):
        """Sizes above the dimension limit raise ValueError."""
        with pytest.raises(ValueError, match="exceeds"):
            create_pattern(PatternType.GRADIENT, 10000, 10)

    def test_unknown_pattern(self):
        """Unknown pattern names raise ValueError."""
        with pytest.raises(ValueError):
            create_pattern("stripes")
