"""
Image format conversion utilities.

Handles conversions between different image representations using OpenCV:
- Encoded bytes / files / base64 strings <-> NumPy arrays (BGR)
- Grayscale/color conversions
- Float results -> displayable uint8 images
- Thumbnails
"""

import base64
import logging
from pathlib import Path
from typing import Tuple, Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = "data:image/jpeg;base64,"


def decode_image(data: bytes, grayscale: bool = False) -> np.ndarray:
    """
    Decode an encoded image buffer (PNG, JPEG, BMP, ...).

    Args:
        data: Encoded image bytes
        grayscale: Decode as single channel

    Returns:
        Decoded image

    Raises:
        ValueError: If the buffer is empty or cannot be decoded
    """
    if not data:
        raise ValueError("Could not open or find the image: empty buffer")

    flags = cv2.IMREAD_GRAYSCALE if grayscale else cv2.IMREAD_COLOR
    image = cv2.imdecode(np.frombuffer(data, np.uint8), flags)
    if image is None or image.size == 0:
        raise ValueError("Could not open or find the image: undecodable buffer")
    return image


def load_image(path: Union[str, Path], grayscale: bool = False) -> np.ndarray:
    """
    Load an image file.

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the file is not a readable image
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Image file not found: {path}")

    # imdecode handles non-ASCII paths that imread rejects on some platforms
    return decode_image(path.read_bytes(), grayscale=grayscale)


def encode_image(image: np.ndarray, format: str = "PNG", quality: int = 95) -> bytes:
    """
    Encode image to bytes.

    Args:
        image: Input image as NumPy array (BGR or grayscale)
        format: Image format (JPEG, PNG, BMP, ...)
        quality: JPEG quality (1-100), mapped to compression level for PNG

    Returns:
        Encoded bytes
    """
    ext = f".{format.lower()}" if not format.startswith(".") else format.lower()

    if ext in [".jpg", ".jpeg"]:
        params = [cv2.IMWRITE_JPEG_QUALITY, quality]
    elif ext == ".png":
        compression = 9 - int(quality / 11)
        params = [cv2.IMWRITE_PNG_COMPRESSION, max(0, min(9, compression))]
    else:
        params = []

    success, buffer = cv2.imencode(ext, to_uint8(image), params)
    if not success:
        raise ValueError(f"Failed to encode image to {format}")
    return buffer.tobytes()


def to_base64(image: np.ndarray, format: str = "JPEG", quality: int = 85) -> str:
    """Encode image and return it as a base64 string."""
    return base64.b64encode(encode_image(image, format, quality)).decode("utf-8")


def from_base64(base64_string: str, grayscale: bool = False) -> np.ndarray:
    """
    Convert base64 string (optionally a data URI) to NumPy array.

    Raises:
        ValueError: If the string is not valid base64 or not an image
    """
    if "," in base64_string and base64_string.startswith("data:"):
        base64_string = base64_string.split(",", 1)[1]

    try:
        image_bytes = base64.b64decode(base64_string, validate=True)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid base64 image data: {e}")

    return decode_image(image_bytes, grayscale=grayscale)


def ensure_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert image to single channel if needed."""
    if image.ndim == 2:
        return image
    if image.shape[2] == 1:
        return image[:, :, 0]
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def ensure_bgr(image: np.ndarray) -> np.ndarray:
    """Convert image to 3-channel BGR if needed."""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image


def normalize_to_uint8(image: np.ndarray) -> np.ndarray:
    """
    Stretch any numeric image to the full 0..255 range.

    A constant image maps to zeros.
    """
    data = np.asarray(image, dtype=np.float32)
    return cv2.normalize(data, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)


def to_uint8(image: np.ndarray) -> np.ndarray:
    """
    Make an image storable as 8-bit.

    uint8 passes through, booleans become 0/255, other types are saturated
    into 0..255 (values are assumed to already be on the pixel scale).
    """
    if image.dtype == np.uint8:
        return image
    if image.dtype == bool:
        return image.astype(np.uint8) * 255
    return np.clip(np.rint(image), 0, 255).astype(np.uint8)


def create_thumbnail(
    image: np.ndarray, width: int = 320, quality: int = 70
) -> Tuple[np.ndarray, str]:
    """
    Create thumbnail from image using OpenCV.

    Images narrower than width are not upscaled.

    Args:
        image: Input image as NumPy array
        width: Target width in pixels
        quality: JPEG quality

    Returns:
        Tuple of (thumbnail as NumPy array, thumbnail as data URI string)
    """
    h, w = image.shape[:2]
    if w > width:
        height = max(1, int(round(width * h / w)))
        thumbnail = cv2.resize(to_uint8(image), (width, height), interpolation=cv2.INTER_AREA)
    else:
        thumbnail = to_uint8(image)

    return thumbnail, DATA_URI_PREFIX + to_base64(thumbnail, format="JPEG", quality=quality)
