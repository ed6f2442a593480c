"""
Flood fill from a seed point.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import cv2
import numpy as np

from domain_types import ROI, FloodFillMode, VisionConstants

logger = logging.getLogger(__name__)


@dataclass
class FloodFillResult:
    """Filled image plus the size and extent of the filled region."""

    image: np.ndarray
    area: int
    bounding_box: ROI
    mask: Optional[np.ndarray] = None


def _default_fill_value(image: np.ndarray, seed: Tuple[int, int]):
    # Deterministic color derived from the seed so repeated fills are reproducible
    rng = np.random.default_rng(seed[0] * 7919 + seed[1])
    if image.ndim == 2:
        return int(rng.integers(0, 256))
    return tuple(int(v) for v in rng.integers(0, 256, size=3))


def flood_fill(
    image: np.ndarray,
    seed: Tuple[int, int],
    mode: Union[FloodFillMode, str] = FloodFillMode.FIXED,
    lo_diff: int = VisionConstants.FLOOD_DIFF_DEFAULT,
    up_diff: int = VisionConstants.FLOOD_DIFF_DEFAULT,
    connectivity: int = 4,
    new_value=None,
    use_mask: bool = False,
) -> FloodFillResult:
    """
    Fill the connected region around seed.

    Args:
        image: BGR or grayscale image (not modified)
        seed: (x, y) starting pixel
        mode: SIMPLE fills exact matches only, FIXED compares against the seed
            value, GRADIENT compares against each neighbour (floating range)
        lo_diff: Maximal lower brightness difference
        up_diff: Maximal upper brightness difference
        connectivity: 4 or 8
        new_value: Fill color; derived from the seed when omitted
        use_mask: Also return the filled region as a 0/255 mask

    Raises:
        ValueError: If the seed is outside the image or connectivity is not 4 or 8
    """
    mode = FloodFillMode(mode)
    height, width = image.shape[:2]
    x, y = int(seed[0]), int(seed[1])
    if not (0 <= x < width and 0 <= y < height):
        raise ValueError(f"Seed ({x}, {y}) outside image {width}x{height}")
    if connectivity not in (4, 8):
        raise ValueError(f"Connectivity must be 4 or 8, got {connectivity}")
    if lo_diff < 0 or up_diff < 0:
        raise ValueError("Brightness differences must be non-negative")

    if mode == FloodFillMode.SIMPLE:
        lo_diff = up_diff = 0

    flags = connectivity | (255 << 8)
    if mode == FloodFillMode.FIXED:
        flags |= cv2.FLOODFILL_FIXED_RANGE

    if new_value is None:
        new_value = _default_fill_value(image, (x, y))

    if image.ndim == 2:
        lo, up = lo_diff, up_diff
    else:
        lo, up = (lo_diff,) * 3, (up_diff,) * 3

    filled = image.copy()
    mask = np.zeros((height + 2, width + 2), dtype=np.uint8) if use_mask else None

    area, _, _, rect = cv2.floodFill(filled, mask, (x, y), new_value, lo, up, flags)

    logger.debug(f"Flood fill from ({x}, {y}) [{mode.value}]: {area} pixels")
    return FloodFillResult(
        image=filled,
        area=int(area),
        bounding_box=ROI.from_rect(rect),
        mask=mask[1:-1, 1:-1].copy() if mask is not None else None,
    )
