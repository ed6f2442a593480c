"""
Iterative thinning (skeletonization) of binary images.

Both algorithms look at the 8-neighbourhood of each foreground pixel, named
clockwise from the pixel above:

    P9 P2 P3
    P8 P1 P4
    P7 P6 P5

Each pass has two sub-iterations; a sub-iteration marks pixels from the
current image and removes them all at once. Passes repeat until nothing
changes. Pixels on the image border are never removed.
"""

import logging
from typing import Tuple, Union

import numpy as np

from domain_types import ThinningMethod

logger = logging.getLogger(__name__)

Neighbours = Tuple[np.ndarray, ...]


def _neighbours(img: np.ndarray) -> Neighbours:
    """P2..P9 as arrays aligned with img (outside the image counts as background)."""
    p = np.pad(img, 1)
    return (
        p[:-2, 1:-1],  # P2 north
        p[:-2, 2:],  # P3 north-east
        p[1:-1, 2:],  # P4 east
        p[2:, 2:],  # P5 south-east
        p[2:, 1:-1],  # P6 south
        p[2:, :-2],  # P7 south-west
        p[1:-1, :-2],  # P8 west
        p[:-2, :-2],  # P9 north-west
    )


def _zhang_suen_marker(img: np.ndarray, iteration: int) -> np.ndarray:
    p2, p3, p4, p5, p6, p7, p8, p9 = _neighbours(img)

    ring = (p2, p3, p4, p5, p6, p7, p8, p9, p2)
    transitions = sum(
        ((a == 0) & (b == 1)).astype(np.uint8) for a, b in zip(ring[:-1], ring[1:])
    )
    count = p2 + p3 + p4 + p5 + p6 + p7 + p8 + p9

    if iteration == 0:
        m1 = p2 * p4 * p6
        m2 = p4 * p6 * p8
    else:
        m1 = p2 * p4 * p8
        m2 = p2 * p6 * p8

    return (transitions == 1) & (count >= 2) & (count <= 6) & (m1 == 0) & (m2 == 0)


def _guo_hall_marker(img: np.ndarray, iteration: int) -> np.ndarray:
    p2, p3, p4, p5, p6, p7, p8, p9 = (n.astype(bool) for n in _neighbours(img))

    c = (
        (~p2 & (p3 | p4)).astype(np.uint8)
        + (~p4 & (p5 | p6))
        + (~p6 & (p7 | p8))
        + (~p8 & (p9 | p2))
    )
    n1 = (
        (p9 | p2).astype(np.uint8) + (p3 | p4) + (p5 | p6) + (p7 | p8)
    )
    n2 = (
        (p2 | p3).astype(np.uint8) + (p4 | p5) + (p6 | p7) + (p8 | p9)
    )
    n = np.minimum(n1, n2)

    if iteration == 0:
        m = (p6 | p7 | ~p9) & p8
    else:
        m = (p2 | p3 | ~p5) & p4

    return (c == 1) & (n >= 2) & (n <= 3) & ~m


_MARKERS = {
    ThinningMethod.ZHANG_SUEN: _zhang_suen_marker,
    ThinningMethod.GUO_HALL: _guo_hall_marker,
}


def thin(
    image: np.ndarray, method: Union[ThinningMethod, str] = ThinningMethod.ZHANG_SUEN
) -> np.ndarray:
    """
    Reduce foreground regions to one-pixel-wide skeletons.

    Args:
        image: Single-channel image; nonzero pixels are foreground
        method: Zhang-Suen or Guo-Hall

    Returns:
        uint8 skeleton with values 0 and 255
    """
    if image.ndim != 2:
        raise ValueError(f"Thinning needs a single-channel image, got shape {image.shape}")

    marker_fn = _MARKERS[ThinningMethod(method)]
    img = (image > 0).astype(np.uint8)

    interior = np.zeros(img.shape, dtype=bool)
    interior[1:-1, 1:-1] = True

    passes = 0
    while True:
        previous = img.copy()
        for iteration in (0, 1):
            marker = marker_fn(img, iteration) & interior & (img == 1)
            img[marker] = 0
        passes += 1
        if np.array_equal(img, previous):
            break

    logger.debug(f"Thinning ({ThinningMethod(method).value}) converged after {passes} passes")
    return img * 255
