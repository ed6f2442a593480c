"""
Overlay rendering for detection results.

Primitives draw in place and return the image; render_* functions copy the
input, convert it to BGR and draw a whole result set.
"""

import logging
from typing import List, Tuple

import cv2
import numpy as np

from domain_types import Colors
from image.converters import ensure_bgr
from schemas.common import VisionObject

logger = logging.getLogger(__name__)

COLOR_SUCCESS = Colors.GREEN
COLOR_FAILURE = Colors.RED
COLOR_INFO = Colors.CYAN

DEFAULT_FONT = cv2.FONT_HERSHEY_SIMPLEX
DEFAULT_FONT_SCALE = 0.5
DEFAULT_THICKNESS = 2
DEFAULT_LINE_TYPE = cv2.LINE_AA


# ==============================================================================
# Primitives
# ==============================================================================


def draw_bounding_box(
    image: np.ndarray,
    x: int,
    y: int,
    width: int,
    height: int,
    color: Tuple[int, int, int] = COLOR_SUCCESS,
    thickness: int = DEFAULT_THICKNESS,
) -> np.ndarray:
    cv2.rectangle(image, (x, y), (x + width, y + height), color, thickness, DEFAULT_LINE_TYPE)
    return image


def draw_label(
    image: np.ndarray,
    text: str,
    x: int,
    y: int,
    color: Tuple[int, int, int] = COLOR_SUCCESS,
    background: bool = False,
    font_scale: float = DEFAULT_FONT_SCALE,
    thickness: int = 1,
) -> np.ndarray:
    """
    Draw a text label with its baseline at (x, y).

    With background=True the text is white on a filled box of the given color.
    """
    text_color = color
    if background:
        (text_width, text_height), baseline = cv2.getTextSize(
            text, DEFAULT_FONT, font_scale, thickness
        )
        cv2.rectangle(image, (x, y - text_height - baseline), (x + text_width, y), color, -1)
        text_color = Colors.WHITE

    cv2.putText(
        image, text, (x, y), DEFAULT_FONT, font_scale, text_color, thickness, DEFAULT_LINE_TYPE
    )
    return image


def draw_center_point(
    image: np.ndarray,
    center_x: float,
    center_y: float,
    color: Tuple[int, int, int] = COLOR_SUCCESS,
    radius: int = 3,
) -> np.ndarray:
    cv2.circle(image, (int(center_x), int(center_y)), radius, color, -1, DEFAULT_LINE_TYPE)
    return image


def draw_contour(
    image: np.ndarray,
    contour: np.ndarray,
    color: Tuple[int, int, int] = COLOR_INFO,
    thickness: int = DEFAULT_THICKNESS,
) -> np.ndarray:
    cv2.drawContours(image, [contour.astype(np.int32)], -1, color, thickness, DEFAULT_LINE_TYPE)
    return image


# ==============================================================================
# Result renderers
# ==============================================================================


def render_contours(
    image: np.ndarray, objects: List[VisionObject], show_centers: bool = True
) -> np.ndarray:
    """Contours in palette colors with their bounding boxes and optional centers."""
    overlay = ensure_bgr(image).copy()

    for i, obj in enumerate(objects):
        color = Colors.PALETTE[i % len(Colors.PALETTE)]
        if obj.contour:
            draw_contour(overlay, np.array(obj.contour, dtype=np.int32), color)
        bbox = obj.bounding_box
        draw_bounding_box(overlay, bbox.x, bbox.y, bbox.width, bbox.height, Colors.BLUE, 1)
        if show_centers:
            draw_center_point(overlay, obj.center.x, obj.center.y, Colors.RED)

    text = f"Contours: {len(objects)}"
    draw_label(overlay, text, 10, 30, Colors.WHITE, font_scale=1.0, thickness=2)
    return overlay


def render_points(
    image: np.ndarray, objects: List[VisionObject], color: Tuple[int, int, int] = COLOR_FAILURE
) -> np.ndarray:
    """Small circles at object centers (corners, tracked features)."""
    overlay = ensure_bgr(image).copy()
    for obj in objects:
        cv2.circle(overlay, obj.center.as_int_tuple(), 5, color, 1, DEFAULT_LINE_TYPE)
    return overlay


def render_lines(image: np.ndarray, objects: List[VisionObject]) -> np.ndarray:
    """Line segments stored as x1, y1, x2, y2 in object properties."""
    overlay = ensure_bgr(image).copy()
    for obj in objects:
        p = obj.properties
        cv2.line(
            overlay,
            (int(p["x1"]), int(p["y1"])),
            (int(p["x2"]), int(p["y2"])),
            COLOR_FAILURE,
            DEFAULT_THICKNESS,
            DEFAULT_LINE_TYPE,
        )
    return overlay


