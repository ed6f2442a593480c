"""
Sparse and dense optical flow, plus accumulated frame differences.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

import cv2
import numpy as np

from domain_types import Colors, FlowConstants
from image.converters import ensure_bgr, ensure_grayscale

logger = logging.getLogger(__name__)

LK_CRITERIA = (cv2.TERM_CRITERIA_EPS | cv2.TERM_CRITERIA_COUNT, 10, 0.03)


@dataclass
class SparseFlow:
    """Feature positions in the previous frame and where they were tracked to."""

    points_prev: np.ndarray
    points_next: np.ndarray

    @property
    def displacements(self) -> np.ndarray:
        return self.points_next - self.points_prev

    def __len__(self) -> int:
        return len(self.points_prev)


def _check_pair(prev: np.ndarray, next_: np.ndarray) -> None:
    if prev.shape[:2] != next_.shape[:2]:
        raise ValueError(f"Frame sizes differ: {prev.shape[:2]} vs {next_.shape[:2]}")


def track_features(
    prev: np.ndarray,
    next_: np.ndarray,
    max_corners: int = FlowConstants.MAX_CORNERS,
    quality: float = FlowConstants.QUALITY_LEVEL,
    min_distance: float = FlowConstants.MIN_DISTANCE,
    block_size: int = FlowConstants.BLOCK_SIZE,
    win_size: int = FlowConstants.LK_WINDOW,
    max_level: int = FlowConstants.LK_MAX_LEVEL,
) -> SparseFlow:
    """
    Shi-Tomasi corners in prev tracked into next with pyramidal Lucas-Kanade.

    Only successfully tracked points are returned; a frame without
    trackable corners gives an empty result.
    """
    _check_pair(prev, next_)
    prev_gray = ensure_grayscale(prev)
    next_gray = ensure_grayscale(next_)

    corners = cv2.goodFeaturesToTrack(
        prev_gray,
        maxCorners=max_corners,
        qualityLevel=quality,
        minDistance=min_distance,
        blockSize=block_size,
    )
    if corners is None:
        logger.warning("No features to track in the previous frame")
        empty = np.empty((0, 2), dtype=np.float32)
        return SparseFlow(points_prev=empty, points_next=empty.copy())

    tracked, status, _ = cv2.calcOpticalFlowPyrLK(
        prev_gray,
        next_gray,
        corners,
        None,
        winSize=(win_size, win_size),
        maxLevel=max_level,
        criteria=LK_CRITERIA,
    )

    good = status.flatten() == 1
    logger.debug(f"Tracked {int(good.sum())}/{len(corners)} features")
    return SparseFlow(
        points_prev=corners.reshape(-1, 2)[good],
        points_next=tracked.reshape(-1, 2)[good],
    )


def dense_flow(prev: np.ndarray, next_: np.ndarray) -> np.ndarray:
    """Farneback flow field (H x W x 2, dx and dy in pixels)."""
    _check_pair(prev, next_)
    return cv2.calcOpticalFlowFarneback(
        ensure_grayscale(prev), ensure_grayscale(next_), None, 0.5, 3, 15, 3, 5, 1.2, 0
    )


def flow_to_color(flow: np.ndarray) -> np.ndarray:
    """Direction as hue and normalized magnitude as value, full saturation."""
    if flow.ndim != 3 or flow.shape[2] != 2:
        raise ValueError(f"Flow must have shape (H, W, 2), got {flow.shape}")

    magnitude, angle = cv2.cartToPolar(flow[..., 0], flow[..., 1], angleInDegrees=True)
    hsv = np.zeros((flow.shape[0], flow.shape[1], 3), dtype=np.uint8)
    hsv[..., 0] = (angle / 2).astype(np.uint8)
    hsv[..., 1] = 255
    hsv[..., 2] = cv2.normalize(magnitude, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    return cv2.cvtColor(hsv, cv2.COLOR_HSV2BGR)


def draw_tracks(image: np.ndarray, flow: SparseFlow) -> np.ndarray:
    """Track lines from previous to next position with a dot at the new position."""
    canvas = ensure_bgr(image).copy()
    for i, (old, new) in enumerate(zip(flow.points_prev, flow.points_next)):
        color = Colors.PALETTE[i % len(Colors.PALETTE)]
        a, b = int(new[0]), int(new[1])
        c, d = int(old[0]), int(old[1])
        cv2.line(canvas, (a, b), (c, d), color, 2)
        cv2.circle(canvas, (a, b), 5, color, -1)
    return canvas


def accumulate_differences(frames: Sequence[np.ndarray]) -> np.ndarray:
    """
    Sum of |frame_k - frame_0| over the following frames, stretched to 0..255.

    Raises:
        ValueError: With fewer than two frames or frames of different size
    """
    if len(frames) < 2:
        raise ValueError("Frame differencing needs at least two frames")

    base = ensure_grayscale(frames[0])
    total = np.zeros(base.shape, dtype=np.float32)
    for frame in frames[1:]:
        _check_pair(base, frame)
        total += cv2.absdiff(base, ensure_grayscale(frame)).astype(np.float32)

    return cv2.normalize(total, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
