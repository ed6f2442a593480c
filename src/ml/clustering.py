"""
k-means clustering.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from domain_types import Colors, MLConstants

logger = logging.getLogger(__name__)

KMEANS_CRITERIA = (cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER, 10, 1.0)


@dataclass
class Clustering:
    labels: np.ndarray
    centers: np.ndarray
    compactness: float


def kmeans(
    points: np.ndarray, clusters: int, attempts: int = MLConstants.KMEANS_ATTEMPTS
) -> Clustering:
    """
    Cluster points with k-means++ initialization.

    Raises:
        ValueError: If clusters is not between 1 and the number of points
    """
    data = np.asarray(points, dtype=np.float32)
    if data.ndim == 1:
        data = data.reshape(-1, 1)
    if not 1 <= clusters <= len(data):
        raise ValueError(f"clusters must be between 1 and {len(data)}, got {clusters}")
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")

    compactness, labels, centers = cv2.kmeans(
        data, clusters, None, KMEANS_CRITERIA, attempts, cv2.KMEANS_PP_CENTERS
    )
    logger.debug(f"k-means k={clusters}: compactness {compactness:.1f}")
    return Clustering(labels=labels.flatten(), centers=centers, compactness=float(compactness))


def draw_clusters(
    points: np.ndarray,
    clustering: Clustering,
    size: Optional[Tuple[int, int]] = None,
) -> np.ndarray:
    """Points colored by cluster with a ring around each center."""
    if size is None:
        extent = np.ceil(np.max(points, axis=0)).astype(int) + 1
        size = (int(extent[0]), int(extent[1]))
    width, height = size
    canvas = np.zeros((height, width, 3), dtype=np.uint8)

    for point, label in zip(points, clustering.labels):
        color = Colors.PALETTE[int(label) % len(Colors.PALETTE)]
        cv2.circle(canvas, (int(point[0]), int(point[1])), 2, color, cv2.FILLED, cv2.LINE_AA)
    for index, center in enumerate(clustering.centers):
        color = Colors.PALETTE[index % len(Colors.PALETTE)]
        cv2.circle(canvas, (int(center[0]), int(center[1])), 40, color, 1, cv2.LINE_AA)
    return canvas
