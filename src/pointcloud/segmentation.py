"""
RANSAC fitting of planes and spheres.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from domain_types import PointCloudConstants
from pointcloud.cloud import as_points

logger = logging.getLogger(__name__)


@dataclass
class ModelFit:
    """
    Fitted model.

    coefficients are [a, b, c, d] with unit normal for a plane
    (ax + by + cz + d = 0) and [cx, cy, cz, r] for a sphere.
    """

    coefficients: np.ndarray
    inliers: np.ndarray


def _plane_from_points(sample: np.ndarray) -> Optional[np.ndarray]:
    normal = np.cross(sample[1] - sample[0], sample[2] - sample[0])
    norm = np.linalg.norm(normal)
    if norm < 1e-12:
        return None
    normal /= norm
    return np.append(normal, -normal @ sample[0])


def _plane_distances(points: np.ndarray, coefficients: np.ndarray) -> np.ndarray:
    return np.abs(points @ coefficients[:3] + coefficients[3])


def _refine_plane(points: np.ndarray) -> np.ndarray:
    centroid = points.mean(axis=0)
    _, _, vt = np.linalg.svd(points - centroid)
    normal = vt[-1]
    return np.append(normal, -normal @ centroid)


def _sphere_from_points(points: np.ndarray) -> Optional[np.ndarray]:
    """Sphere through the points, x^2+y^2+z^2 + Dx + Ey + Fz + G = 0 (least squares)."""
    a = np.column_stack([points, np.ones(len(points))])
    b = -np.sum(points**2, axis=1)
    try:
        solution, _, rank, _ = np.linalg.lstsq(a, b, rcond=None)
    except np.linalg.LinAlgError:
        return None
    if rank < 4:
        return None
    center = -solution[:3] / 2.0
    radius_sq = center @ center - solution[3]
    if radius_sq <= 0:
        return None
    return np.append(center, np.sqrt(radius_sq))


def _sphere_distances(points: np.ndarray, coefficients: np.ndarray) -> np.ndarray:
    return np.abs(np.linalg.norm(points - coefficients[:3], axis=1) - coefficients[3])


def _ransac(
    points,
    sample_size: int,
    model_fn: Callable[[np.ndarray], Optional[np.ndarray]],
    distance_fn: Callable[[np.ndarray, np.ndarray], np.ndarray],
    refine_fn: Callable[[np.ndarray], Optional[np.ndarray]],
    threshold: float,
    max_iterations: int,
    seed: Optional[int],
    name: str,
) -> ModelFit:
    points = as_points(points)
    if len(points) < sample_size:
        raise ValueError(f"{name} fit needs at least {sample_size} points, got {len(points)}")
    if threshold <= 0:
        raise ValueError(f"Distance threshold must be positive, got {threshold}")

    rng = np.random.default_rng(seed)
    best_model = None
    best_inliers = np.zeros(len(points), dtype=bool)

    for _ in range(max_iterations):
        sample = points[rng.choice(len(points), sample_size, replace=False)]
        model = model_fn(sample)
        if model is None:
            continue
        inliers = distance_fn(points, model) < threshold
        if inliers.sum() > best_inliers.sum():
            best_model, best_inliers = model, inliers

    if best_model is None:
        raise ValueError(f"No {name} model found: every sample was degenerate")

    refined = refine_fn(points[best_inliers])
    if refined is not None:
        refined_inliers = distance_fn(points, refined) < threshold
        if refined_inliers.sum() >= best_inliers.sum():
            best_model, best_inliers = refined, refined_inliers

    indices = np.flatnonzero(best_inliers)
    logger.info(f"RANSAC {name}: {len(indices)}/{len(points)} inliers")
    return ModelFit(coefficients=best_model, inliers=indices)


def fit_plane_ransac(
    points,
    distance_threshold: float = PointCloudConstants.RANSAC_DISTANCE_THRESHOLD,
    max_iterations: int = PointCloudConstants.RANSAC_MAX_ITERATIONS,
    seed: Optional[int] = 0,
) -> ModelFit:
    """Plane with the most points closer than distance_threshold."""
    return _ransac(
        points,
        3,
        _plane_from_points,
        _plane_distances,
        _refine_plane,
        distance_threshold,
        max_iterations,
        seed,
        "plane",
    )


def fit_sphere_ransac(
    points,
    distance_threshold: float = PointCloudConstants.RANSAC_DISTANCE_THRESHOLD,
    max_iterations: int = PointCloudConstants.RANSAC_MAX_ITERATIONS,
    seed: Optional[int] = 0,
) -> ModelFit:
    """Sphere with the most points closer than distance_threshold to its surface."""
    return _ransac(
        points,
        4,
        _sphere_from_points,
        _sphere_distances,
        _sphere_from_points,
        distance_threshold,
        max_iterations,
        seed,
        "sphere",
    )
