"""
Rigid registration with Iterative Closest Point.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from domain_types import PointCloudConstants
from pointcloud.cloud import as_points

logger = logging.getLogger(__name__)


@dataclass
class IcpResult:
    """
    Outcome of ICP.

    fitness is the mean squared distance from each aligned source point to
    its nearest target point (lower is better).
    """

    transformation: np.ndarray
    fitness: float
    converged: bool
    iterations: int
    aligned: np.ndarray


def nearest_neighbours(
    source: np.ndarray,
    target: np.ndarray,
    chunk_size: int = PointCloudConstants.NEIGHBOUR_CHUNK_SIZE,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Brute-force nearest target point for every source point.

    Returns:
        (indices into target, Euclidean distances)
    """
    indices = np.empty(len(source), dtype=np.int64)
    distances = np.empty(len(source), dtype=np.float64)
    target_sq = np.einsum("ij,ij->i", target, target)

    for start in range(0, len(source), chunk_size):
        block = source[start : start + chunk_size]
        d2 = (
            np.einsum("ij,ij->i", block, block)[:, None]
            - 2.0 * block @ target.T
            + target_sq[None, :]
        )
        best = np.argmin(d2, axis=1)
        indices[start : start + len(block)] = best
        distances[start : start + len(block)] = np.sqrt(
            np.maximum(d2[np.arange(len(block)), best], 0.0)
        )

    return indices, distances


def best_fit_transform(source: np.ndarray, target: np.ndarray) -> np.ndarray:
    """
    Least-squares rigid transform mapping source onto target (Kabsch).

    Returns:
        4x4 homogeneous matrix
    """
    source_center = source.mean(axis=0)
    target_center = target.mean(axis=0)

    covariance = (source - source_center).T @ (target - target_center)
    u, _, vt = np.linalg.svd(covariance)
    rotation = vt.T @ u.T

    # Reflection: flip the axis of the smallest singular value
    if np.linalg.det(rotation) < 0:
        vt[-1, :] *= -1
        rotation = vt.T @ u.T

    matrix = np.eye(4)
    matrix[:3, :3] = rotation
    matrix[:3, 3] = target_center - rotation @ source_center
    return matrix


def icp(
    source,
    target,
    max_iterations: int = PointCloudConstants.ICP_MAX_ITERATIONS,
    tolerance: float = PointCloudConstants.ICP_TOLERANCE,
    max_correspondence_distance: Optional[float] = None,
) -> IcpResult:
    """
    Align source to target.

    Args:
        source: Cloud to move
        target: Fixed cloud
        max_iterations: Iteration limit
        tolerance: Stop when the mean correspondence error changes less than this
        max_correspondence_distance: Ignore pairs farther apart than this

    Raises:
        ValueError: If either cloud has fewer than three points
    """
    source = as_points(source)
    target = as_points(target)
    if len(source) < 3 or len(target) < 3:
        raise ValueError("ICP needs at least three points in each cloud")
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")

    current = source.copy()
    transformation = np.eye(4)
    previous_error = np.inf
    converged = False
    iterations = 0

    for iterations in range(1, max_iterations + 1):
        indices, distances = nearest_neighbours(current, target)
        valid = np.ones(len(current), dtype=bool)
        if max_correspondence_distance is not None:
            valid = distances <= max_correspondence_distance
        if valid.sum() < 3:
            logger.warning(f"ICP stopped at iteration {iterations}: too few correspondences")
            break

        step = best_fit_transform(current[valid], target[indices[valid]])
        current = current @ step[:3, :3].T + step[:3, 3]
        transformation = step @ transformation

        error = float(distances[valid].mean())
        if abs(previous_error - error) < tolerance:
            converged = True
            break
        previous_error = error

    _, distances = nearest_neighbours(current, target)
    fitness = float(np.mean(distances**2))

    logger.info(
        f"ICP {'converged' if converged else 'stopped'} after {iterations} iterations, "
        f"fitness {fitness:.6g}"
    )
    return IcpResult(
        transformation=transformation,
        fitness=fitness,
        converged=converged,
        iterations=iterations,
        aligned=current,
    )
