"""
Synthetic 2D datasets in pixel coordinates.
"""

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from domain_types import MLConstants

logger = logging.getLogger(__name__)


def make_svm_dataset(
    samples_per_class: int = MLConstants.SAMPLES_PER_CLASS,
    linear_fraction: float = MLConstants.LINEAR_FRACTION,
    size: int = MLConstants.DATASET_SIZE,
    seed: Optional[int] = MLConstants.DATASET_SEED,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Two classes that are linearly separable except for a mixed band.

    The first linear_fraction of class 1 lies in x in [0, 0.4 size), the
    same share of class 2 in [0.6 size, size); the remaining samples of both
    classes share x in [0.4 size, 0.6 size). y spans the whole image.

    Returns:
        (samples float32 (2n, 2), labels int32 (2n,) with values 1 and 2)
    """
    if samples_per_class <= 0 or size <= 0:
        raise ValueError(f"Invalid dataset size: {samples_per_class} samples, {size} px")
    if not 0.0 <= linear_fraction <= 1.0:
        raise ValueError(f"linear_fraction must be in [0, 1], got {linear_fraction}")

    rng = np.random.default_rng(seed)
    total = 2 * samples_per_class
    n_linear = int(linear_fraction * samples_per_class)

    samples = np.empty((total, 2), dtype=np.float32)
    samples[:, 1] = rng.uniform(0, size, total)

    samples[:n_linear, 0] = rng.uniform(0, 0.4 * size, n_linear)
    samples[total - n_linear :, 0] = rng.uniform(0.6 * size, size, n_linear)
    mixed = total - 2 * n_linear
    samples[n_linear : total - n_linear, 0] = rng.uniform(0.4 * size, 0.6 * size, mixed)

    labels = np.empty(total, dtype=np.int32)
    labels[:samples_per_class] = 1
    labels[samples_per_class:] = 2
    return samples, labels


def make_blobs(
    centers: Sequence[Sequence[float]],
    samples_per_center: int = 100,
    spread: float = 25.0,
    seed: Optional[int] = 0,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Gaussian clusters around the given centers.

    Returns:
        (samples float32, labels int32 0..len(centers)-1), shuffled
    """
    if not centers:
        raise ValueError("At least one center is required")
    if samples_per_center <= 0 or spread < 0:
        raise ValueError(f"Invalid blob parameters: {samples_per_center} samples, spread {spread}")

    rng = np.random.default_rng(seed)
    centers = np.asarray(centers, dtype=np.float64)
    shape = (samples_per_center, centers.shape[1])
    samples = np.concatenate([rng.normal(c, spread, size=shape) for c in centers])
    samples = samples.astype(np.float32)
    labels = np.repeat(np.arange(len(centers), dtype=np.int32), samples_per_center)

    order = rng.permutation(len(samples))
    return samples[order], labels[order]
