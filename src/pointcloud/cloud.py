"""
XYZ point clouds: ASCII PCD encoding, synthetic clouds and rigid transforms.

Clouds are (N, 3) float arrays.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np

logger = logging.getLogger(__name__)

PCD_VERSION = "0.7"


def as_points(points) -> np.ndarray:
    """Validate and convert to an (N, 3) float64 array."""
    array = np.asarray(points, dtype=np.float64)
    if array.ndim != 2 or array.shape[1] != 3:
        raise ValueError(f"Point cloud must have shape (N, 3), got {array.shape}")
    return array


def format_pcd(points) -> str:
    """Encode a cloud as an ASCII PCD v0.7 document with x y z float fields."""
    points = as_points(points)
    count = len(points)
    header = [
        "# .PCD v0.7 - Point Cloud Data file format",
        f"VERSION {PCD_VERSION}",
        "FIELDS x y z",
        "SIZE 4 4 4",
        "TYPE F F F",
        "COUNT 1 1 1",
        f"WIDTH {count}",
        "HEIGHT 1",
        "VIEWPOINT 0 0 0 1 0 0 0",
        f"POINTS {count}",
        "DATA ascii",
    ]
    body = [f"{x:.8g} {y:.8g} {z:.8g}" for x, y, z in points.astype(np.float32)]
    return "\n".join(header + body) + "\n"


def parse_pcd(text: str) -> np.ndarray:
    """
    Decode an ASCII PCD document.

    Only the x, y and z fields are returned; other fields are skipped.

    Raises:
        ValueError: On a missing header entry, non-ASCII data or a short body
    """
    lines = text.splitlines()
    header = {}
    data_start = None

    for index, raw in enumerate(lines):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition(" ")
        header[key.upper()] = value.strip()
        if key.upper() == "DATA":
            data_start = index + 1
            break

    if data_start is None:
        raise ValueError("PCD header has no DATA line")
    if header["DATA"].lower() != "ascii":
        raise ValueError(f"Only ASCII PCD data is supported, got '{header['DATA']}'")

    fields = header.get("FIELDS", "").split()
    missing = [axis for axis in ("x", "y", "z") if axis not in fields]
    if missing:
        raise ValueError(f"PCD fields {fields} lack {missing}")
    columns = [fields.index(axis) for axis in ("x", "y", "z")]

    rows = [line.split() for line in lines[data_start:] if line.strip()]
    expected = int(header.get("POINTS", len(rows)))
    if len(rows) < expected:
        raise ValueError(f"PCD declares {expected} points but contains {len(rows)}")

    points = np.array([[float(row[c]) for c in columns] for row in rows[:expected]])
    return points.reshape(-1, 3)


def write_pcd(path: Union[str, Path], points) -> int:
    """Write an ASCII PCD file and return the number of points written."""
    points = as_points(points)
    Path(path).write_text(format_pcd(points))
    logger.info(f"Saved {len(points)} data points to {path}")
    return len(points)


def read_pcd(path: Union[str, Path]) -> np.ndarray:
    """Read an ASCII PCD file."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"PCD file not found: {path}")
    points = parse_pcd(path.read_text())
    logger.info(f"Loaded {len(points)} data points from {path}")
    return points


def make_plane_cloud(
    n: int = 500, outlier_ratio: float = 0.5, seed: Optional[int] = 0, extent: float = 1.0
) -> np.ndarray:
    """
    Points on the plane x + y + z = 0 mixed with uniform outliers.

    Args:
        n: Total number of points
        outlier_ratio: Share of points with a random z
        seed: Random seed
        extent: x and y are drawn from [-extent, extent]
    """
    if n <= 0 or not 0.0 <= outlier_ratio < 1.0:
        raise ValueError(f"Invalid plane cloud parameters n={n}, outlier_ratio={outlier_ratio}")
    rng = np.random.default_rng(seed)

    xy = rng.uniform(-extent, extent, size=(n, 2))
    z = -(xy[:, 0] + xy[:, 1])
    outliers = rng.random(n) < outlier_ratio
    z[outliers] = rng.uniform(-2 * extent, 2 * extent, size=int(outliers.sum()))
    return np.column_stack([xy, z])


def make_sphere_cloud(
    n: int = 500,
    radius: float = 1.0,
    center: Sequence[float] = (0.0, 0.0, 0.0),
    outlier_ratio: float = 0.2,
    seed: Optional[int] = 0,
) -> np.ndarray:
    """Points on a sphere surface mixed with uniform outliers in its bounding cube."""
    if n <= 0 or radius <= 0 or not 0.0 <= outlier_ratio < 1.0:
        raise ValueError(
            f"Invalid sphere cloud parameters n={n}, radius={radius}, "
            f"outlier_ratio={outlier_ratio}"
        )
    rng = np.random.default_rng(seed)
    center = np.asarray(center, dtype=np.float64)

    directions = rng.normal(size=(n, 3))
    directions /= np.linalg.norm(directions, axis=1, keepdims=True)
    points = center + radius * directions

    outliers = rng.random(n) < outlier_ratio
    points[outliers] = center + rng.uniform(-radius, radius, size=(int(outliers.sum()), 3))
    return points


def make_transform(
    rotation_deg: Sequence[float] = (0.0, 0.0, 0.0),
    translation: Sequence[float] = (0.0, 0.0, 0.0),
) -> np.ndarray:
    """
    4x4 rigid transform.

    Args:
        rotation_deg: Rotations about x, y and z in degrees, applied in that order
        translation: Translation (tx, ty, tz)
    """
    rx, ry, rz = np.radians(np.asarray(rotation_deg, dtype=np.float64))
    cx, sx = np.cos(rx), np.sin(rx)
    cy, sy = np.cos(ry), np.sin(ry)
    cz, sz = np.cos(rz), np.sin(rz)

    rot_x = np.array([[1, 0, 0], [0, cx, -sx], [0, sx, cx]])
    rot_y = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]])
    rot_z = np.array([[cz, -sz, 0], [sz, cz, 0], [0, 0, 1]])

    matrix = np.eye(4)
    matrix[:3, :3] = rot_z @ rot_y @ rot_x
    matrix[:3, 3] = np.asarray(translation, dtype=np.float64)
    return matrix


def transform_points(points, matrix) -> np.ndarray:
    """Apply a 4x4 homogeneous transform to every point."""
    points = as_points(points)
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.shape != (4, 4):
        raise ValueError(f"Transform must be 4x4, got {matrix.shape}")
    return points @ matrix[:3, :3].T + matrix[:3, 3]
