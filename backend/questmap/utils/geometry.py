"""Leaf-node geometry helpers for normalized map curves. No engine imports."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray
from shapely.geometry import LineString, Point

from questmap.models.map_spec import MapPoint


def to_array(points: Sequence[MapPoint]) -> NDArray[np.float64]:
    """Nx2 array of (x, y)."""
    if not points:
        return np.empty((0, 2))
    return np.array([[p.x, p.y] for p in points], dtype=np.float64)


def from_array(arr: NDArray[np.float64]) -> list[MapPoint]:
    return [MapPoint(x=float(x), y=float(y)) for x, y in arr]


def resample_path(path: Sequence[MapPoint], n: int) -> list[MapPoint]:
    """Return exactly ``n`` points along ``path``.

    When the path already has at least ``n`` vertices the first ``n`` are
    returned as-is (truncation, not resampling). Otherwise ``n`` evenly spaced
    parametric positions ``t = i / (n - 1)`` are mapped onto vertex space
    ``[0, len(path) - 1]`` and linearly interpolated between the two
    bracketing vertices.
    """
    if n < 2:
        raise ValueError(f"resample_path needs n >= 2, got {n}")
    if len(path) < 2:
        raise ValueError(f"resample_path needs a path of >= 2 points, got {len(path)}")
    if len(path) >= n:
        return list(path[:n])

    pts = to_array(path)
    last = len(pts) - 1
    scaled = np.linspace(0.0, 1.0, n) * last
    left = np.floor(scaled).astype(int)
    right = np.minimum(left + 1, last)
    local = (scaled - left)[:, None]
    out = pts[left] + (pts[right] - pts[left]) * local
    return from_array(out)


def project_onto_path(path: Sequence[MapPoint], points: Sequence[MapPoint]) -> list[float]:
    """Distance along ``path`` of the closest path location to each point."""
    line = LineString([(p.x, p.y) for p in path])
    return [float(line.project(Point(p.x, p.y))) for p in points]


def is_monotonic(values: Sequence[float], eps: float = 1e-9) -> bool:
    """True when ``values`` never decreases (within ``eps``)."""
    return all(b >= a - eps for a, b in zip(values, values[1:]))
