from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence, Union

import numpy as np

from common.types import GeoPoint, PixelPoint


def iso_now_ms() -> str:
    """UTC ISO-8601 timestamp with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def as_square_matrix(x) -> np.ndarray:
    """Return a float64 n x n copy of `x`; raises ValueError for other shapes."""
    a = np.array(x, dtype=float, copy=True)
    if a.ndim != 2 or a.shape[0] != a.shape[1] or a.shape[0] == 0:
        raise ValueError(f"Expected a non-empty square matrix, got shape {a.shape}")
    return a


def as_vector(x, n: int) -> np.ndarray:
    """Return a float64 length-n copy of `x`."""
    v = np.array(x, dtype=float, copy=True).reshape(-1)
    if v.shape != (n,):
        raise ValueError(f"Expected vector of length {n}, got shape {v.shape}")
    return v


def as_points_2d(x) -> np.ndarray:
    """Coerce an (N, 2) array-like to float64."""
    a = np.asarray(x, dtype=float)
    if a.ndim != 2 or a.shape[1] != 2:
        raise ValueError(f"Expected (N, 2) points, got shape {a.shape}")
    return a


def to_pixel(p: Union[PixelPoint, Sequence[float]]) -> PixelPoint:
    """Accept a PixelPoint or an (x, y) pair."""
    if isinstance(p, PixelPoint):
        return p
    x, y = p
    return PixelPoint(float(x), float(y))


def to_geo(g: Union[GeoPoint, Sequence[float]]) -> GeoPoint:
    """Accept a GeoPoint or a (lat, lng) pair."""
    if isinstance(g, GeoPoint):
        return g
    lat, lng = g
    return GeoPoint(float(lat), float(lng))
