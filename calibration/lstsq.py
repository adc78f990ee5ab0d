"""
Least-squares plane fits for the N-point (N >= 3) affine calibration.

Each geographic axis is fitted independently as value = p*x + q*y + r via the
normal equations (AᵗA)·k = Aᵗb with design rows [x_i, y_i, 1]. The system is
always 3x3 however many points are supplied, so the pivoting solver in
calibration.solver is enough; no QR/SVD needed at this scale.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from calibration.solver import solve
from common.errors import InsufficientPointsError
from common.types import AffineTransform, ReferencePoint
from common.utils import as_points_2d


MIN_POINTS = 3


@dataclass(frozen=True, slots=True, eq=False)
class LeastSquaresFit:
    """
    Result of fit_affine().

    Attributes:
        transform: fitted AffineTransform.
        residuals: (N, 2) observed minus predicted (lat, lng) in degrees.
    """
    transform: AffineTransform
    residuals: np.ndarray

    @property
    def rms_residual(self) -> float:
        """Root-mean-square residual length (degrees)."""
        if self.residuals.size == 0:
            return 0.0
        return float(np.sqrt(np.mean(np.sum(self.residuals ** 2, axis=1))))


def normal_equations(pixels, values) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build AᵗA (3x3) and Aᵗb (3,) for value = p*x + q*y + r.

    Args:
        pixels: (N, 2) pixel coordinates
        values: (N,) observed values for one axis
    """
    xy = as_points_2d(pixels)
    b = np.asarray(values, dtype=float).reshape(-1)
    if b.shape[0] != xy.shape[0]:
        raise ValueError("pixels and values must have the same length")
    A = np.column_stack([xy, np.ones(xy.shape[0])])
    return A.T @ A, A.T @ b


def fit_plane(pixels, values) -> Tuple[float, float, float]:
    """Solve the normal equations for one axis; returns (p, q, r)."""
    AtA, Atb = normal_equations(pixels, values)
    p, q, r = solve(AtA, Atb)
    return float(p), float(q), float(r)


def fit_affine(points: Sequence[ReferencePoint]) -> LeastSquaresFit:
    """
    Full 6-parameter affine fit (rotation and shear included).

    Raises:
        InsufficientPointsError: fewer than MIN_POINTS correspondences.
        SingularMatrixError: pixel layout is degenerate (e.g. collinear).
    """
    if len(points) < MIN_POINTS:
        raise InsufficientPointsError(f"need at least {MIN_POINTS} points, got {len(points)}")

    pixels = np.array([(p.pixel.x, p.pixel.y) for p in points], dtype=float)
    geos = np.array([(p.geo.latitude, p.geo.longitude) for p in points], dtype=float)

    a, b, c = fit_plane(pixels, geos[:, 0])
    d, e, f = fit_plane(pixels, geos[:, 1])
    transform = AffineTransform(a, b, c, d, e, f)

    M = transform.as_matrix()
    predicted = pixels @ M[:, :2].T + M[:, 2]
    return LeastSquaresFit(transform=transform, residuals=geos - predicted)
