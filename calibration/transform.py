from __future__ import annotations

from typing import Optional

import numpy as np

from common.errors import SingularMatrixError
from common.types import AffineTransform, GeoPoint, PixelPoint
from common.utils import as_points_2d


DET_TOLERANCE = 1e-10


def apply_affine(t: AffineTransform, x: float, y: float) -> GeoPoint:
    """Forward map pixel (x, y) -> GeoPoint."""
    lat = t.a * x + t.b * y + t.c
    lng = t.d * x + t.e * y + t.f
    return GeoPoint(float(lat), float(lng))


def invert_affine(t: AffineTransform, lat: float, lng: float) -> PixelPoint:
    """
    Inverse map (lat, lng) -> pixel by Cramer's rule on the 2x2 linear part.

    Raises SingularMatrixError when |a*e - b*d| < DET_TOLERANCE.
    """
    det = t.determinant
    if abs(det) < DET_TOLERANCE:
        raise SingularMatrixError(f"affine determinant {det:.3e} is not invertible")
    dlat = lat - t.c
    dlng = lng - t.f
    x = (t.e * dlat - t.b * dlng) / det
    y = (t.a * dlng - t.d * dlat) / det
    return PixelPoint(float(x), float(y))


class CoordinateTransform:
    """
    Pixel <-> geo conversions for the rest of the application.

    Wraps the current AffineTransform (or None when uncalibrated). Every
    conversion returns None instead of raising when no answer exists, so
    UI code can just fall back to pixel display.
    """

    def __init__(self, transform: Optional[AffineTransform] = None):
        self.transform = transform

    @classmethod
    def from_state(cls, state) -> "CoordinateTransform":
        """Build from a calibration state; Uncalibrated has no transform."""
        return cls(getattr(state, "transform", None))

    @property
    def is_calibrated(self) -> bool:
        return self.transform is not None

    @property
    def is_invertible(self) -> bool:
        return self.transform is not None and abs(self.transform.determinant) >= DET_TOLERANCE

    def pixel_to_geo(self, x: float, y: float) -> Optional[GeoPoint]:
        if self.transform is None:
            return None
        return apply_affine(self.transform, x, y)

    def geo_to_pixel(self, lat: float, lng: float) -> Optional[PixelPoint]:
        if self.transform is None:
            return None
        try:
            return invert_affine(self.transform, lat, lng)
        except SingularMatrixError:
            return None

    # -------------------------
    # Vectorised variants
    # -------------------------
    def pixels_to_geo(self, xy) -> Optional[np.ndarray]:
        """(N, 2) pixel (x, y) -> (N, 2) (lat, lng)."""
        if self.transform is None:
            return None
        pts = as_points_2d(xy)
        M = self.transform.as_matrix()
        return pts @ M[:, :2].T + M[:, 2]

    def geos_to_pixel(self, latlng) -> Optional[np.ndarray]:
        """(N, 2) (lat, lng) -> (N, 2) pixel (x, y); None if not invertible."""
        if not self.is_invertible:
            return None
        t = self.transform
        pts = as_points_2d(latlng)
        dlat = pts[:, 0] - t.c
        dlng = pts[:, 1] - t.f
        det = t.determinant
        x = (t.e * dlat - t.b * dlng) / det
        y = (t.a * dlng - t.d * dlat) / det
        return np.column_stack([x, y])
