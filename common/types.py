from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

import numpy as np


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """
    Geographic location in degrees.

    Range is not checked here; the calibration UI validates user input
    before it reaches the core.
    """
    latitude: float
    longitude: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": float(self.latitude), "lng": float(self.longitude)}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "GeoPoint":
        return cls(latitude=float(d["lat"]), longitude=float(d["lng"]))


@dataclass(frozen=True, slots=True)
class PixelPoint:
    """Image-space location, origin at the top-left corner of the raster."""
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": float(self.x), "y": float(self.y)}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "PixelPoint":
        return cls(x=float(d["x"]), y=float(d["y"]))


@dataclass(frozen=True, slots=True)
class ReferencePoint:
    """One user-supplied pixel <-> geo correspondence."""
    pixel: PixelPoint
    geo: GeoPoint

    def to_dict(self) -> Dict[str, Any]:
        return {"pixel": self.pixel.to_dict(), "geo": self.geo.to_dict()}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ReferencePoint":
        return cls(pixel=PixelPoint.from_dict(d["pixel"]), geo=GeoPoint.from_dict(d["geo"]))


@dataclass(frozen=True, slots=True)
class AffineTransform:
    """
    Pixel -> geo affine map:

        lat = a*x + b*y + c
        lng = d*x + e*y + f

    Derived from the reference set only; never edited by hand.
    """
    a: float
    b: float
    c: float
    d: float
    e: float
    f: float

    @property
    def determinant(self) -> float:
        """Determinant of the 2x2 linear part."""
        return self.a * self.e - self.b * self.d

    @property
    def coefficients(self) -> tuple[float, float, float, float, float, float]:
        return (self.a, self.b, self.c, self.d, self.e, self.f)

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.coefficients)))

    def as_matrix(self) -> np.ndarray:
        """2x3 matrix [[a, b, c], [d, e, f]]."""
        return np.array([[self.a, self.b, self.c], [self.d, self.e, self.f]], dtype=float)

    def to_dict(self) -> Dict[str, float]:
        return {k: float(v) for k, v in zip("abcdef", self.coefficients)}
