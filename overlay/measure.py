from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from calibration.transform import CoordinateTransform
from common.geo import distance, pixel_distance
from common.types import PixelPoint
from common.utils import iso_now_ms


KM_THRESHOLD_M = 1000.0


@dataclass(frozen=True, slots=True)
class Measurement:
    """
    Distance between two picked pixel locations.

    Attributes:
        points: the two pixel locations, in pick order.
        distance: value in `unit`.
        unit: "m", "km" or "pixels" (uncalibrated fallback).
        ts: ISO-8601 (UTC) time the measurement was taken.
    """
    points: Tuple[PixelPoint, PixelPoint]
    distance: float
    unit: str
    ts: str = field(default_factory=iso_now_ms)

    def label(self) -> str:
        return f"{self.distance:.2f} {self.unit}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "points": [p.to_dict() for p in self.points],
            "distance": float(self.distance),
            "unit": self.unit,
            "label": self.label(),
            "ts": self.ts,
        }


def measure(p1: PixelPoint, p2: PixelPoint, transform: CoordinateTransform) -> Measurement:
    """
    Measure between two pixels.

    Uses great-circle distance when both pixels convert to geo, switching to
    km above KM_THRESHOLD_M; otherwise reports the plain pixel distance.
    """
    g1 = transform.pixel_to_geo(p1.x, p1.y)
    g2 = transform.pixel_to_geo(p2.x, p2.y)
    if g1 is None or g2 is None:
        return Measurement(points=(p1, p2), distance=pixel_distance(p1, p2), unit="pixels")

    meters = distance(g1, g2)
    if meters > KM_THRESHOLD_M:
        return Measurement(points=(p1, p2), distance=meters / 1000.0, unit="km")
    return Measurement(points=(p1, p2), distance=meters, unit="m")
