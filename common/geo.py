from __future__ import annotations

import math

from common.types import GeoPoint, PixelPoint


EARTH_RADIUS_M = 6_371_000.0  # spherical Earth radius (m)


# -------------------------
# Great-circle
# -------------------------
def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine great-circle distance (meters) between two lat/lon pairs in degrees."""
    p1 = math.radians(lat1)
    p2 = math.radians(lat2)
    dphi = p2 - p1
    dl = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2.0) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2.0) ** 2
    # rounding can push `a` a hair outside [0, 1] for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def distance(geo1: GeoPoint, geo2: GeoPoint) -> float:
    """
    Great-circle distance in meters between two GeoPoints.

    Symmetric, and zero for identical points. Picking m vs km for display
    is left to the caller.
    """
    return haversine_m(geo1.latitude, geo1.longitude, geo2.latitude, geo2.longitude)


# -------------------------
# Pixel space
# -------------------------
def pixel_distance(p1: PixelPoint, p2: PixelPoint) -> float:
    """Euclidean distance in pixels."""
    return math.hypot(p2.x - p1.x, p2.y - p1.y)
