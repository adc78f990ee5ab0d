from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List

from calibration.transform import CoordinateTransform
from common.types import PixelPoint


MAX_LINES_PER_AXIS = 1000


@dataclass(frozen=True, slots=True)
class GridLine:
    """One graticule line; kind is "lat" (constant latitude) or "lng"."""
    kind: str
    value: float
    start: PixelPoint
    end: PixelPoint


def grid_spacing(scale: float) -> float:
    """Graticule spacing in degrees for a viewport zoom factor."""
    if scale > 5:
        return 0.0001
    if scale > 2:
        return 0.001
    if scale > 1:
        return 0.01
    if scale > 0.5:
        return 0.1
    return 1.0


def _steps(lo: float, hi: float, spacing: float) -> List[float]:
    k0 = math.floor(lo / spacing)
    k1 = math.ceil(hi / spacing)
    if k1 - k0 + 1 > MAX_LINES_PER_AXIS:
        raise ValueError(f"grid spacing {spacing} too fine for extent [{lo}, {hi}]")
    return [k * spacing for k in range(k0, k1 + 1)]


def graticule(
    transform: CoordinateTransform,
    top_left: PixelPoint,
    bottom_right: PixelPoint,
    spacing: float,
) -> List[GridLine]:
    """
    Latitude and longitude lines covering the geographic extent of a pixel window.

    The extent is taken from the window's top-left and bottom-right corners.
    Lines whose endpoints cannot be inverted to pixels are skipped; an
    uncalibrated transform yields no lines.
    """
    if spacing <= 0:
        raise ValueError("spacing must be > 0")
    g_tl = transform.pixel_to_geo(top_left.x, top_left.y)
    g_br = transform.pixel_to_geo(bottom_right.x, bottom_right.y)
    if g_tl is None or g_br is None:
        return []

    lat_lo, lat_hi = sorted((g_tl.latitude, g_br.latitude))
    lng_lo, lng_hi = sorted((g_tl.longitude, g_br.longitude))

    lines: List[GridLine] = []
    for lat in _steps(lat_lo, lat_hi, spacing):
        start = transform.geo_to_pixel(lat, lng_lo)
        end = transform.geo_to_pixel(lat, lng_hi)
        if start is not None and end is not None:
            lines.append(GridLine("lat", lat, start, end))

    for lng in _steps(lng_lo, lng_hi, spacing):
        start = transform.geo_to_pixel(lat_lo, lng)
        end = transform.geo_to_pixel(lat_hi, lng)
        if start is not None and end is not None:
            lines.append(GridLine("lng", lng, start, end))
    return lines
