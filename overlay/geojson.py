"""
Project GeoJSON geometries into image pixel space.

Multi* geometries are split into their single parts so the caller only
ever draws Points, LineStrings and Polygons. GeoJSON positions are
[lng, lat]; pixel output is (x, y).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Tuple

import numpy as np

from calibration.transform import CoordinateTransform
from common.logging_setup import get_logger


log = get_logger("overlay.geojson")


@dataclass(frozen=True, slots=True, eq=False)
class ProjectedGeometry:
    """
    A single-part geometry in pixel space.

    Attributes:
        type: "Point", "LineString" or "Polygon".
        parts: (N, 2) pixel arrays; one for Point/LineString, one per ring for Polygon.
        properties: the source feature's properties.
    """
    type: str
    parts: Tuple[np.ndarray, ...]
    properties: Dict[str, Any] = field(default_factory=dict)


def _to_pixels(positions, transform: CoordinateTransform):
    lnglat = np.asarray(positions, dtype=float).reshape(-1, 2)
    if lnglat.shape[0] == 0:
        return None
    return transform.geos_to_pixel(lnglat[:, ::-1])


def _project_single(gtype: str, coords, transform: CoordinateTransform, props: Dict[str, Any]):
    if gtype == "Point":
        rings = [[coords[:2]]]
    elif gtype == "LineString":
        rings = [[c[:2] for c in coords]]
    else:  # Polygon
        rings = [[c[:2] for c in ring] for ring in coords]

    parts = []
    for ring in rings:
        px = _to_pixels(ring, transform)
        if px is None:
            return None
        parts.append(px)
    return ProjectedGeometry(type=gtype, parts=tuple(parts), properties=props)


_SPLIT = {"MultiPoint": "Point", "MultiLineString": "LineString", "MultiPolygon": "Polygon"}


def project_feature(feature: Mapping[str, Any], transform: CoordinateTransform) -> List[ProjectedGeometry]:
    """Project one Feature; unsupported or missing geometries give []."""
    geometry = feature.get("geometry")
    if not geometry or not transform.is_invertible:
        return []
    props = dict(feature.get("properties") or {})
    gtype = geometry.get("type")
    coords = geometry.get("coordinates")
    if coords is None:
        return []

    if gtype in ("Point", "LineString", "Polygon"):
        singles: Iterable[Tuple[str, Any]] = [(gtype, coords)]
    elif gtype in _SPLIT:
        singles = [(_SPLIT[gtype], c) for c in coords]
    else:
        log.debug("Skipping unsupported geometry", extra={"extra": {"type": gtype}})
        return []

    out: List[ProjectedGeometry] = []
    try:
        for t, c in singles:
            g = _project_single(t, c, transform, props)
            if g is not None:
                out.append(g)
    except (TypeError, ValueError) as exc:
        log.debug("Skipping malformed geometry", extra={"extra": {"type": gtype, "detail": str(exc)}})
        return []
    return out


def project_collection(data: Mapping[str, Any], transform: CoordinateTransform) -> List[ProjectedGeometry]:
    """Project a FeatureCollection (or a bare Feature)."""
    features = data.get("features") or [data]
    out: List[ProjectedGeometry] = []
    for feature in features:
        out.extend(project_feature(feature, transform))
    return out
