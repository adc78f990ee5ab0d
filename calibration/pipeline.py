from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from calibration.calibrator import AffineCalibrator, describe_state
from calibration.transform import CoordinateTransform
from common.logging_setup import get_logger, setup_logging
from common.types import GeoPoint, PixelPoint, ReferencePoint
from common.utils import iso_now_ms, to_geo, to_pixel
from overlay.geojson import project_collection
from overlay.grid import graticule, grid_spacing
from overlay.measure import measure


log = get_logger("calibration.pipeline")


def _load_yaml(path: str) -> Dict:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _parse_reference(i: int, item: Any) -> ReferencePoint:
    """
    Accepts either {pixel: [x, y], geo: [lat, lng]} or the export form
    {pixel: {x, y}, geo: {lat, lng}}.
    """
    if not isinstance(item, dict) or "pixel" not in item or "geo" not in item:
        raise ValueError(f"reference_points[{i}] must have 'pixel' and 'geo'")
    px, geo = item["pixel"], item["geo"]
    try:
        if isinstance(px, dict) and isinstance(geo, dict):
            return ReferencePoint.from_dict(item)
        pixel = PixelPoint.from_dict(px) if isinstance(px, dict) else to_pixel(px)
        g = GeoPoint.from_dict(geo) if isinstance(geo, dict) else to_geo(geo)
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"reference_points[{i}] is malformed: {exc}") from exc
    return ReferencePoint(pixel=pixel, geo=g)


def load_reference_points(P: Dict) -> List[ReferencePoint]:
    items = (P.get("calibration") or {}).get("reference_points") or []
    if not isinstance(items, list):
        raise ValueError("calibration.reference_points must be a list")
    return [_parse_reference(i, item) for i, item in enumerate(items)]


def _grid_rows(Q: Dict, ct: CoordinateTransform) -> List[Dict]:
    g = Q.get("grid")
    if not g:
        return []
    tl = to_pixel(g["top_left"])
    br = to_pixel(g["bottom_right"])
    spacing = float(g.get("spacing") or grid_spacing(float(g.get("scale", 1.0))))
    try:
        lines = graticule(ct, tl, br, spacing)
    except ValueError as exc:
        log.warning("Grid query skipped", extra={"extra": {"spacing": spacing, "detail": str(exc)}})
        return [{"kind": "grid_error", "spacing": spacing, "detail": str(exc)}]
    return [
        {"kind": "grid_line", "axis": ln.kind, "value": ln.value, "start": ln.start.to_dict(), "end": ln.end.to_dict()}
        for ln in lines
    ]


def _geojson_rows(Q: Dict, ct: CoordinateTransform, base_dir: Path) -> List[Dict]:
    path = Q.get("geojson_path")
    if not path:
        return []
    p = Path(path)
    if not p.is_absolute():
        p = base_dir / p
    data = json.loads(p.read_text())
    return [
        {"kind": "geojson", "type": g.type, "parts": [part.tolist() for part in g.parts], "properties": g.properties}
        for g in project_collection(data, ct)
    ]


def run_session(P: Dict, base_dir: Optional[Path] = None) -> List[Dict]:
    """
    Calibrate from the config's reference points and answer its queries.

    Returns the output rows; the first row always describes the calibration.
    """
    base_dir = base_dir or Path.cwd()
    cal = AffineCalibrator()
    cal.load(load_reference_points(P))
    ct = cal.coordinate_transform()
    ts = iso_now_ms()

    rows: List[Dict] = [
        {
            "kind": "calibration",
            "ts": ts,
            "status": cal.status_text(),
            "calibrated": cal.is_calibrated,
            "points": len(cal),
            "references": [r.to_dict() for r in cal.references],
            **describe_state(cal.state),
        }
    ]

    Q = P.get("queries") or {}
    pixels = [to_pixel(xy) for xy in Q.get("pixels") or []]
    if pixels:
        latlng = ct.pixels_to_geo([(p.x, p.y) for p in pixels])
        for i, px in enumerate(pixels):
            geo = None if latlng is None else GeoPoint(float(latlng[i, 0]), float(latlng[i, 1]))
            rows.append({"kind": "pixel_to_geo", "pixel": px.to_dict(), "geo": geo.to_dict() if geo else None})

    for latlng in Q.get("geos") or []:
        g = to_geo(latlng)
        px = ct.geo_to_pixel(g.latitude, g.longitude)
        rows.append({"kind": "geo_to_pixel", "geo": g.to_dict(), "pixel": px.to_dict() if px else None})

    for pair in Q.get("measurements") or []:
        p1, p2 = (to_pixel(p) for p in pair)
        m = measure(p1, p2, ct)
        rows.append({"kind": "measurement", **m.to_dict()})

    rows.extend(_grid_rows(Q, ct))
    rows.extend(_geojson_rows(Q, ct, base_dir))
    return rows


def _write_rows(path: Path, rows: Sequence[Dict]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", buffering=1) as f:
        for row in rows:
            f.write(json.dumps(row) + "\n")


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Raster map calibration session")
    ap.add_argument("--config", default="config/params.yaml")
    ap.add_argument("--level", default=None, help="Override logging level")
    ap.add_argument("--out", default=None, help="Override output JSONL path")
    args = ap.parse_args(argv)

    P = _load_yaml(args.config)
    log_cfg = P.get("logging") or {}
    setup_logging(args.level or log_cfg.get("level", "INFO"), force=True)

    out_path = Path(args.out or log_cfg.get("output_file", "logs/calibration.jsonl"))
    rows = run_session(P, base_dir=Path(args.config).resolve().parent)
    _write_rows(out_path, rows)

    log.info(
        "Calibration session written",
        extra={"extra": {"status": rows[0]["status"], "rows": len(rows), "out": str(out_path)}},
    )
    return 0 if rows[0]["calibrated"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
