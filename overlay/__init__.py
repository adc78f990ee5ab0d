"""
Overlay: consumers of a calibrated transform

- measure.py: distance between two pixel locations (meters/km, or pixels
  when uncalibrated)
- grid.py: latitude/longitude graticule lines in pixel space
- geojson.py: GeoJSON geometries projected into pixel space
"""
from __future__ import annotations
