"""
Unit tests for great-circle and pixel distance helpers
"""

import math

import pytest
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.geo import EARTH_RADIUS_M, distance, haversine_m, pixel_distance
from common.types import GeoPoint, PixelPoint


BERLIN = GeoPoint(52.5200, 13.4050)
PARIS = GeoPoint(48.8566, 2.3522)


class TestDistance:
    """Test cases for distance()"""

    @pytest.mark.parametrize("p", [BERLIN, PARIS, GeoPoint(0.0, 0.0), GeoPoint(-89.9, 179.9)])
    def test_zero_for_same_point(self, p):
        assert distance(p, p) == 0.0

    def test_symmetric(self):
        assert distance(BERLIN, PARIS) == distance(PARIS, BERLIN)

    def test_berlin_paris(self):
        """Known value: ~877 km"""
        assert distance(BERLIN, PARIS) == pytest.approx(877_000.0, rel=0.01)

    def test_dateline_wraparound(self):
        """179.5E to 179.5W along the equator is one degree, not 359"""
        d = distance(GeoPoint(0.0, 179.5), GeoPoint(0.0, -179.5))
        assert d == pytest.approx(EARTH_RADIUS_M * math.pi / 180.0, rel=1e-9)

    def test_antipodal(self):
        d = distance(GeoPoint(0.0, 0.0), GeoPoint(0.0, 180.0))
        assert d == pytest.approx(math.pi * EARTH_RADIUS_M, rel=1e-12)

    def test_one_degree_latitude(self):
        d = haversine_m(10.0, 5.0, 11.0, 5.0)
        assert d == pytest.approx(111_194.93, abs=0.01)


class TestPixelDistance:
    def test_three_four_five(self):
        assert pixel_distance(PixelPoint(0.0, 0.0), PixelPoint(3.0, 4.0)) == 5.0
