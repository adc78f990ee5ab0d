"""
Unit tests for AffineCalibrator and its fitting strategies
"""

import logging
import math

import pytest
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from calibration.calibrator import (
    AffineCalibrator,
    Calibrated,
    FitStrategy,
    Uncalibrated,
    calibrate,
    fit_two_point,
)
from common.errors import DegenerateInputError
from common.types import GeoPoint, PixelPoint, ReferencePoint


def _ref(x, y, lat, lng):
    return ReferencePoint(PixelPoint(x, y), GeoPoint(lat, lng))


class TestFitStrategy:
    """Test cases for strategy selection"""

    def test_strategy_by_count(self):
        assert FitStrategy.for_count(0) is None
        assert FitStrategy.for_count(1) is None
        assert FitStrategy.for_count(2) is FitStrategy.TWO_POINT
        assert FitStrategy.for_count(3) is FitStrategy.LEAST_SQUARES
        assert FitStrategy.for_count(12) is FitStrategy.LEAST_SQUARES


class TestTwoPoint:
    """Test cases for the closed-form two-point model"""

    def test_reproduces_both_inputs(self):
        """Each input pixel maps back to its geo coordinate within 1e-9"""
        pts = [_ref(120.0, 95.0, 52.5321, 13.3689), _ref(1480.0, 1110.0, 52.4918, 13.4311)]
        state = fit_two_point(pts)
        t = state.transform

        for p in pts:
            lat = t.a * p.pixel.x + t.b * p.pixel.y + t.c
            lng = t.d * p.pixel.x + t.e * p.pixel.y + t.f
            assert abs(lat - p.geo.latitude) < 1e-9
            assert abs(lng - p.geo.longitude) < 1e-9

    def test_no_rotation_terms(self):
        """Latitude follows y only and longitude follows x only"""
        state = fit_two_point([_ref(0.0, 0.0, 10.0, 20.0), _ref(100.0, 50.0, 9.5, 21.0)])
        t = state.transform

        assert t.a == 0.0
        assert t.e == 0.0
        assert t.b == pytest.approx(-0.01)
        assert t.d == pytest.approx(0.01)
        assert t.c == pytest.approx(10.0)
        assert t.f == pytest.approx(20.0)
        assert state.strategy is FitStrategy.TWO_POINT

    def test_identical_pixels_are_degenerate(self):
        with pytest.raises(DegenerateInputError):
            fit_two_point([_ref(5.0, 5.0, 10.0, 20.0), _ref(5.0, 5.0, 11.0, 21.0)])

    def test_single_axis_delta_is_degenerate(self):
        """A horizontal pair leaves the latitude scale undefined"""
        with pytest.raises(DegenerateInputError):
            fit_two_point([_ref(0.0, 5.0, 10.0, 20.0), _ref(100.0, 5.0, 10.0, 21.0)])


class TestCalibrate:
    """Test cases for the pure calibrate() refit"""

    def test_too_few_points(self):
        assert calibrate([]) == Uncalibrated("insufficient_points")
        assert calibrate([_ref(0.0, 0.0, 1.0, 2.0)]) == Uncalibrated("insufficient_points")

    def test_collinear_three_points_uncalibrated(self):
        """Collinear pixels come back as Uncalibrated(singular_matrix)"""
        pts = [_ref(0.0, 0.0, 10.0, 20.0), _ref(10.0, 10.0, 10.1, 20.1), _ref(20.0, 20.0, 10.2, 20.2)]
        assert calibrate(pts) == Uncalibrated("singular_matrix")

    def test_deterministic(self):
        """Refitting the same set yields the same state"""
        pts = [_ref(0.0, 0.0, 10.0, 20.0), _ref(100.0, 0.0, 10.5, 21.2), _ref(30.0, 80.0, 9.0, 20.3)]
        assert calibrate(pts) == calibrate(pts)

    def test_failure_logged_as_warning(self, caplog):
        pts = [_ref(1.0, 1.0, 10.0, 20.0), _ref(1.0, 1.0, 10.0, 20.0)]
        with caplog.at_level(logging.WARNING, logger="calibration"):
            calibrate(pts)
        assert any("Calibration fit failed" in r.getMessage() for r in caplog.records)


class TestAffineCalibrator:
    """Test cases for AffineCalibrator"""

    def test_starts_uncalibrated(self):
        cal = AffineCalibrator()
        assert not cal.is_calibrated
        assert cal.current_transform() is None
        assert isinstance(cal.state, Uncalibrated)
        assert cal.status_text() == "Not Calibrated"
        assert len(cal) == 0

    def test_one_point_stays_uncalibrated(self):
        cal = AffineCalibrator()
        state = cal.add_reference(PixelPoint(0.0, 0.0), GeoPoint(10.0, 20.0))
        assert state == Uncalibrated("insufficient_points")

    def test_two_points_calibrate(self):
        cal = AffineCalibrator()
        cal.add_reference(PixelPoint(0.0, 0.0), GeoPoint(10.0, 20.0))
        state = cal.add_reference(PixelPoint(100.0, 100.0), GeoPoint(9.0, 21.0))

        assert isinstance(state, Calibrated)
        assert state.strategy is FitStrategy.TWO_POINT
        assert cal.status_text() == "Calibrated (2 points)"
        geo = cal.coordinate_transform().pixel_to_geo(100.0, 100.0)
        assert geo.latitude == pytest.approx(9.0, abs=1e-9)
        assert geo.longitude == pytest.approx(21.0, abs=1e-9)

    def test_identical_points_uncalibrated_without_nan(self):
        cal = AffineCalibrator()
        cal.add_reference(PixelPoint(5.0, 5.0), GeoPoint(10.0, 20.0))
        state = cal.add_reference(PixelPoint(5.0, 5.0), GeoPoint(10.0, 20.0))

        assert state == Uncalibrated("degenerate_input")
        assert cal.current_transform() is None
        assert cal.coordinate_transform().pixel_to_geo(1.0, 1.0) is None

    def test_third_point_switches_to_least_squares(self):
        """a and e are pinned to 0 with two points and free with three"""
        cal = AffineCalibrator()
        cal.add_reference(PixelPoint(0.0, 0.0), GeoPoint(10.0, 20.0))
        cal.add_reference(PixelPoint(100.0, 100.0), GeoPoint(9.0, 21.0))
        two = cal.current_transform()
        assert two.a == 0.0 and two.e == 0.0

        state = cal.add_reference(PixelPoint(100.0, 0.0), GeoPoint(10.5, 21.2))

        assert state.strategy is FitStrategy.LEAST_SQUARES
        t = cal.current_transform()
        assert t.a == pytest.approx(0.005, abs=1e-9)
        assert t.b == pytest.approx(-0.015, abs=1e-9)
        assert t.c == pytest.approx(10.0, abs=1e-9)
        assert t.d == pytest.approx(0.012, abs=1e-9)
        assert t.e == pytest.approx(-0.002, abs=1e-9)
        assert t.f == pytest.approx(20.0, abs=1e-9)
        assert state.rms_residual == pytest.approx(0.0, abs=1e-9)

    def test_collinear_third_point_drops_calibration(self):
        cal = AffineCalibrator()
        cal.add_reference(PixelPoint(0.0, 0.0), GeoPoint(10.0, 20.0))
        cal.add_reference(PixelPoint(10.0, 10.0), GeoPoint(10.1, 20.1))
        assert cal.is_calibrated

        state = cal.add_reference(PixelPoint(20.0, 20.0), GeoPoint(10.2, 20.2))

        assert state == Uncalibrated("singular_matrix")
        assert cal.status_text() == "Not Calibrated"

    def test_remove_reference_refits(self):
        cal = AffineCalibrator(
            [_ref(0.0, 0.0, 10.0, 20.0), _ref(100.0, 100.0, 9.0, 21.0), _ref(100.0, 0.0, 10.5, 21.2)]
        )
        assert cal.state.strategy is FitStrategy.LEAST_SQUARES

        state = cal.remove_reference(2)

        assert state.strategy is FitStrategy.TWO_POINT
        assert len(cal) == 2

    def test_remove_reference_bad_index(self):
        cal = AffineCalibrator([_ref(0.0, 0.0, 10.0, 20.0)])
        with pytest.raises(IndexError):
            cal.remove_reference(3)

    def test_reset_clears_everything(self):
        cal = AffineCalibrator([_ref(0.0, 0.0, 10.0, 20.0), _ref(100.0, 100.0, 9.0, 21.0)])
        assert cal.is_calibrated

        state = cal.reset()

        assert state == Uncalibrated("insufficient_points")
        assert len(cal) == 0
        assert cal.references == ()

    def test_remove_all_is_reset(self):
        cal = AffineCalibrator([_ref(0.0, 0.0, 10.0, 20.0), _ref(100.0, 100.0, 9.0, 21.0)])
        cal.remove_all()
        assert not cal.is_calibrated

    def test_load_replaces_points(self):
        cal = AffineCalibrator([_ref(0.0, 0.0, 10.0, 20.0)])
        pts = [_ref(0.0, 0.0, 1.0, 2.0), _ref(10.0, 10.0, 0.0, 3.0)]

        state = cal.load(pts)

        assert isinstance(state, Calibrated)
        assert cal.references == tuple(pts)

    def test_references_is_a_copy(self):
        cal = AffineCalibrator([_ref(0.0, 0.0, 10.0, 20.0)])
        refs = cal.references
        cal.add_reference(PixelPoint(1.0, 1.0), GeoPoint(1.0, 1.0))
        assert len(refs) == 1

    def test_transform_always_finite(self):
        """Published transforms never carry NaN or inf"""
        cal = AffineCalibrator()
        cal.add_reference(PixelPoint(0.0, 0.0), GeoPoint(10.0, 20.0))
        cal.add_reference(PixelPoint(0.0, 100.0), GeoPoint(9.0, 20.0))
        t = cal.current_transform()
        assert t is None or all(math.isfinite(v) for v in t.coefficients)
