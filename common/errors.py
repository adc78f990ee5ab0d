from __future__ import annotations


class CalibrationError(Exception):
    """Base class for recoverable calibration failures."""

    reason = "calibration_error"


class SingularMatrixError(CalibrationError):
    """Linear system has no unique solution within tolerance."""

    reason = "singular_matrix"


class DegenerateInputError(SingularMatrixError):
    """Two-point calibration with (near) zero pixel separation."""

    reason = "degenerate_input"


class InsufficientPointsError(CalibrationError):
    """Not enough correspondences for the requested fit."""

    reason = "insufficient_points"
