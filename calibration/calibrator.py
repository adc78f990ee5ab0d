from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Sequence, Tuple, Union

from calibration.lstsq import fit_affine
from calibration.transform import CoordinateTransform
from common.errors import CalibrationError, DegenerateInputError, InsufficientPointsError, SingularMatrixError
from common.logging_setup import get_logger
from common.types import AffineTransform, GeoPoint, PixelPoint, ReferencePoint


log = get_logger("calibration")

DEGENERATE_TOLERANCE = 1e-10


class FitStrategy(Enum):
    """Model used for the current fit."""
    TWO_POINT = "two_point"          # axis-aligned, per-axis scale, no rotation/shear
    LEAST_SQUARES = "least_squares"  # full 6-parameter affine

    @classmethod
    def for_count(cls, n: int) -> Optional["FitStrategy"]:
        """Strategy for n correspondences, or None if n < 2."""
        if n < 2:
            return None
        return cls.TWO_POINT if n == 2 else cls.LEAST_SQUARES


@dataclass(frozen=True, slots=True)
class Uncalibrated:
    reason: str = InsufficientPointsError.reason


@dataclass(frozen=True, slots=True)
class Calibrated:
    transform: AffineTransform
    strategy: FitStrategy
    rms_residual: float = 0.0


CalibrationState = Union[Uncalibrated, Calibrated]


def fit_two_point(points: Sequence[ReferencePoint]) -> Calibrated:
    """
    Closed-form two-point calibration.

    Assumes the image is north-aligned with independent uniform scale per
    axis: latitude follows y only, longitude follows x only.

    Raises:
        DegenerateInputError: either pixel delta is below DEGENERATE_TOLERANCE.
    """
    if len(points) != 2:
        raise InsufficientPointsError(f"two-point fit needs exactly 2 points, got {len(points)}")
    p1, p2 = points
    dx = p2.pixel.x - p1.pixel.x
    dy = p2.pixel.y - p1.pixel.y
    if abs(dx) < DEGENERATE_TOLERANCE and abs(dy) < DEGENERATE_TOLERANCE:
        raise DegenerateInputError("reference points share the same pixel location")
    if abs(dx) < DEGENERATE_TOLERANCE or abs(dy) < DEGENERATE_TOLERANCE:
        raise DegenerateInputError(f"pixel delta too small on one axis (dx={dx:.3e}, dy={dy:.3e})")

    scale_lat = (p2.geo.latitude - p1.geo.latitude) / dy
    scale_lng = (p2.geo.longitude - p1.geo.longitude) / dx
    t = AffineTransform(
        a=0.0,
        b=scale_lat,
        c=p1.geo.latitude - scale_lat * p1.pixel.y,
        d=scale_lng,
        e=0.0,
        f=p1.geo.longitude - scale_lng * p1.pixel.x,
    )
    return Calibrated(transform=t, strategy=FitStrategy.TWO_POINT)


def fit_least_squares(points: Sequence[ReferencePoint]) -> Calibrated:
    fit = fit_affine(points)
    return Calibrated(transform=fit.transform, strategy=FitStrategy.LEAST_SQUARES, rms_residual=fit.rms_residual)


_FITTERS: Dict[FitStrategy, Callable[[Sequence[ReferencePoint]], Calibrated]] = {
    FitStrategy.TWO_POINT: fit_two_point,
    FitStrategy.LEAST_SQUARES: fit_least_squares,
}


def calibrate(points: Sequence[ReferencePoint]) -> CalibrationState:
    """
    Pure refit: map a correspondence set to a calibration state.

    Never raises for calibration failures; they come back as Uncalibrated
    with the failure reason.
    """
    strategy = FitStrategy.for_count(len(points))
    if strategy is None:
        return Uncalibrated(InsufficientPointsError.reason)
    try:
        state = _FITTERS[strategy](points)
    except CalibrationError as exc:
        log.warning(
            "Calibration fit failed",
            extra={"extra": {"strategy": strategy.value, "points": len(points), "reason": exc.reason, "detail": str(exc)}},
        )
        return Uncalibrated(exc.reason)
    if not state.transform.is_finite():
        log.warning("Calibration produced non-finite coefficients", extra={"extra": {"strategy": strategy.value}})
        return Uncalibrated(SingularMatrixError.reason)
    return state


class AffineCalibrator:
    """
    Owns the reference correspondences and the transform derived from them.

    Every mutation triggers a full refit; the state is always a pure
    function of the current reference set.
    """

    def __init__(self, points: Iterable[ReferencePoint] = ()):
        self._points: list[ReferencePoint] = list(points)
        self._state: CalibrationState = Uncalibrated()
        self._refit()

    # -------------------------
    # Mutations
    # -------------------------
    def add_reference(self, pixel: PixelPoint, geo: GeoPoint) -> CalibrationState:
        self._points.append(ReferencePoint(pixel=pixel, geo=geo))
        return self._refit()

    def remove_reference(self, index: int) -> CalibrationState:
        """Remove one correspondence by position (IndexError if out of range)."""
        del self._points[index]
        return self._refit()

    def remove_all(self) -> CalibrationState:
        self._points.clear()
        return self._refit()

    reset = remove_all

    def load(self, points: Iterable[ReferencePoint]) -> CalibrationState:
        """Replace the whole reference set (session restore) with a single refit."""
        self._points = list(points)
        return self._refit()

    # -------------------------
    # Queries
    # -------------------------
    @property
    def state(self) -> CalibrationState:
        return self._state

    @property
    def is_calibrated(self) -> bool:
        return isinstance(self._state, Calibrated)

    @property
    def references(self) -> Tuple[ReferencePoint, ...]:
        return tuple(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def current_transform(self) -> Optional[AffineTransform]:
        """Current transform, or None when uncalibrated."""
        if isinstance(self._state, Calibrated):
            return self._state.transform
        return None

    def coordinate_transform(self) -> CoordinateTransform:
        return CoordinateTransform.from_state(self._state)

    def status_text(self) -> str:
        if self.is_calibrated:
            return f"Calibrated ({len(self._points)} points)"
        return "Not Calibrated"

    # -------------------------
    # Internals
    # -------------------------
    def _refit(self) -> CalibrationState:
        was_calibrated = self.is_calibrated
        log.debug("Refitting calibration", extra={"extra": {"points": len(self._points)}})
        self._state = calibrate(self._points)
        if self.is_calibrated != was_calibrated:
            log.info(
                "Calibration state changed",
                extra={"extra": {"status": self.status_text(), "state": describe_state(self._state)}},
            )
        return self._state


def describe_state(state: CalibrationState) -> Dict:
    if isinstance(state, Calibrated):
        return {"strategy": state.strategy.value, "transform": state.transform.to_dict(), "rms_residual": state.rms_residual}
    return {"reason": state.reason}
