"""
Calibration: pixel <-> geographic registration for uncalibrated raster maps

This package provides:
- A Gaussian-elimination solver with partial pivoting (solver.py)
- Normal-equation least-squares plane fits for N >= 3 points (lstsq.py)
- The reference-point calibrator with its two-point / least-squares
  strategies and explicit Uncalibrated | Calibrated state (calibrator.py)
- Forward and inverse coordinate conversion (transform.py)
- A YAML-driven batch session runner writing JSON lines (pipeline.py)

Entry point:
    python -m calibration.pipeline --config config/params.yaml
"""
from .calibrator import AffineCalibrator, Calibrated, CalibrationState, FitStrategy, Uncalibrated, calibrate
from .transform import CoordinateTransform

__all__ = [
    "AffineCalibrator",
    "Calibrated",
    "CalibrationState",
    "CoordinateTransform",
    "FitStrategy",
    "Uncalibrated",
    "calibrate",
]
