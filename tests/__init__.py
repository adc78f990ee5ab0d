"""
Calibration Test Suite

Tests for the raster map georeferencing core and its overlay consumers.

Structure:
- unit/: Unit tests for individual components
- integration/: End-to-end runs of the calibration pipeline CLI
"""
