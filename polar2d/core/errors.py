"""
Validation errors raised before any per-pixel work starts.

All errors derive from ValueError so callers that only care about
"bad input" can catch the builtin.
"""

from __future__ import annotations


class MomentsError(ValueError):
    """Base class for input validation failures."""


class InvalidRange(MomentsError):
    """Slice range outside 1 <= first <= last <= slice count."""


class InvalidThreshold(MomentsError):
    """Threshold minimum greater than maximum."""


class InvalidGeometry(MomentsError):
    """Pixel width or height not strictly positive."""


class CalibrationError(MomentsError):
    """Calibration parameters cannot produce a grey -> density line."""


class DegenerateCalibration(CalibrationError):
    """Grey values of the calibration points do not vary."""


class InsufficientCalibrationPoints(CalibrationError):
    """Fewer than two calibration points supplied."""
