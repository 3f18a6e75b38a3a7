"""
Analysis parameter data structures.

Defines pixel geometry, threshold range, the per-run parameter set
and the "last used" calibration settings carried between runs.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple
import numpy as np

from .calibration import CalibrationMode, CalibrationModel, resolve_coefficients
from .errors import InvalidGeometry, InvalidThreshold


@dataclass(frozen=True)
class Geometry:
    """Physical size of one pixel (e.g. mm per pixel) along x and y."""
    pixel_width: float
    pixel_height: float

    def validate(self) -> None:
        if not (self.pixel_width > 0 and self.pixel_height > 0):
            raise InvalidGeometry(
                f"Pixel width/height must be > 0 (got {self.pixel_width} x {self.pixel_height})."
            )

    @property
    def cell_area(self) -> float:
        return self.pixel_width * self.pixel_height

    def self_terms(self, enabled: bool = True) -> Tuple[float, float]:
        """(IxxSelf, IyySelf) of one rectangular cell about its own centroid."""
        if not enabled:
            return 0.0, 0.0
        dA = self.cell_area
        return dA * self.pixel_height ** 2 / 12.0, dA * self.pixel_width ** 2 / 12.0


@dataclass(frozen=True)
class ThresholdRange:
    """Inclusive [lo, hi] range on raw pixel intensity."""
    lo: float
    hi: float

    def validate(self) -> None:
        if not (np.isfinite(self.lo) and np.isfinite(self.hi)):
            raise InvalidThreshold(f"Threshold bounds must be finite (got [{self.lo}, {self.hi}]).")
        if self.lo > self.hi:
            raise InvalidThreshold(f"Min must be <= Max (got [{self.lo}, {self.hi}]).")

    def mask(self, pixels: np.ndarray) -> np.ndarray:
        return (pixels >= self.lo) & (pixels <= self.hi)


@dataclass
class Params:
    """Configuration for one slice-series run."""

    # Slice range (1-based, inclusive); None = last slice of the stack
    first_slice: int
    last_slice: Optional[int]

    # Segmentation
    threshold: ThresholdRange

    # Spatial calibration
    geometry: Geometry

    # Density calibration
    calibration: CalibrationModel = field(default_factory=CalibrationModel.uniform)

    # Output options
    include_self_term: bool = True
    verbose: bool = False
    contribution_maps: bool = False


DEFAULT_POINTS: Tuple[Tuple[float, float], ...] = ((0.0, 0.0), (255.0, 1000.0))


class CalibrationSettings:
    """
    Calibration state remembered between runs of one process.

    Starts from the defaults (phantom points (0, 0) and (255, 1000)); a new
    model replaces the stored one only after it fits successfully. A run
    reads `model` once and never mutates it.
    """

    def __init__(self) -> None:
        self.mode = CalibrationMode.PHANTOM_POINTS
        self.slope = 0.0
        self.intercept = 0.0
        self.points: Tuple[Tuple[float, float], ...] = DEFAULT_POINTS

    @property
    def model(self) -> CalibrationModel:
        if self.mode is CalibrationMode.UNIFORM:
            return CalibrationModel.uniform()
        if self.mode is CalibrationMode.COEFFICIENTS:
            return CalibrationModel.from_coefficients(self.slope, self.intercept)
        return CalibrationModel.from_points(self.points)

    def configure(self, model: CalibrationModel) -> Tuple[float, float]:
        """Fit `model` and remember it; on failure the previous settings are kept."""
        m, c = resolve_coefficients(model)
        self.mode = model.mode
        if model.mode is CalibrationMode.COEFFICIENTS:
            self.slope, self.intercept = model.slope, model.intercept
        elif model.mode is CalibrationMode.PHANTOM_POINTS:
            self.points = tuple(model.points)
        return m, c
