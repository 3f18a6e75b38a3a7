"""
Grey -> density calibration.

- Calibration models: uniform, explicit coefficients, phantom points
- Exact two-point line and least-squares fit for 3-5 points
- Linear density mapping with negative-density clamping
"""

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Sequence, Tuple
import numpy as np

from .errors import CalibrationError, DegenerateCalibration, InsufficientCalibrationPoints

MIN_POINTS = 2
MAX_POINTS = 5


class CalibrationMode(enum.Enum):
    UNIFORM = "none"
    COEFFICIENTS = "coefficients"
    PHANTOM_POINTS = "phantom"

    @property
    def label(self) -> str:
        return {
            CalibrationMode.UNIFORM: "None (uniform density)",
            CalibrationMode.COEFFICIENTS: "Coefficients (slope + intercept)",
            CalibrationMode.PHANTOM_POINTS: "Phantom points (2-5)",
        }[self]

    @classmethod
    def from_label(cls, text: str | None) -> "CalibrationMode":
        """Lenient parse: 'none...' and 'coeff...' prefixes, anything else is phantom points."""
        if text is None:
            return cls.PHANTOM_POINTS
        t = text.strip().lower()
        if t.startswith("none") or t.startswith("uniform"):
            return cls.UNIFORM
        if t.startswith("coeff"):
            return cls.COEFFICIENTS
        return cls.PHANTOM_POINTS


@dataclass(frozen=True)
class CalibrationModel:
    """Immutable description of how raw grey values map to density."""
    mode: CalibrationMode
    slope: float = 0.0
    intercept: float = 1.0
    points: Tuple[Tuple[float, float], ...] = ()

    @classmethod
    def uniform(cls) -> "CalibrationModel":
        return cls(CalibrationMode.UNIFORM, 0.0, 1.0)

    @classmethod
    def from_coefficients(cls, slope: float, intercept: float) -> "CalibrationModel":
        return cls(CalibrationMode.COEFFICIENTS, float(slope), float(intercept))

    @classmethod
    def from_points(cls, points: Sequence[Tuple[float, float]]) -> "CalibrationModel":
        pts = tuple((float(g), float(d)) for g, d in points)
        return cls(CalibrationMode.PHANTOM_POINTS, points=pts)

    def describe(self, m: float, c: float) -> str:
        return f"{self.mode.label}: density = {m:.6g} * grey + {c:.6g}"


def fit_calibration(points: Sequence[Tuple[float, float]]) -> Tuple[float, float]:
    """
    Fit density = m * grey + c through (grey, density) phantom points.

    Two points give the exact line; three to five use ordinary least squares
    via the normal equations.

    Raises:
        InsufficientCalibrationPoints: fewer than 2 points.
        DegenerateCalibration: grey values do not vary.
        CalibrationError: more than 5 points.
    """
    n = len(points)
    if n < MIN_POINTS:
        raise InsufficientCalibrationPoints(f"Need at least {MIN_POINTS} calibration points, got {n}.")
    if n > MAX_POINTS:
        raise CalibrationError(f"At most {MAX_POINTS} calibration points are supported, got {n}.")

    g = np.array([p[0] for p in points], dtype=np.float64)
    d = np.array([p[1] for p in points], dtype=np.float64)

    if n == 2:
        if g[1] == g[0]:
            raise DegenerateCalibration("Grey1 and Grey2 must differ.")
        m = (d[1] - d[0]) / (g[1] - g[0])
        c = d[0] - m * g[0]
        return float(m), float(c)

    s_g, s_d = g.sum(), d.sum()
    s_gg, s_gd = (g * g).sum(), (g * d).sum()
    denom = n * s_gg - s_g * s_g
    # identical non-representable greys can leave a rounding residue in denom
    if denom == 0 or np.all(g == g[0]):
        raise DegenerateCalibration("Calibration points have zero variance in grey.")
    m = (n * s_gd - s_g * s_d) / denom
    c = (s_d - m * s_g) / n
    return float(m), float(c)


def resolve_coefficients(model: CalibrationModel) -> Tuple[float, float]:
    """Return (m, c) for any calibration mode. Call once per run, not per pixel."""
    if model.mode is CalibrationMode.UNIFORM:
        return 0.0, 1.0
    if model.mode is CalibrationMode.COEFFICIENTS:
        return float(model.slope), float(model.intercept)
    return fit_calibration(model.points)


def to_density(raw, m: float, c: float):
    """Linear grey -> density mapping; works on scalars and arrays."""
    return m * raw + c


def clamp_density(density: np.ndarray) -> np.ndarray:
    """Replace negative densities with 0 (weights for centroids and moments)."""
    return np.maximum(density, 0.0)
