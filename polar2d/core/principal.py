"""
Principal second moments of a 2D section.

Closed-form eigen-decomposition of the symmetric tensor
[[Ixx, Ixy], [Ixy, Iyy]] into (Imin, Imax, theta).
"""

from __future__ import annotations
import math
from dataclasses import dataclass

AXIS_EPS = 1e-30


@dataclass(frozen=True)
class PrincipalMoments:
    imin: float
    imax: float
    theta: float  # radians, in [-pi/2, pi/2)

    @property
    def theta_deg(self) -> float:
        return math.degrees(self.theta)


NAN_PRINCIPAL = PrincipalMoments(math.nan, math.nan, math.nan)


def wrap_half_turn(theta: float) -> float:
    """Wrap an axis angle into [-pi/2, pi/2); directions pi apart are the same line."""
    t = theta
    while t < -math.pi / 2.0:
        t += math.pi
    while t >= math.pi / 2.0:
        t -= math.pi
    return t


def principal_moments(ixx: float, iyy: float, ixy: float) -> PrincipalMoments:
    """
    Eigenvalues of the centroidal tensor and the direction of the Imax eigenvector.

    When |Ixy| is negligible the axes are already principal: theta is 0 if
    Ixx >= Iyy, otherwise pi/2 (which wraps to -pi/2).
    """
    avg = 0.5 * (ixx + iyy)
    diff = 0.5 * (ixx - iyy)
    rad = math.sqrt(diff * diff + ixy * ixy)

    imax = avg + rad
    imin = avg - rad

    if abs(ixy) < AXIS_EPS:
        theta = 0.0 if ixx >= iyy else math.pi / 2.0
    else:
        # (Ixx - Imax) vx + Ixy vy = 0 with vx = 1
        vy = (imax - ixx) / ixy
        theta = math.atan2(vy, 1.0)

    return PrincipalMoments(imin, imax, wrap_half_turn(theta))
