"""
Pixel size utilities.

Provides functions for:
- Detecting uncalibrated (pixel-unit) images
- Resolving the effective pixel size, with an optional override in microns
"""

from __future__ import annotations
import logging
from typing import Optional, Tuple

from polar2d.core.params import Geometry

logger = logging.getLogger(__name__)

UM_PER_MM = 1000.0


def is_pixel_units(units: Optional[str]) -> bool:
    """True when the unit label means 'no spatial calibration'."""
    if units is None:
        return True
    u = units.strip().lower()
    return u in ("", "pixel", "pixels")


def resolve_pixel_size(
    units: Optional[str],
    pixel_width: float,
    pixel_height: float,
    override_um: Optional[Tuple[float, float]] = None,
) -> Tuple[Geometry, bool]:
    """
    Return (geometry, uncalibrated) for a stack.

    An override (width, height) in microns replaces the image calibration
    and is converted to mm. Without an override, an uncalibrated image is
    measured with unit pixels and outputs are in pixel-based units.
    """
    uncalibrated = is_pixel_units(units) or pixel_width <= 0 or pixel_height <= 0
    if override_um is not None:
        w_um, h_um = override_um
        geo = Geometry(float(w_um) / UM_PER_MM, float(h_um) / UM_PER_MM)
    elif uncalibrated:
        # resolution tags of a pixel-unit image (e.g. 72 dpi defaults) are not a length
        geo = Geometry(1.0, 1.0)
        logger.warning(
            "Image appears uncalibrated (units = pixels); outputs will be in "
            "pixel-based units unless a pixel size override is given."
        )
    else:
        geo = Geometry(float(pixel_width), float(pixel_height))
    geo.validate()
    return geo, uncalibrated
