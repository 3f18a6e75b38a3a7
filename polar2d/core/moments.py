"""
Per-slice second moments of a thresholded region.

Two passes over the in-threshold pixels of one slice:
  1) area, geometric centroid and density-weighted centroid
  2) geometric and density-weighted second-moment tensors about
     their respective centroids

pMOA and pMOI are the traces of the two tensors. Optionally each pixel's
polar contribution is written to float32 maps of the slice shape.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Optional
import numpy as np

from .calibration import clamp_density, to_density
from .params import Geometry, ThresholdRange


@dataclass(frozen=True)
class MomentTensor:
    """Centroidal second-moment tensor components."""
    ixx: float
    iyy: float
    ixy: float

    @property
    def polar(self) -> float:
        return self.ixx + self.iyy


NAN_TENSOR = MomentTensor(math.nan, math.nan, math.nan)


@dataclass
class SliceMoments:
    """Raw accumulation result for one slice."""
    n_pixels: int
    area: float
    xc_geom: float
    yc_geom: float
    xc_dens: float
    yc_dens: float
    mean_density: float
    clamped: bool
    moa: MomentTensor
    moi: MomentTensor
    pmoa_map: Optional[np.ndarray] = None
    pmoi_map: Optional[np.ndarray] = None

    @property
    def pmoa(self) -> float:
        return self.moa.polar if self.n_pixels else 0.0

    @property
    def pmoi(self) -> float:
        return self.moi.polar if self.n_pixels else 0.0


def _pixel_centres(shape: tuple[int, int], geometry: Geometry) -> tuple[np.ndarray, np.ndarray]:
    h, w = shape
    Y, X = np.mgrid[0:h, 0:w]
    X = (X.astype(np.float64) + 0.5) * geometry.pixel_width
    Y = (Y.astype(np.float64) + 0.5) * geometry.pixel_height
    return X, Y


def accumulate_slice(
    pixels: np.ndarray,
    threshold: ThresholdRange,
    geometry: Geometry,
    m: float,
    c: float,
    include_self_term: bool = True,
    want_maps: bool = False,
) -> SliceMoments:
    """
    Accumulate centroids and second-moment tensors for one 2D slice.

    Args:
        pixels: 2D array indexed [y, x] of raw intensities.
        threshold: inclusive raw-intensity range selecting contributing pixels.
        geometry: physical pixel size.
        m, c: calibration line, density = m * grey + c.
        include_self_term: add the finite-pixel self moment once per pixel.
        want_maps: also return per-pixel pMOA / pMOI contribution maps.
    """
    img = np.asarray(pixels, dtype=np.float64)
    if img.ndim != 2:
        raise ValueError(f"Slice must be a 2D array, got shape {img.shape}.")

    mask = threshold.mask(img)
    n = int(np.count_nonzero(mask))

    pmoa_map = np.zeros(img.shape, np.float32) if want_maps else None
    pmoi_map = np.zeros(img.shape, np.float32) if want_maps else None

    if n == 0:
        return SliceMoments(
            n_pixels=0, area=0.0,
            xc_geom=math.nan, yc_geom=math.nan,
            xc_dens=math.nan, yc_dens=math.nan,
            mean_density=math.nan, clamped=False,
            moa=NAN_TENSOR, moi=NAN_TENSOR,
            pmoa_map=pmoa_map, pmoi_map=pmoi_map,
        )

    dA = geometry.cell_area
    ixx_self, iyy_self = geometry.self_terms(include_self_term)

    X_all, Y_all = _pixel_centres(img.shape, geometry)
    X = X_all[mask]
    Y = Y_all[mask]

    # Unclamped density feeds the mean; clamped density weights centroid and moments
    density = to_density(img[mask], m, c)
    weight = clamp_density(density)
    clamped = bool(np.any(density < 0))

    # ---- Pass 1: centroids ----
    area = n * dA
    xc_a = float(X.sum() * dA / area)
    yc_a = float(Y.sum() * dA / area)

    rho_a = weight * dA
    sum_rho_a = float(rho_a.sum())
    if sum_rho_a > 0:
        xc_r = float((X * rho_a).sum() / sum_rho_a)
        yc_r = float((Y * rho_a).sum() / sum_rho_a)
    else:
        xc_r, yc_r = xc_a, yc_a

    # ---- Pass 2: tensors about each centroid ----
    dx_a, dy_a = X - xc_a, Y - yc_a
    dx_r, dy_r = X - xc_r, Y - yc_r

    ixx_a = dy_a * dy_a * dA + ixx_self
    iyy_a = dx_a * dx_a * dA + iyy_self
    ixy_a = dx_a * dy_a * dA

    ixx_r = weight * (dy_r * dy_r * dA + ixx_self)
    iyy_r = weight * (dx_r * dx_r * dA + iyy_self)
    ixy_r = weight * (dx_r * dy_r * dA)

    moa = MomentTensor(float(ixx_a.sum()), float(iyy_a.sum()), float(ixy_a.sum()))
    moi = MomentTensor(float(ixx_r.sum()), float(iyy_r.sum()), float(ixy_r.sum()))

    if want_maps:
        pmoa_map[mask] = ixx_a + iyy_a
        pmoi_map[mask] = ixx_r + iyy_r

    return SliceMoments(
        n_pixels=n, area=float(area),
        xc_geom=xc_a, yc_geom=yc_a,
        xc_dens=xc_r, yc_dens=yc_r,
        mean_density=float(density.mean()), clamped=clamped,
        moa=moa, moi=moi,
        pmoa_map=pmoa_map, pmoi_map=pmoi_map,
    )
