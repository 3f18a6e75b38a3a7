"""
Slice-series driver.

Validates the run parameters, fits the density calibration once and
accumulates moments for each slice of the requested range in order.

Supports cooperative cancellation between slices via an optional `cancel_cb`.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Sequence, Tuple
import numpy as np

from .calibration import resolve_coefficients
from .errors import InvalidRange
from .moments import MomentTensor, accumulate_slice
from .params import Params
from .principal import NAN_PRINCIPAL, PrincipalMoments, principal_moments

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SliceRecord:
    """Per-slice result. Verbose-only fields are None unless verbose output was requested."""
    slice_index: int
    n_pixels: int
    area: float
    xc_geom: float
    yc_geom: float
    xc_dens: float
    yc_dens: float
    pmoa: float
    pmoi: float
    mean_density: float
    clamped: bool = False
    moa_tensor: Optional[MomentTensor] = None
    moi_tensor: Optional[MomentTensor] = None
    moa_principal: Optional[PrincipalMoments] = None
    moi_principal: Optional[PrincipalMoments] = None

    @property
    def empty(self) -> bool:
        return self.n_pixels == 0


@dataclass
class SeriesResult:
    """Ordered records of a run plus the optional contribution maps."""
    records: List[SliceRecord]
    coefficients: Tuple[float, float]
    pmoa_maps: Optional[List[np.ndarray]] = None
    pmoi_maps: Optional[List[np.ndarray]] = None
    cancelled: bool = False
    warnings: List[str] = field(default_factory=list)


def _slice_count(stack) -> int:
    if isinstance(stack, np.ndarray):
        if stack.ndim == 2:
            return 1
        if stack.ndim != 3:
            raise ValueError(f"Stack must be 2D or 3D, got shape {stack.shape}.")
    return len(stack)


def _get_slice(stack, z: int) -> np.ndarray:
    """Return slice z (1-based)."""
    if isinstance(stack, np.ndarray) and stack.ndim == 2:
        return stack
    return np.asarray(stack[z - 1])


def validate(stack, params: Params) -> Tuple[int, int, Tuple[float, float]]:
    """
    Check all run inputs before any per-pixel work.

    Returns:
        (first, last, (m, c)) with `last` resolved against the stack size.
    """
    n_slices = _slice_count(stack)
    first = int(params.first_slice)
    last = n_slices if params.last_slice is None else int(params.last_slice)
    if first < 1 or last > n_slices or first > last:
        raise InvalidRange(f"Invalid slice range [{first}, {last}] for a stack of {n_slices} slice(s).")
    params.threshold.validate()
    params.geometry.validate()
    m, c = resolve_coefficients(params.calibration)
    return first, last, (m, c)


def _make_record(z: int, acc, verbose: bool) -> SliceRecord:
    moa_t = moi_t = None
    moa_p = moi_p = None
    if verbose:
        moa_t, moi_t = acc.moa, acc.moi
        if acc.n_pixels:
            moa_p = principal_moments(moa_t.ixx, moa_t.iyy, moa_t.ixy)
            moi_p = principal_moments(moi_t.ixx, moi_t.iyy, moi_t.ixy)
        else:
            moa_p = moi_p = NAN_PRINCIPAL
    return SliceRecord(
        slice_index=z,
        n_pixels=acc.n_pixels,
        area=acc.area,
        xc_geom=acc.xc_geom, yc_geom=acc.yc_geom,
        xc_dens=acc.xc_dens, yc_dens=acc.yc_dens,
        pmoa=acc.pmoa, pmoi=acc.pmoi,
        mean_density=acc.mean_density,
        clamped=acc.clamped,
        moa_tensor=moa_t, moi_tensor=moi_t,
        moa_principal=moa_p, moi_principal=moi_p,
    )


def iter_series(
    stack: Sequence[np.ndarray] | np.ndarray,
    params: Params,
    cancel_cb: Callable[[], bool] | None = None,
) -> Iterator[Tuple[SliceRecord, Optional[np.ndarray], Optional[np.ndarray]]]:
    """
    Return an iterator of (record, pmoa_map, pmoi_map), one per slice, in order.

    Inputs are validated immediately, before any slice is read.
    Maps are None unless `params.contribution_maps` is set.
    """
    first, last, (m, c) = validate(stack, params)
    return _run(stack, params, first, last, m, c, cancel_cb)


def _run(stack, params: Params, first: int, last: int, m: float, c: float,
         cancel_cb: Callable[[], bool] | None):
    th, geo = params.threshold, params.geometry

    logger.info("Slices: %d to %d", first, last)
    logger.info("Threshold (raw): [%s, %s]", th.lo, th.hi)
    logger.info("Pixel size: %s x %s", geo.pixel_width, geo.pixel_height)
    logger.info("Pixel self-term: %s", "ON" if params.include_self_term else "OFF")
    logger.info("Verbose outputs: %s", "ON" if params.verbose else "OFF")
    logger.info("Contribution maps: %s", "ON" if params.contribution_maps else "OFF")
    logger.info("Density calibration %s", params.calibration.describe(m, c))

    for z in range(first, last + 1):
        if cancel_cb and cancel_cb():
            logger.info("Cancelled before slice %d", z)
            return
        logger.debug("Polar moments (2D): slice %d/%d", z, last)
        acc = accumulate_slice(
            _get_slice(stack, z), th, geo, m, c,
            include_self_term=params.include_self_term,
            want_maps=params.contribution_maps,
        )
        if acc.clamped:
            logger.warning("Slice %d: negative densities encountered; clamped to 0 for centroid/pMOI.", z)
        if acc.n_pixels == 0:
            logger.debug("Slice %d: no pixels within threshold", z)
        yield _make_record(z, acc, params.verbose), acc.pmoa_map, acc.pmoi_map


def compute_series(
    stack: Sequence[np.ndarray] | np.ndarray,
    params: Params,
    cancel_cb: Callable[[], bool] | None = None,
) -> SeriesResult:
    """Run the whole slice range and collect records (and maps, if requested)."""
    first, last, (m, c) = validate(stack, params)
    want_maps = params.contribution_maps
    result = SeriesResult(
        records=[], coefficients=(m, c),
        pmoa_maps=[] if want_maps else None,
        pmoi_maps=[] if want_maps else None,
    )
    for rec, fa, fi in _run(stack, params, first, last, m, c, cancel_cb):
        result.records.append(rec)
        if rec.clamped:
            result.warnings.append(
                f"Slice {rec.slice_index}: negative densities encountered; clamped to 0 for centroid/pMOI."
            )
        if want_maps:
            result.pmoa_maps.append(fa)
            result.pmoi_maps.append(fi)

    done = result.records[-1].slice_index if result.records else None
    result.cancelled = done != last
    return result
