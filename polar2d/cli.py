"""
Command-line entry point.

Reads a TIFF stack, computes slice-wise pMOA / pMOI and writes the
results table (and optionally the contribution maps).
"""

from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional

import numpy as np

from polar2d.addons.scale import resolve_pixel_size
from polar2d.addons.table import records_to_rows, write_csv
from polar2d.core import (
    CalibrationMode, CalibrationModel, CalibrationSettings, MomentsError,
    Params, ThresholdRange, compute_series, pixel_size_from_tiff, read_stack,
)
from polar2d.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="polar2d",
        description="Slice-wise polar moments of area (pMOA) and density-weighted polar moments (pMOI)",
    )
    ap.add_argument("image", help="input image stack (multi-page TIFF)")
    ap.add_argument("--first", type=int, default=1, help="start slice (1-based)")
    ap.add_argument("--last", type=int, default=None, help="end slice (default: last)")
    ap.add_argument("--min", dest="thr_min", type=float, default=1.0, help="threshold min (raw units)")
    ap.add_argument("--max", dest="thr_max", type=float, default=255.0, help="threshold max (raw units)")
    ap.add_argument("--pixel-um", nargs=2, type=float, metavar=("W", "H"), default=None,
                    help="override pixel width/height in microns (results in mm)")
    ap.add_argument("--no-self-term", action="store_true", help="disable finite pixel self-term")
    ap.add_argument("--verbose-moments", action="store_true",
                    help="report Ixx, Iyy, Ixy, Imin, Imax, theta for pMOA and pMOI")
    ap.add_argument("--calibration", default=CalibrationMode.PHANTOM_POINTS.label,
                    help="density calibration mode: none | coefficients | phantom (default: phantom)")
    ap.add_argument("--slope", type=float, default=None, help="coefficients mode: slope m")
    ap.add_argument("--intercept", type=float, default=None, help="coefficients mode: intercept c")
    ap.add_argument("--point", nargs=2, type=float, action="append", metavar=("GREY", "DENSITY"),
                    help="phantom point (repeat 2-5 times; default (0, 0) and (255, 1000))")
    ap.add_argument("--csv", default=None, help="write results table to CSV")
    ap.add_argument("--maps", default=None, help="write pMOA/pMOI contribution maps to .npz")
    ap.add_argument("--log-level", default="INFO", help="logging level")
    ap.add_argument("--log-file", default=None, help="also log to this file")
    return ap


def calibration_from_args(args: argparse.Namespace, settings: CalibrationSettings) -> CalibrationModel:
    """Model for this run; values not given on the command line come from `settings`."""
    mode = CalibrationMode.from_label(args.calibration)
    if mode is CalibrationMode.UNIFORM:
        return CalibrationModel.uniform()
    if mode is CalibrationMode.COEFFICIENTS:
        slope = settings.slope if args.slope is None else args.slope
        intercept = settings.intercept if args.intercept is None else args.intercept
        return CalibrationModel.from_coefficients(slope, intercept)
    if not args.point:
        return CalibrationModel.from_points(settings.points)
    return CalibrationModel.from_points([tuple(p) for p in args.point])


def main(argv: Optional[List[str]] = None, settings: Optional[CalibrationSettings] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(getattr(logging, str(args.log_level).upper(), logging.INFO), args.log_file)

    try:
        settings = settings if settings is not None else CalibrationSettings()
        settings.configure(calibration_from_args(args, settings))

        stack = read_stack(args.image)
        units, pw, ph = pixel_size_from_tiff(args.image)
        override = tuple(args.pixel_um) if args.pixel_um else None
        geometry, _ = resolve_pixel_size(units, pw, ph, override_um=override)

        params = Params(
            first_slice=args.first,
            last_slice=args.last,
            threshold=ThresholdRange(args.thr_min, args.thr_max),
            geometry=geometry,
            calibration=settings.model,
            include_self_term=not args.no_self_term,
            verbose=args.verbose_moments,
            contribution_maps=bool(args.maps),
        )
        logger.info("Image: %s", args.image)
        result = compute_series(stack, params)
    except MomentsError as e:
        logger.error("%s", e)
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.csv:
        write_csv(args.csv, result.records, verbose=params.verbose)
        logger.info("Saved results table: %s", args.csv)
    else:
        for row in records_to_rows(result.records, verbose=params.verbose):
            print("\t".join(f"{k}={v:.6g}" for k, v in row.items()))

    if args.maps:
        idx = [r.slice_index for r in result.records]
        np.savez_compressed(
            args.maps,
            slices=np.asarray(idx, dtype=np.int32),
            pmoa=np.stack(result.pmoa_maps) if result.pmoa_maps else np.zeros((0, 0, 0), np.float32),
            pmoi=np.stack(result.pmoi_maps) if result.pmoi_maps else np.zeros((0, 0, 0), np.float32),
        )
        logger.info("Saved contribution maps: %s", args.maps)
    return 0


if __name__ == "__main__":
    sys.exit(main())
