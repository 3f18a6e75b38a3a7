"""
Results table utilities.

Converts slice records into ordered table rows (angles in degrees)
and writes them to a UTF-8 CSV file.
"""

from __future__ import annotations
import csv
import math
from typing import Dict, Iterable, List

from polar2d.core.series import SliceRecord


def record_row(
    r: SliceRecord,
    verbose: bool = False,
    length_unit: str = "mm",
    density_unit: str = "mgHA/cm^3",
) -> Dict[str, float]:
    """Return one results-table row for a slice record."""
    L, D = length_unit, density_unit
    moi_unit = f"({D})*{L}^4"
    row: Dict[str, float] = {
        "Slice": r.slice_index,
        f"Ct.Ar ({L}^2)": r.area,
        f"Xc_geom ({L})": r.xc_geom,
        f"Yc_geom ({L})": r.yc_geom,
        f"Xc_dens ({L})": r.xc_dens,
        f"Yc_dens ({L})": r.yc_dens,
        f"pMOA ({L}^4)": r.pmoa,
        f"MeanDens ({D})": r.mean_density,
        f"pMOI ({moi_unit})": r.pmoi,
    }
    if not verbose:
        return row

    nan = math.nan
    for tag, unit, t, p in (
        ("pMOA", f"{L}^4", r.moa_tensor, r.moa_principal),
        ("pMOI", moi_unit, r.moi_tensor, r.moi_principal),
    ):
        row[f"Ixx_{tag} ({unit})"] = t.ixx if t is not None else nan
        row[f"Iyy_{tag} ({unit})"] = t.iyy if t is not None else nan
        row[f"Ixy_{tag} ({unit})"] = t.ixy if t is not None else nan
        row[f"Imin_{tag} ({unit})"] = p.imin if p is not None else nan
        row[f"Imax_{tag} ({unit})"] = p.imax if p is not None else nan
        row[f"theta_{tag} (deg)"] = p.theta_deg if p is not None else nan
    return row


def records_to_rows(records: Iterable[SliceRecord], verbose: bool = False, **units) -> List[Dict[str, float]]:
    return [record_row(r, verbose, **units) for r in records]


def write_csv(path: str, records: Iterable[SliceRecord], verbose: bool = False, **units) -> None:
    """Write a CSV file with one row per slice."""
    rows = records_to_rows(records, verbose, **units)
    with open(path, "w", newline="", encoding="utf-8") as f:
        if not rows:
            return
        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
