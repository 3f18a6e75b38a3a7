"""
Add-ons package for polar moment analysis.

Provides helper functions for:
- pixel size resolution and uncalibrated-image detection
- results-table rows and CSV export
"""

# ---- Pixel size ----
from .scale import is_pixel_units, resolve_pixel_size

# ---- Results table / CSV export ----
from .table import record_row, records_to_rows, write_csv


__all__ = [
    # pixel size
    "is_pixel_units", "resolve_pixel_size",
    # table / csv
    "record_row", "records_to_rows", "write_csv",
]
