"""
Image stack I/O and metadata utilities.

Loads every page of a (multi-page) TIFF as raw-intensity float arrays and
extracts the spatial calibration (units, pixel width/height) written by
ImageJ-style TIFF metadata.
"""

from __future__ import annotations
import re
from typing import List, Optional, Tuple
import cv2
import numpy as np
from PIL import Image, ImageSequence

TAG_DESCRIPTION = 270
TAG_XRES = 282
TAG_YRES = 283


GRAY_MODES = ("L", "I", "F", "I;16", "I;16B", "I;16L")


def _page_to_gray(page: Image.Image) -> np.ndarray:
    if page.mode in ("RGB", "RGBA"):
        arr = np.array(page)
        code = cv2.COLOR_RGBA2GRAY if page.mode == "RGBA" else cv2.COLOR_RGB2GRAY
        return cv2.cvtColor(arr, code).astype(np.float32)
    if page.mode not in GRAY_MODES:
        # Palette, grey+alpha, bilevel, CMYK ... -> 8-bit luminance
        page = page.convert("L")
    return np.array(page).astype(np.float32)


def read_stack(path: str) -> List[np.ndarray]:
    """Read all pages of an image file and return them as 2D float32 slices."""
    with Image.open(path) as im:
        return [_page_to_gray(page.copy()) for page in ImageSequence.Iterator(im)]


def dump_tiff_metadata_text(image_path: str) -> str:
    """Return TIFF tags and info fields as concatenated text for regex parsing."""
    out = []
    with Image.open(image_path) as pil:
        for tag, val in getattr(pil, "tag_v2", {}).items():
            if isinstance(val, bytes):
                s = val.decode(errors="ignore")
            elif isinstance(val, (list, tuple)):
                s = " ".join([v.decode(errors="ignore") if isinstance(v, bytes) else str(v) for v in val])
            else:
                s = str(val)
            out.append(f"[{tag}] {s}")
        for k, v in (pil.info or {}).items():
            if isinstance(v, bytes):
                v = v.decode(errors="ignore")
            out.append(f"[{k}] {v}")
    return "\n".join(out)


def parse_unit_from_text(txt: str) -> Optional[str]:
    """Extract the ImageJ `unit=` entry from metadata text."""
    if not txt:
        return None
    m = re.search(r"^unit=(\S+)", txt, flags=re.MULTILINE)
    if m is None:
        m = re.search(r"\bunit=(\S+)", txt)
    if m is None:
        return None
    unit = m.group(1)
    return "micron" if unit in ("\\u00B5m", "um", "µm") else unit


def pixel_size_from_tiff(path: str) -> Tuple[Optional[str], float, float]:
    """
    Return (units, pixel_width, pixel_height) from TIFF resolution tags.

    Resolution tags hold pixels per unit; a missing or zero tag yields 0.0
    so the caller can treat the image as uncalibrated.
    """
    with Image.open(path) as pil:
        tags = getattr(pil, "tag_v2", {})
        xres = tags.get(TAG_XRES)
        yres = tags.get(TAG_YRES)
    units = parse_unit_from_text(dump_tiff_metadata_text(path))

    def _size(res) -> float:
        try:
            r = float(res)
        except (TypeError, ValueError, ZeroDivisionError):
            return 0.0
        return 1.0 / r if r > 0 else 0.0

    return units, _size(xres), _size(yres)
