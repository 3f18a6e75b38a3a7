"""Slice-wise density-weighted polar moments of thresholded image stacks."""

__version__ = "0.1.0"
