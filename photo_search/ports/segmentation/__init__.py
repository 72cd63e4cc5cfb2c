"""Segmentation service client exports."""

from .sam_http import SegmentationClient

__all__ = ["SegmentationClient"]
