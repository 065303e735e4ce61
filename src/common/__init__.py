"""
Common types shared across all modules.

This module provides the value types used by the geometry and scan packages,
ensuring coordinate-space tags and image buffers are handled consistently.
"""

from src.common.types import (
    CoordinateSpace,
    Orientation,
    Point,
    RasterImage,
    Rect,
    Size,
    YAxis,
)

__all__ = [
    "CoordinateSpace",
    "Orientation",
    "Point",
    "RasterImage",
    "Rect",
    "Size",
    "YAxis",
]
