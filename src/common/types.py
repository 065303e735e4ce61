"""
Common type definitions for the document scanning core.

This module provides Pydantic-based value types shared by the geometry and
scan packages: points, sizes, rectangles, coordinate-space tags and raster
images.

These types provide:
- Type validation and conversion
- Immutable value semantics (models are frozen)
- Explicit coordinate-space tags so geometry from different spaces cannot mix
- Integration with numpy arrays and OpenCV
"""

from enum import Enum, IntEnum
from typing import Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CoordinateSpace(Enum):
    """Coordinate spaces a quadrilateral can be expressed in."""

    PREVIEW = "preview"  # On-screen display space (aspect-fit image view)
    IMAGE = "image"  # Full-resolution source image pixel space


class YAxis(Enum):
    """Vertical axis convention."""

    DOWN = "down"  # Display / pixel convention, origin top-left
    UP = "up"  # Cartesian convention, origin bottom-left


class Orientation(IntEnum):
    """
    EXIF orientation tag values.

    The name describes where the top of the stored pixel data ends up when
    the image is displayed upright.
    """

    UP = 1
    UP_MIRRORED = 2
    DOWN = 3
    DOWN_MIRRORED = 4
    LEFT_MIRRORED = 5
    RIGHT = 6
    RIGHT_MIRRORED = 7
    LEFT = 8

    @property
    def swaps_dimensions(self) -> bool:
        """True when displaying the image exchanges width and height."""
        return self.value >= 5


class Point(BaseModel):
    """
    Immutable 2D point (x, y).

    Points carry no coordinate-space tag of their own; the enclosing
    Quadrilateral records which space its corners live in.

    Attributes:
        x: X-coordinate (horizontal).
        y: Y-coordinate (vertical).

    Example:
        >>> point = Point(x=100.5, y=200)
        >>> point.to_tuple()
        (100.5, 200.0)
    """

    model_config = ConfigDict(frozen=True)

    x: float = Field(..., description="X-coordinate (horizontal)")
    y: float = Field(..., description="Y-coordinate (vertical)")

    @field_validator("x", "y", mode="before")
    @classmethod
    def _convert_to_float(cls, v) -> float:
        """Accept python and numpy numerics, reject everything else."""
        if isinstance(v, bool) or not isinstance(v, (int, float, np.number)):
            raise ValueError(f"Coordinate must be numeric, got {type(v)}")
        value = float(v)
        if not np.isfinite(value):
            raise ValueError(f"Coordinate must be finite, got {value}")
        return value

    @classmethod
    def from_numpy(cls, arr: np.ndarray) -> "Point":
        """
        Create Point from numpy array.

        Args:
            arr: Numpy array of shape (2,) with [x, y] coordinates.

        Raises:
            ValueError: If array shape is not (2,).
        """
        arr = np.asarray(arr)
        if arr.shape != (2,):
            raise ValueError(f"Expected array of shape (2,), got {arr.shape}")
        return cls(x=float(arr[0]), y=float(arr[1]))

    def to_numpy(self, dtype: type = np.float32) -> np.ndarray:
        """Convert Point to a numpy array of shape (2,)."""
        return np.array([self.x, self.y], dtype=dtype)

    def to_tuple(self) -> Tuple[float, float]:
        """Convert Point to tuple (x, y)."""
        return (self.x, self.y)

    def distance_to(self, other: "Point") -> float:
        """Euclidean distance to another point."""
        return float(np.hypot(self.x - other.x, self.y - other.y))

    def is_close(self, other: "Point", tolerance: float = 1e-6) -> bool:
        """Check whether both coordinates are within `tolerance` of `other`."""
        return abs(self.x - other.x) <= tolerance and abs(self.y - other.y) <= tolerance

    def __repr__(self) -> str:
        return f"Point(x={self.x:g}, y={self.y:g})"


class Size(BaseModel):
    """
    Immutable 2D size, optionally tagged with the coordinate space it measures.

    Attributes:
        width: Horizontal extent (>= 0).
        height: Vertical extent (>= 0).
        space: Coordinate space of the size, or None when untagged.

    Example:
        >>> preview = Size(width=375, height=500, space=CoordinateSpace.PREVIEW)
        >>> preview.is_empty
        False
    """

    model_config = ConfigDict(frozen=True)

    width: float = Field(..., ge=0.0, description="Width")
    height: float = Field(..., ge=0.0, description="Height")
    space: Optional[CoordinateSpace] = Field(
        default=None, description="Coordinate space this size is measured in"
    )

    @property
    def is_empty(self) -> bool:
        """True when either dimension is zero."""
        return self.width == 0 or self.height == 0

    def to_tuple(self) -> Tuple[float, float]:
        """Convert Size to tuple (width, height)."""
        return (self.width, self.height)


class Rect(BaseModel):
    """Immutable axis-aligned rectangle given by its origin and size."""

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    width: float = Field(..., ge=0.0)
    height: float = Field(..., ge=0.0)

    @classmethod
    def from_size(cls, size: Size) -> "Rect":
        """Rectangle at the origin with the given size."""
        return cls(x=0.0, y=0.0, width=size.width, height=size.height)

    @property
    def mid_x(self) -> float:
        return self.x + self.width / 2.0

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2.0

    @property
    def size(self) -> Size:
        return Size(width=self.width, height=self.height)


class RasterImage(BaseModel):
    """
    Immutable wrapper for an image pixel buffer plus orientation metadata.

    The pixel buffer is stored as-is; whether it can actually be interpreted
    as an image is checked by the consumers (see
    `src.scan.rectifier.validate_pixel_buffer`), so a malformed buffer
    surfaces as an `ImageDecodingError` from the pipeline rather than as a
    construction failure.

    Attributes:
        data: Pixel data as numpy array. Shape (H, W) for grayscale,
            (H, W, C) for color. Stored, un-rotated orientation.
        orientation: EXIF orientation describing how `data` must be
            rotated/flipped to be displayed upright.

    Example:
        >>> image = RasterImage(data=np.zeros((600, 300, 3), dtype=np.uint8))
        >>> image.width, image.height
        (300, 600)
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    data: np.ndarray = Field(..., description="Pixel data as numpy array")
    orientation: Orientation = Field(
        default=Orientation.UP, description="EXIF orientation of the stored data"
    )

    @property
    def shape(self) -> Tuple[int, ...]:
        """Stored array shape."""
        return tuple(self.data.shape)

    @property
    def height(self) -> int:
        """Stored pixel height (0 for arrays with fewer than 2 dimensions)."""
        return int(self.data.shape[0]) if self.data.ndim >= 2 else 0

    @property
    def width(self) -> int:
        """Stored pixel width (0 for arrays with fewer than 2 dimensions)."""
        return int(self.data.shape[1]) if self.data.ndim >= 2 else 0

    @property
    def channels(self) -> int:
        """Number of channels (1 for grayscale)."""
        if self.data.ndim == 3:
            return int(self.data.shape[2])
        return 1

    @property
    def size(self) -> Size:
        """Stored pixel size tagged as IMAGE space."""
        return Size(
            width=self.width, height=self.height, space=CoordinateSpace.IMAGE
        )

    @property
    def display_size(self) -> Size:
        """Pixel size once orientation is applied."""
        if self.orientation.swaps_dimensions:
            return Size(
                width=self.height, height=self.width, space=CoordinateSpace.IMAGE
            )
        return self.size

    def to_numpy(self) -> np.ndarray:
        """Get the underlying numpy array."""
        return self.data

    def copy(self) -> "RasterImage":
        """Deep copy with an independent pixel buffer."""
        return RasterImage(data=self.data.copy(), orientation=self.orientation)

    def __eq__(self, other: object) -> bool:
        """Equal when orientation, dtype, shape and every pixel match."""
        if not isinstance(other, RasterImage):
            return False
        return (
            self.orientation == other.orientation
            and self.data.dtype == other.data.dtype
            and self.data.shape == other.data.shape
            and bool(np.array_equal(self.data, other.data))
        )

    def __repr__(self) -> str:
        return (
            f"RasterImage(shape={self.shape}, dtype={self.data.dtype}, "
            f"orientation={self.orientation.name})"
        )
