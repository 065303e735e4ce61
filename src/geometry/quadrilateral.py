"""
Quadrilateral value type for document boundaries.

A Quadrilateral holds four labelled corners (top-left, top-right,
bottom-right, bottom-left) together with the coordinate space and vertical
axis convention they are expressed in. Instances are immutable; every
operation returns a new quad.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

import cv2
import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from src.common.types import CoordinateSpace, Point, Size, YAxis
from src.geometry.coordinate_space import AffineTransform, scale_quad, to_cartesian

logger = logging.getLogger(__name__)

# Hull area below which four points are treated as collinear / coincident
DEGENERATE_AREA_EPSILON = 1e-9


class Quadrilateral(BaseModel):
    """
    Four-corner polygon approximating a document boundary.

    Attributes:
        top_left, top_right, bottom_right, bottom_left: Corner points.
        space: Coordinate space the corners are expressed in.
        y_axis: Vertical axis convention (DOWN for display/pixel space,
            UP after `to_cartesian`).

    Example:
        >>> quad = Quadrilateral.from_points([[0, 0], [300, 0], [300, 600], [0, 600]])
        >>> quad.edge_lengths()
        (300.0, 600.0, 300.0, 600.0)
    """

    model_config = ConfigDict(frozen=True)

    top_left: Point
    top_right: Point
    bottom_right: Point
    bottom_left: Point
    space: CoordinateSpace = Field(default=CoordinateSpace.IMAGE)
    y_axis: YAxis = Field(default=YAxis.DOWN)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_points(
        cls,
        points: Union[np.ndarray, Sequence[Sequence[float]]],
        space: CoordinateSpace = CoordinateSpace.IMAGE,
        y_axis: YAxis = YAxis.DOWN,
    ) -> "Quadrilateral":
        """
        Build a quad from 4 points given in [TL, TR, BR, BL] order.

        Raises:
            ValueError: If input does not contain exactly 4 points.
        """
        pts = np.asarray(points, dtype=np.float64)
        if pts.shape != (4, 2):
            raise ValueError(
                f"Expected exactly 4 points with shape (4, 2), got shape {pts.shape}"
            )
        tl, tr, br, bl = (Point.from_numpy(p) for p in pts)
        return cls(
            top_left=tl,
            top_right=tr,
            bottom_right=br,
            bottom_left=bl,
            space=space,
            y_axis=y_axis,
        )

    @property
    def points(self) -> Tuple[Point, Point, Point, Point]:
        """Corners in [TL, TR, BR, BL] order."""
        return (self.top_left, self.top_right, self.bottom_right, self.bottom_left)

    def to_numpy(self, dtype: type = np.float32) -> np.ndarray:
        """Corners as an array of shape (4, 2) in [TL, TR, BR, BL] order."""
        return np.array([p.to_tuple() for p in self.points], dtype=dtype)

    def map_points(
        self,
        fn: Callable[[Point], Point],
        space: Optional[CoordinateSpace] = None,
        y_axis: Optional[YAxis] = None,
    ) -> "Quadrilateral":
        """
        New quad with `fn` applied to each corner, labels preserved.

        `space` and `y_axis` retag the result; they default to this quad's tags.
        """
        return Quadrilateral(
            top_left=fn(self.top_left),
            top_right=fn(self.top_right),
            bottom_right=fn(self.bottom_right),
            bottom_left=fn(self.bottom_left),
            space=space if space is not None else self.space,
            y_axis=y_axis if y_axis is not None else self.y_axis,
        )

    # ------------------------------------------------------------------
    # Measurements
    # ------------------------------------------------------------------

    @property
    def area(self) -> float:
        """Absolute polygon area of the corners in label order (shoelace)."""
        pts = self.to_numpy(np.float64)
        x, y = pts[:, 0], pts[:, 1]
        return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) / 2.0)

    def is_degenerate(self) -> bool:
        """True when the four points are collinear or coincident."""
        hull = cv2.convexHull(self.to_numpy(np.float32))
        return float(cv2.contourArea(hull)) <= DEGENERATE_AREA_EPSILON

    def edge_lengths(self) -> Tuple[float, float, float, float]:
        """Lengths of the (top, right, bottom, left) edges."""
        return (
            self.top_left.distance_to(self.top_right),
            self.top_right.distance_to(self.bottom_right),
            self.bottom_right.distance_to(self.bottom_left),
            self.bottom_left.distance_to(self.top_left),
        )

    def contains(self, point: Point) -> bool:
        """Check if `point` lies inside the quad or on its boundary."""
        contour = self.to_numpy(np.float32).reshape(-1, 1, 2)
        return cv2.pointPolygonTest(contour, point.to_tuple(), False) >= 0

    def is_within(self, distance: float, other: "Quadrilateral") -> bool:
        """
        Check whether every corner is within `distance` of the matching corner
        of `other`.

        Used to decide whether two successive quads describe the same
        document.
        """
        return all(
            mine.distance_to(theirs) <= distance
            for mine, theirs in zip(self.points, other.points)
        )

    def is_close(self, other: "Quadrilateral", tolerance: float = 1e-6) -> bool:
        """Corner-wise equality within `tolerance`, tags must match exactly."""
        if self.space != other.space or self.y_axis != other.y_axis:
            return False
        return all(
            mine.is_close(theirs, tolerance)
            for mine, theirs in zip(self.points, other.points)
        )

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------

    def reorganize(self) -> "Quadrilateral":
        """
        Reassign corner labels by geometric position.

        The two points with the smallest y form the top pair and the other two
        the bottom pair; within each pair the smaller x is the left corner.
        Input labels are ignored, so quads whose corners were dragged past each
        other come back consistently labelled. Idempotent.

        Points sharing a y value are split by x: the smaller x goes to the top
        pair for top-down quads and to the bottom pair for Cartesian ones, so
        a quad and its `to_cartesian` flip split into the same two pairs.

        Collinear or coincident points are returned unchanged: validity
        checking is left to the caller.
        """
        if self.is_degenerate():
            logger.debug("Degenerate quad passed through reorganize unchanged")
            return self

        if self.y_axis == YAxis.UP:
            by_y = sorted(self.points, key=lambda p: (p.y, -p.x))
        else:
            by_y = sorted(self.points, key=lambda p: (p.y, p.x))
        top_pair = sorted(by_y[:2], key=lambda p: (p.x, p.y))
        bottom_pair = sorted(by_y[2:], key=lambda p: (p.x, p.y))

        return Quadrilateral(
            top_left=top_pair[0],
            top_right=top_pair[1],
            bottom_right=bottom_pair[1],
            bottom_left=bottom_pair[0],
            space=self.space,
            y_axis=self.y_axis,
        )

    def apply_transforms(self, transforms: Iterable[AffineTransform]) -> "Quadrilateral":
        """Apply each transform to all corners, in sequence order."""
        quad = self
        for transform in transforms:
            quad = quad.map_points(transform.apply)
        return quad

    def scale(self, from_size: Size, to_size: Size) -> "Quadrilateral":
        """See `src.geometry.coordinate_space.scale_quad`."""
        return scale_quad(self, from_size, to_size)

    def to_cartesian(self, reference_height: float) -> "Quadrilateral":
        """See `src.geometry.coordinate_space.to_cartesian`."""
        return to_cartesian(self, reference_height)

    def __repr__(self) -> str:
        corners = ", ".join(
            f"{name}=({p.x:g}, {p.y:g})"
            for name, p in zip(("TL", "TR", "BR", "BL"), self.points)
        )
        return f"Quadrilateral({corners}, space={self.space.value}, y_axis={self.y_axis.value})"


def canonicalize(quad: Quadrilateral) -> Quadrilateral:
    """Module-level alias for `Quadrilateral.reorganize`."""
    return quad.reorganize()


def apply_transforms(
    quad: Quadrilateral, transforms: Iterable[AffineTransform]
) -> Quadrilateral:
    """Module-level alias for `Quadrilateral.apply_transforms`."""
    return quad.apply_transforms(transforms)


def _image_dimensions(image_size: Size) -> Tuple[float, float]:
    if image_size.space not in (None, CoordinateSpace.IMAGE):
        raise ValueError(
            f"Expected an image-space size, got {image_size.space.value}-space"
        )
    return image_size.width, image_size.height


def initial_quad(image_size: Size) -> Quadrilateral:
    """
    Default quad used when no detector result is available.

    A rectangle centred in the image covering the central third:
    (W/3, H/3) to (2W/3, 2H/3), in IMAGE space.

    Example:
        >>> initial_quad(Size(width=300, height=600)).top_left
        Point(x=100, y=200)
    """
    width, height = _image_dimensions(image_size)
    left, right = width / 3.0, 2.0 * width / 3.0
    top, bottom = height / 3.0, 2.0 * height / 3.0

    return Quadrilateral(
        top_left=Point(x=left, y=top),
        top_right=Point(x=right, y=top),
        bottom_right=Point(x=right, y=bottom),
        bottom_left=Point(x=left, y=bottom),
        space=CoordinateSpace.IMAGE,
    )


def full_frame_quad(image_size: Size) -> Quadrilateral:
    """Quad covering the whole image, the starting point of the crop flow."""
    width, height = _image_dimensions(image_size)
    return Quadrilateral(
        top_left=Point(x=0.0, y=0.0),
        top_right=Point(x=width, y=0.0),
        bottom_right=Point(x=width, y=height),
        bottom_left=Point(x=0.0, y=height),
        space=CoordinateSpace.IMAGE,
    )


def corners_from_flat(values: List[float]) -> np.ndarray:
    """
    Parse 8 numbers [x1, y1, ..., x4, y4] into a (4, 2) array.

    Raises:
        ValueError: If the list does not hold exactly 8 numbers.
    """
    if len(values) != 8:
        raise ValueError(f"Expected 8 coordinates, got {len(values)}")
    return np.array(values, dtype=np.float64).reshape(4, 2)
