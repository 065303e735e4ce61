"""
Coordinate-space transform utilities.

Maps points and quadrilaterals between the spaces used by the scanning flow:

- PREVIEW space: the on-screen, aspect-fit rendering of the image.
- IMAGE space: full-resolution source pixels, y growing downward.
- Cartesian convention: same pixels with y growing upward, as required by the
  rectification correspondence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from src.common.errors import CoordinateSpaceError
from src.common.types import Point, Rect, Size, YAxis

if TYPE_CHECKING:
    from src.geometry.quadrilateral import Quadrilateral

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AffineTransform:
    """
    2D affine map (x, y) -> (a*x + c*y + tx, b*x + d*y + ty).

    Transforms compose left-to-right: `first.then(second)` applies `first`
    and then `second`.

    Example:
        >>> t = AffineTransform.scaling(2.0, 2.0).then(AffineTransform.translation(10, 0))
        >>> t.apply(Point(x=1, y=1))
        Point(x=12, y=2)
    """

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    tx: float = 0.0
    ty: float = 0.0

    @classmethod
    def identity(cls) -> "AffineTransform":
        return cls()

    @classmethod
    def scaling(cls, sx: float, sy: float) -> "AffineTransform":
        return cls(a=sx, d=sy)

    @classmethod
    def translation(cls, tx: float, ty: float) -> "AffineTransform":
        return cls(tx=tx, ty=ty)

    @property
    def is_identity(self) -> bool:
        return self == AffineTransform()

    def to_matrix(self) -> np.ndarray:
        """3x3 homogeneous matrix acting on column vectors."""
        return np.array(
            [[self.a, self.c, self.tx], [self.b, self.d, self.ty], [0.0, 0.0, 1.0]],
            dtype=np.float64,
        )

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> "AffineTransform":
        m = np.asarray(matrix, dtype=np.float64)
        return cls(
            a=float(m[0, 0]),
            b=float(m[1, 0]),
            c=float(m[0, 1]),
            d=float(m[1, 1]),
            tx=float(m[0, 2]),
            ty=float(m[1, 2]),
        )

    def then(self, other: "AffineTransform") -> "AffineTransform":
        """Transform that applies `self` first and `other` second."""
        return AffineTransform.from_matrix(other.to_matrix() @ self.to_matrix())

    def inverted(self) -> "AffineTransform":
        """
        Inverse transform.

        Raises:
            ValueError: If the transform is singular.
        """
        determinant = self.a * self.d - self.b * self.c
        if abs(determinant) < 1e-12:
            raise ValueError("Affine transform is singular and cannot be inverted")
        return AffineTransform.from_matrix(np.linalg.inv(self.to_matrix()))

    def apply(self, point: Point) -> Point:
        return Point(
            x=self.a * point.x + self.c * point.y + self.tx,
            y=self.b * point.x + self.d * point.y + self.ty,
        )


def aspect_fit_transform(source_size: Size, container_size: Size) -> AffineTransform:
    """
    Transform from `source_size` coordinates into its centred aspect-fit
    rendering inside `container_size`.

    The uniform scale is s = min(container_w / source_w, container_h / source_h);
    the scaled source is then centred (letterboxed) in the container. Use
    `.inverted()` for the rendered -> source direction.

    Args:
        source_size: Size of the content being fitted (e.g. image pixels).
        container_size: Size of the view it is rendered into.

    Returns:
        Scale-then-translate transform, or identity for zero-size input.

    Example:
        >>> t = aspect_fit_transform(Size(width=300, height=600), Size(width=300, height=300))
        >>> t.apply(Point(x=300, y=600))
        Point(x=225, y=300)
    """
    if source_size.is_empty or container_size.is_empty:
        logger.debug(
            f"Degenerate aspect-fit input {source_size.to_tuple()} -> "
            f"{container_size.to_tuple()}, using identity"
        )
        return AffineTransform.identity()

    scale = min(
        container_size.width / source_size.width,
        container_size.height / source_size.height,
    )
    offset_x = (container_size.width - source_size.width * scale) / 2.0
    offset_y = (container_size.height - source_size.height * scale) / 2.0

    return AffineTransform.scaling(scale, scale).then(
        AffineTransform.translation(offset_x, offset_y)
    )


def aspect_fit_rect(aspect_size: Size, container: Rect) -> Rect:
    """
    Rectangle occupied by content of `aspect_size` when aspect-fitted and
    centred inside `container`.

    Degenerate inputs return the container unchanged.
    """
    if aspect_size.is_empty or container.size.is_empty:
        return container

    transform = aspect_fit_transform(aspect_size, container.size)
    width = aspect_size.width * transform.a
    height = aspect_size.height * transform.d
    return Rect(
        x=container.x + transform.tx,
        y=container.y + transform.ty,
        width=width,
        height=height,
    )


def aspect_fill_scale(source_size: Size, fill_size: Size) -> AffineTransform:
    """
    Uniform scale making `source_size` cover `fill_size` completely.

    Uses s = max(fill_w / source_w, fill_h / source_h). Identity for
    zero-size input.
    """
    if source_size.is_empty or fill_size.is_empty:
        return AffineTransform.identity()

    scale = max(
        fill_size.width / source_size.width, fill_size.height / source_size.height
    )
    return AffineTransform.scaling(scale, scale)


def translate_between_centers(from_rect: Rect, to_rect: Rect) -> AffineTransform:
    """Translation moving the centre of `from_rect` onto the centre of `to_rect`."""
    return AffineTransform.translation(
        to_rect.mid_x - from_rect.mid_x, to_rect.mid_y - from_rect.mid_y
    )


def scale_quad(quad: Quadrilateral, from_size: Size, to_size: Size) -> Quadrilateral:
    """
    Scale every corner by (to_w / from_w, to_h / from_h).

    Scaling is per-axis: preview and pixel space are assumed to
    be aligned already (the preview is the aspect-fit frame of the image), so
    the two axes may scale by slightly different factors after rounding.

    Args:
        quad: Quadrilateral expressed in the space `from_size` measures.
        from_size: Size of the quad's current space.
        to_size: Size of the target space. When tagged, the result is tagged
            with its space.

    Raises:
        CoordinateSpaceError: If `from_size` is tagged with a space other than
            the quad's.
        ValueError: If `from_size` has a zero dimension.
    """
    if from_size.space is not None and from_size.space != quad.space:
        raise CoordinateSpaceError(
            f"Cannot scale a {quad.space.value}-space quad from a "
            f"{from_size.space.value}-space size"
        )
    if from_size.is_empty:
        raise ValueError(
            f"Cannot scale from a zero-size space: {from_size.to_tuple()}"
        )

    sx = to_size.width / from_size.width
    sy = to_size.height / from_size.height
    target_space = to_size.space if to_size.space is not None else quad.space

    logger.debug(f"Scaling quad by ({sx:.4f}, {sy:.4f}) into {target_space.value}")

    return quad.map_points(
        lambda p: Point(x=p.x * sx, y=p.y * sy), space=target_space
    )


def to_cartesian(quad: Quadrilateral, reference_height: float) -> Quadrilateral:
    """
    Flip the vertical axis: y -> reference_height - y.

    Converts between the top-down (display/pixel) convention and the
    bottom-up Cartesian convention. Applying it twice with the same height
    returns the original quad, including its `y_axis` tag.
    """
    flipped_axis = YAxis.UP if quad.y_axis == YAxis.DOWN else YAxis.DOWN
    return quad.map_points(
        lambda p: Point(x=p.x, y=reference_height - p.y), y_axis=flipped_axis
    )
