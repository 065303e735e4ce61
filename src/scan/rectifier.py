"""
Perspective Rectification

Warps the region enclosed by a document quadrilateral into an axis-aligned
rectangle (deskew + crop).

Corner correspondence:
The quad is first converted to the bottom-up (Cartesian) convention and
canonicalized there. In that convention the "top" pair holds the points with
the smallest Cartesian y, which are the visually *lower* corners of the
document. The destination corners are therefore fed from the opposite labels:

    destination top-left     <- cartesian bottom-left
    destination top-right    <- cartesian bottom-right
    destination bottom-left  <- cartesian top-left
    destination bottom-right <- cartesian top-right

Swapping this mapping produces a vertically mirrored output.
"""

import logging
from typing import Tuple

import cv2
import numpy as np

from src.common.errors import CoordinateSpaceError, ImageDecodingError
from src.common.types import CoordinateSpace, RasterImage, YAxis
from src.geometry.coordinate_space import to_cartesian
from src.geometry.quadrilateral import Quadrilateral
from src.scan.orientation import keep_channel_axis

logger = logging.getLogger(__name__)

SUPPORTED_DTYPES = (np.uint8, np.uint16, np.float32)
SUPPORTED_CHANNELS = (1, 3, 4)

INTERPOLATION_FLAGS = {
    "linear": cv2.INTER_LINEAR,
    "cubic": cv2.INTER_CUBIC,
    "nearest": cv2.INTER_NEAREST,
    "area": cv2.INTER_AREA,
    "lanczos": cv2.INTER_LANCZOS4,
}


def validate_pixel_buffer(image: RasterImage) -> np.ndarray:
    """
    Check that the image holds a pixel buffer OpenCV can interpret.

    Args:
        image: Image to validate.

    Returns:
        The underlying numpy array.

    Raises:
        TypeError: If `image` is not a RasterImage.
        ImageDecodingError: If the buffer is empty, has an unexpected shape,
            channel count or dtype.
    """
    if not isinstance(image, RasterImage):
        raise TypeError(f"Expected a RasterImage, got {type(image).__name__}")

    data = image.data
    if data.size == 0:
        raise ImageDecodingError("Invalid input image: pixel buffer is empty")

    if data.ndim not in (2, 3):
        raise ImageDecodingError(
            f"Expected 2D (grayscale) or 3D (color) image, got shape {data.shape}"
        )

    if data.ndim == 3 and data.shape[2] not in SUPPORTED_CHANNELS:
        raise ImageDecodingError(
            f"Expected 1, 3, or 4 channels for color image, got {data.shape[2]}"
        )

    if data.dtype not in SUPPORTED_DTYPES:
        raise ImageDecodingError(
            f"Unsupported pixel dtype {data.dtype}, "
            f"expected one of {[np.dtype(t).name for t in SUPPORTED_DTYPES]}"
        )

    return data


def source_corners(quad: Quadrilateral, image_height: float) -> np.ndarray:
    """
    Pixel-space source points matching the destination [TL, TR, BR, BL].

    Converts `quad` to the Cartesian convention, canonicalizes it there and
    applies the top/bottom swapped correspondence, then maps the chosen
    points back to top-down pixel rows for OpenCV.

    Args:
        quad: Quad in IMAGE space, y growing downward.
        image_height: Height of the image the quad lives in.

    Returns:
        Float32 array of shape (4, 2).
    """
    cartesian = to_cartesian(quad, image_height).reorganize()

    ordered = (
        cartesian.bottom_left,  # -> destination top-left
        cartesian.bottom_right,  # -> destination top-right
        cartesian.top_right,  # -> destination bottom-right
        cartesian.top_left,  # -> destination bottom-left
    )

    return np.array(
        [[p.x, image_height - p.y] for p in ordered],
        dtype=np.float32,
    )


def output_dimensions(
    corners: np.ndarray, min_output_px: int = 1
) -> Tuple[int, int]:
    """
    Output size for ordered [TL, TR, BR, BL] corners.

    Width is the longer of the top and bottom edges, height the longer of the
    left and right edges, rounded to whole pixels and clamped to
    `min_output_px`.
    """
    tl, tr, br, bl = corners.astype(np.float64)

    width = max(np.linalg.norm(tr - tl), np.linalg.norm(br - bl))
    height = max(np.linalg.norm(bl - tl), np.linalg.norm(br - tr))

    return (
        max(int(round(width)), min_output_px),
        max(int(round(height)), min_output_px),
    )


def rectify(
    image: RasterImage,
    quad: Quadrilateral,
    interpolation: str = "linear",
    min_output_px: int = 1,
) -> RasterImage:
    """
    Perspective-correct the region of `image` enclosed by `quad`.

    Collinear or coincident quads are not repaired: the warp is attempted as
    is and may yield a meaningless (but correctly sized) image.

    Args:
        image: Source image. Its stored pixel grid is the quad's space.
        quad: Document boundary in IMAGE space with y growing downward.
        interpolation: One of linear, cubic, nearest, area, lanczos.
        min_output_px: Lower bound for each output dimension.

    Returns:
        New RasterImage with the rectified pixels and the source orientation.

    Raises:
        TypeError: If `image` is not a RasterImage.
        ImageDecodingError: If the source buffer cannot be interpreted.
        CoordinateSpaceError: If the quad is not an IMAGE-space, top-down quad.
        ValueError: If `interpolation` is unknown.

    Example:
        >>> image = RasterImage(data=np.zeros((600, 300, 3), dtype=np.uint8))
        >>> quad = Quadrilateral.from_points([[0, 0], [300, 0], [300, 600], [0, 600]])
        >>> rectified = rectify(image, quad)
        >>> rectified.width, rectified.height
        (300, 600)
    """
    data = validate_pixel_buffer(image)

    if quad.space != CoordinateSpace.IMAGE:
        raise CoordinateSpaceError(
            f"Rectification needs an image-space quad, got {quad.space.value}-space"
        )
    if quad.y_axis != YAxis.DOWN:
        raise CoordinateSpaceError(
            "Rectification needs a top-down quad; convert it back from Cartesian first"
        )
    if interpolation not in INTERPOLATION_FLAGS:
        raise ValueError(
            f"Invalid interpolation: {interpolation}. "
            f"Must be one of {list(INTERPOLATION_FLAGS)}"
        )

    if quad.is_degenerate():
        logger.warning(f"Rectifying a degenerate quad: {quad!r}")

    src = source_corners(quad, image.height)
    width, height = output_dimensions(src, min_output_px)

    logger.debug(f"Source corners (TL, TR, BR, BL): {src.tolist()}")
    logger.debug(f"Calculated output dimensions: {width}x{height}")

    # Pixel-edge destination corners: a full-frame quad maps to the identity.
    dst = np.array(
        [[0, 0], [width, 0], [width, height], [0, height]],
        dtype=np.float32,
    )

    M = cv2.getPerspectiveTransform(src, dst)

    rectified = cv2.warpPerspective(
        data,
        M,
        (width, height),
        flags=INTERPOLATION_FLAGS[interpolation],
        borderMode=cv2.BORDER_REPLICATE,
    )
    rectified = keep_channel_axis(rectified, data.ndim)

    logger.info(f"Rectified quadrilateral to {width}x{height} rectangle")

    return RasterImage(data=rectified, orientation=image.orientation)
