"""
Orientation normalization and image decoding.

Filter stages operate on the stored pixel grid and ignore the EXIF
orientation tag. `fix_orientation` bakes the orientation into the pixels so
every image leaving the pipeline is tagged UP and displays correctly
regardless of whether the consumer honours metadata.
"""

import io
import logging

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from src.common.errors import ImageDecodingError
from src.common.types import Orientation, RasterImage

logger = logging.getLogger(__name__)

EXIF_ORIENTATION_TAG = 0x0112


def _transpose(data: np.ndarray) -> np.ndarray:
    """Mirror across the main diagonal (rows become columns)."""
    return np.ascontiguousarray(np.swapaxes(data, 0, 1))


def apply_orientation(data: np.ndarray, orientation: Orientation) -> np.ndarray:
    """
    Rotate/flip stored pixels so they display upright.

    Same operation table as Pillow's `ImageOps.exif_transpose`. The array
    rank is preserved: (H, W, 1) input gives (H', W', 1) output.
    """
    if orientation == Orientation.UP:
        oriented = data.copy()
    elif orientation == Orientation.UP_MIRRORED:
        oriented = cv2.flip(data, 1)
    elif orientation == Orientation.DOWN:
        oriented = cv2.rotate(data, cv2.ROTATE_180)
    elif orientation == Orientation.DOWN_MIRRORED:
        oriented = cv2.flip(data, 0)
    elif orientation == Orientation.LEFT_MIRRORED:
        oriented = _transpose(data)
    elif orientation == Orientation.RIGHT:
        oriented = cv2.rotate(data, cv2.ROTATE_90_CLOCKWISE)
    elif orientation == Orientation.RIGHT_MIRRORED:
        oriented = cv2.rotate(_transpose(data), cv2.ROTATE_180)
    elif orientation == Orientation.LEFT:
        oriented = cv2.rotate(data, cv2.ROTATE_90_COUNTERCLOCKWISE)
    else:
        raise ValueError(f"Unknown orientation: {orientation}")

    return keep_channel_axis(oriented, data.ndim)


def keep_channel_axis(data: np.ndarray, ndim: int) -> np.ndarray:
    """Restore the trailing channel axis OpenCV drops from (H, W, 1) arrays."""
    if ndim == 3 and data.ndim == 2:
        return data[:, :, np.newaxis]
    return data


def fix_orientation(image: RasterImage) -> RasterImage:
    """
    Re-encode pixel data so the image is tagged with the canonical UP value.

    Idempotent: an UP image comes back as an equal copy.

    Args:
        image: Image whose stored pixels may need rotating or flipping.

    Returns:
        New RasterImage tagged Orientation.UP.
    """
    if image.orientation != Orientation.UP:
        logger.debug(f"Applying orientation {image.orientation.name} to pixels")

    return RasterImage(
        data=apply_orientation(image.data, image.orientation),
        orientation=Orientation.UP,
    )


def _read_orientation(pil_image: Image.Image) -> Orientation:
    value = pil_image.getexif().get(EXIF_ORIENTATION_TAG, Orientation.UP.value)
    try:
        return Orientation(int(value))
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid EXIF orientation value {value!r}")
        return Orientation.UP


def _to_bgr_array(pil_image: Image.Image) -> np.ndarray:
    """Convert a Pillow image to the OpenCV channel order."""
    if pil_image.mode == "L":
        return np.array(pil_image)
    if pil_image.mode in ("I;16", "I;16B", "I;16L"):
        return np.array(pil_image, dtype=np.uint16)
    if pil_image.mode == "RGBA":
        return cv2.cvtColor(np.array(pil_image), cv2.COLOR_RGBA2BGRA)
    return cv2.cvtColor(np.array(pil_image.convert("RGB")), cv2.COLOR_RGB2BGR)


def decode_image(data: bytes, source: str = "bytes") -> RasterImage:
    """
    Decode an encoded image (JPEG, PNG, ...) into a RasterImage.

    The EXIF orientation is kept as metadata; pixels are stored as encoded.

    Args:
        data: Encoded image bytes.
        source: Description used in error messages (e.g. a file path).

    Raises:
        ImageDecodingError: If the bytes are not a readable image.
    """
    if not data:
        raise ImageDecodingError("Image data is empty", source=source)

    try:
        with Image.open(io.BytesIO(data)) as pil_image:
            pil_image.load()
            orientation = _read_orientation(pil_image)
            pixels = _to_bgr_array(pil_image)
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as e:
        logger.error(f"Failed to decode image from {source}: {e}")
        raise ImageDecodingError(f"Cannot decode image: {e}", source=source) from e

    logger.debug(
        f"Decoded {source}: shape={pixels.shape}, orientation={orientation.name}"
    )
    return RasterImage(data=pixels, orientation=orientation)


def encode_image(image: RasterImage, extension: str = ".png") -> bytes:
    """
    Encode an image with OpenCV.

    Raises:
        ValueError: If OpenCV cannot encode the buffer in the given format.
    """
    ok, buffer = cv2.imencode(extension, image.data)
    if not ok:
        raise ValueError(f"Could not encode image as {extension}")
    return buffer.tobytes()
