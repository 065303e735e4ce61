"""
Image enhancement for text legibility.

Produces a binarized variant of the rectified document using adaptive local
thresholding, intended for OCR-style consumers. The filter only understands
8-bit images; anything else is a soft failure and yields no enhanced image.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from src.common.types import RasterImage
from src.scan.types import EnhancementConfig

logger = logging.getLogger(__name__)

DEFAULT_ENHANCEMENT = EnhancementConfig(enabled=True, block_size=31, offset=10.0)


def to_grayscale(data: np.ndarray) -> Optional[np.ndarray]:
    """
    Convert an 8-bit BGR/BGRA/grayscale array to a single channel.

    Returns:
        Grayscale array, or None for unsupported channel layouts.
    """
    if data.ndim == 2:
        return data
    if data.ndim == 3 and data.shape[2] == 1:
        return np.ascontiguousarray(data[:, :, 0])
    if data.ndim == 3 and data.shape[2] == 3:
        return cv2.cvtColor(data, cv2.COLOR_BGR2GRAY)
    if data.ndim == 3 and data.shape[2] == 4:
        return cv2.cvtColor(data, cv2.COLOR_BGRA2GRAY)
    return None


def enhance(
    image: RasterImage, config: Optional[EnhancementConfig] = None
) -> Optional[RasterImage]:
    """
    Apply Gaussian adaptive thresholding to a rectified image.

    Args:
        image: Rectified image (8-bit, 1/3/4 channels).
        config: Threshold parameters. Uses DEFAULT_ENHANCEMENT if None.

    Returns:
        Single-channel binarized RasterImage with the input's orientation, or
        None when the image cannot be processed (soft failure).
    """
    config = config or DEFAULT_ENHANCEMENT
    data = image.data

    if data.size == 0 or data.dtype != np.uint8:
        logger.warning(
            f"Enhancement unavailable: unsupported pixel format "
            f"(dtype={data.dtype}, shape={data.shape})"
        )
        return None

    gray = to_grayscale(data)
    if gray is None:
        logger.warning(
            f"Enhancement unavailable: unsupported channel layout {data.shape}"
        )
        return None

    try:
        binary = cv2.adaptiveThreshold(
            gray,
            255,
            cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
            cv2.THRESH_BINARY,
            config.block_size,
            config.offset,
        )
    except cv2.error as e:
        logger.warning(f"Enhancement unavailable: adaptive threshold failed: {e}")
        return None

    logger.debug(
        f"Enhanced {image.width}x{image.height} image "
        f"(block_size={config.block_size}, offset={config.offset})"
    )

    return RasterImage(data=binary, orientation=image.orientation)
