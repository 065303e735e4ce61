"""Assembly of the ScanResult handed to external collaborators."""

import logging
from typing import Optional

from src.common.types import RasterImage
from src.geometry.quadrilateral import Quadrilateral
from src.scan.types import ScanResult

logger = logging.getLogger(__name__)


def assemble_result(
    original_image: RasterImage,
    rectified_image: RasterImage,
    enhanced_image: Optional[RasterImage],
    detected_quad: Quadrilateral,
    prefer_enhanced: bool = False,
) -> ScanResult:
    """Bundle the pipeline outputs into a ScanResult."""
    if enhanced_image is None:
        logger.info("Enhanced image unavailable, result carries rectified image only")

    return ScanResult(
        original_image=original_image,
        rectified_image=rectified_image,
        enhanced_image=enhanced_image,
        detected_quad=detected_quad,
        prefer_enhanced=prefer_enhanced,
    )
