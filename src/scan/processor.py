"""
Main processor for the Scan module.

Orchestrates the complete pipeline run when the user confirms an edit:
1. Image decoding / validation and orientation normalization
2. Quad canonicalization and scaling into image pixel space
3. Perspective rectification
4. Enhancement (adaptive threshold, soft failure)
5. Orientation normalization of the outputs
6. Result assembly

Fatal errors (undecodable image, wrong coordinate space) propagate to the
caller; a missing enhanced image is not an error.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np

from src.common.errors import CoordinateSpaceError, ImageDecodingError
from src.common.types import CoordinateSpace, RasterImage, Size, YAxis
from src.geometry.quadrilateral import Quadrilateral, initial_quad
from src.scan.assembler import assemble_result
from src.scan.config_loader import load_config
from src.scan.enhancer import enhance
from src.scan.orientation import decode_image, fix_orientation
from src.scan.rectifier import rectify, validate_pixel_buffer
from src.scan.types import ScanConfig, ScanResult

logger = logging.getLogger(__name__)

ImageInput = Union[RasterImage, np.ndarray, bytes, bytearray]


def coerce_image(image: ImageInput) -> RasterImage:
    """
    Turn any accepted image input into a validated RasterImage.

    Raises:
        ImageDecodingError: If the input cannot be interpreted as pixels.
    """
    if isinstance(image, (bytes, bytearray)):
        raster = decode_image(bytes(image))
    elif isinstance(image, np.ndarray):
        raster = RasterImage(data=image)
    elif isinstance(image, RasterImage):
        raster = image
    else:
        raise ImageDecodingError(f"Unsupported image input type: {type(image)}")

    validate_pixel_buffer(raster)
    return raster


class ScanProcessor:
    """
    Runs the scale -> rectify -> enhance -> fix-orientation -> assemble
    pipeline for a confirmed quad.

    Example:
        >>> processor = ScanProcessor()
        >>> image = cv2.imread("receipt.jpg")
        >>> quad = Quadrilateral.from_points([[40, 60], [980, 30], [1010, 1400], [20, 1420]])
        >>> result = processor.process(image, quad)
        >>> cv2.imwrite("receipt_scan.png", result.rectified_image.data)
    """

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        config_path: Optional[Path] = None,
    ):
        """
        Initialize the scan processor.

        Args:
            config: Pre-loaded configuration object. If None, will load from file.
            config_path: Path to config file. If None, uses default location.
        """
        if config is not None:
            self.config = config
            logger.info("Using provided configuration")
        else:
            self.config = load_config(config_path) if config_path else load_config()
            logger.info("Loaded configuration from file")

    def to_image_space(
        self,
        quad: Quadrilateral,
        image_size: Size,
        preview_size: Optional[Size] = None,
    ) -> Quadrilateral:
        """
        Canonicalize `quad` and express it in image pixel space.

        Raises:
            CoordinateSpaceError: If a preview quad comes without its preview
                size, or the quad is in the Cartesian convention.
        """
        if quad.y_axis != YAxis.DOWN:
            raise CoordinateSpaceError(
                "Expected a top-down quad, got one in the Cartesian convention"
            )

        if quad.space == CoordinateSpace.PREVIEW:
            if preview_size is None:
                raise CoordinateSpaceError(
                    "A preview-space quad needs the preview size to be scaled"
                )
            preview = Size(
                width=preview_size.width,
                height=preview_size.height,
                space=CoordinateSpace.PREVIEW,
            )
            quad = quad.scale(preview, image_size)

        return quad.reorganize()

    def process(
        self,
        image: ImageInput,
        quad: Optional[Quadrilateral] = None,
        preview_size: Optional[Size] = None,
    ) -> ScanResult:
        """
        Execute the complete scan pipeline.

        Args:
            image: Source image as RasterImage, BGR numpy array or encoded bytes.
            quad: Document boundary in IMAGE space, or in PREVIEW space
                together with `preview_size`. Defaults to `initial_quad`.
            preview_size: Size of the preview the quad was edited in.

        Returns:
            ScanResult with original, rectified and (if available) enhanced
            images.

        Raises:
            ImageDecodingError: If the source image cannot be interpreted.
            CoordinateSpaceError: If the quad's space cannot be resolved.
        """
        logger.info("=" * 60)
        logger.info("Starting Scan Pipeline")
        logger.info("=" * 60)

        # Stage 1: Decode / validate
        logger.info("[Stage 1/5] Image Validation")
        try:
            source = coerce_image(image)
        except ImageDecodingError as e:
            logger.error(f"Pipeline FAILED at Stage 1: {e}")
            raise
        original = fix_orientation(source)
        logger.info(f"Source image size: {original.width}x{original.height}")

        # Stage 2: Geometry
        logger.info("[Stage 2/5] Quad Scaling & Canonicalization")
        if quad is None:
            quad = initial_quad(original.size)
            logger.info("No quad supplied, using default centred quad")
        image_quad = self.to_image_space(quad, original.size, preview_size)
        logger.debug(f"Image-space quad: {image_quad!r}")

        # Stage 3: Rectification
        logger.info("[Stage 3/5] Perspective Rectification")
        rectified = rectify(
            original,
            image_quad,
            interpolation=self.config.rectification.interpolation,
            min_output_px=self.config.rectification.min_output_px,
        )
        logger.info(f"Rectified image size: {rectified.width}x{rectified.height}")

        # Stage 4: Enhancement
        logger.info("[Stage 4/5] Enhancement")
        enhanced = None
        if self.config.enhancement.enabled:
            enhanced = enhance(rectified, self.config.enhancement)
        else:
            logger.info("Enhancement disabled by configuration")

        # Stage 5: Orientation
        logger.info("[Stage 5/5] Orientation Normalization")
        rectified = fix_orientation(rectified)
        if enhanced is not None:
            enhanced = fix_orientation(enhanced)

        result = assemble_result(
            original_image=original,
            rectified_image=rectified,
            enhanced_image=enhanced,
            detected_quad=image_quad,
            prefer_enhanced=self.config.result.prefer_enhanced,
        )

        logger.info("=" * 60)
        logger.info("Scan Pipeline COMPLETED")
        logger.info("=" * 60)

        return result


def build_scan_result(
    image: ImageInput,
    quad: Optional[Quadrilateral] = None,
    preview_size: Optional[Size] = None,
    config: Optional[ScanConfig] = None,
) -> ScanResult:
    """
    Convenience function for one-shot scan processing.

    Example:
        >>> result = build_scan_result(image, quad)
        >>> if result.has_enhanced_image:
        ...     print("Ready for OCR!")
    """
    processor = ScanProcessor(config=config)
    return processor.process(image, quad, preview_size)
