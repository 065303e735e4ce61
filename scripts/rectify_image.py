"""
Rectify a document photo from the command line.

Usage:
    # Rectify using the default centred quad
    python scripts/rectify_image.py photo.jpg

    # Rectify a known document boundary (TL, TR, BR, BL in upright image pixels)
    python scripts/rectify_image.py photo.jpg --corners 40,60,980,30,1010,1400,20,1420

    # Custom output directory and configuration
    python scripts/rectify_image.py photo.jpg --output-dir out/ --config my_config.yaml
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.common.errors import ImageDecodingError  # noqa: E402
from src.geometry.quadrilateral import Quadrilateral, corners_from_flat  # noqa: E402
from src.scan.orientation import encode_image  # noqa: E402
from src.scan.processor import ScanProcessor  # noqa: E402
from src.utils.logging_config import setup_logging  # noqa: E402

logger = logging.getLogger(__name__)


def parse_corners(value: str) -> Quadrilateral:
    """Parse 'x1,y1,...,x4,y4' into an image-space quad."""
    try:
        numbers = [float(v) for v in value.split(",")]
        return Quadrilateral.from_points(corners_from_flat(numbers))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid corners '{value}': {e}") from e


def main(argv=None) -> int:
    """Main entry point for the rectification tool."""
    parser = argparse.ArgumentParser(
        description="Perspective-correct a document photo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("image", type=Path, help="Input image file")
    parser.add_argument(
        "--corners",
        type=parse_corners,
        default=None,
        help="Document corners x1,y1,...,x4,y4 (default: centred third of the image)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory for rectified.png / enhanced.png (default: current directory)",
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="Scan configuration YAML"
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging"
    )

    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    if not args.image.exists():
        logger.error(f"Input image not found: {args.image}")
        return 1

    processor = ScanProcessor(config_path=args.config)

    try:
        result = processor.process(args.image.read_bytes(), args.corners)
    except ImageDecodingError as e:
        logger.error(f"Failed to scan {args.image}: {e}")
        return 1

    args.output_dir.mkdir(parents=True, exist_ok=True)

    rectified_path = args.output_dir / "rectified.png"
    rectified_path.write_bytes(encode_image(result.rectified_image))
    logger.info(f"Saved rectified image to {rectified_path}")

    if result.enhanced_image is not None:
        enhanced_path = args.output_dir / "enhanced.png"
        enhanced_path.write_bytes(encode_image(result.enhanced_image))
        logger.info(f"Saved enhanced image to {enhanced_path}")
    else:
        logger.warning("Enhanced image unavailable for this input")

    return 0


if __name__ == "__main__":
    sys.exit(main())
