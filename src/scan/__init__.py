"""
Scan module: document rectification pipeline.

Turns a confirmed document quadrilateral and its source image into the
cropped, perspective-corrected outputs handed to the host application.

Pipeline stages:
1. Image validation and orientation normalization
2. Quad scaling into image space and canonicalization
3. Perspective rectification (warp to rectangle)
4. Enhancement (adaptive threshold, may be unavailable)
5. Orientation normalization of the outputs, result assembly
"""

from src.common.errors import CoordinateSpaceError, ImageDecodingError, ScanError
from src.scan.assembler import assemble_result
from src.scan.config_loader import load_config
from src.scan.enhancer import enhance
from src.scan.listener import ScanListener
from src.scan.orientation import decode_image, fix_orientation
from src.scan.processor import ScanProcessor, build_scan_result
from src.scan.rectifier import rectify
from src.scan.session import EditSession
from src.scan.types import (
    EnhancementConfig,
    RectificationConfig,
    ResultConfig,
    ScanConfig,
    ScanResult,
)

__all__ = [
    "CoordinateSpaceError",
    "EditSession",
    "EnhancementConfig",
    "ImageDecodingError",
    "RectificationConfig",
    "ResultConfig",
    "ScanConfig",
    "ScanError",
    "ScanListener",
    "ScanProcessor",
    "ScanResult",
    "assemble_result",
    "build_scan_result",
    "decode_image",
    "enhance",
    "fix_orientation",
    "load_config",
    "rectify",
]
