"""
Data types and structures for the Scan module.

Provides type-safe containers for configuration and results.
"""

from dataclasses import FrozenInstanceError, dataclass, field
from typing import Optional

from src.common.types import RasterImage
from src.geometry.quadrilateral import Quadrilateral


@dataclass
class RectificationConfig:
    """Configuration for perspective rectification."""

    interpolation: str  # linear, cubic, nearest, area or lanczos
    min_output_px: int  # Lower bound for each output dimension


@dataclass
class EnhancementConfig:
    """Configuration for the adaptive-threshold enhancement."""

    enabled: bool
    block_size: int  # Odd neighbourhood size for the local threshold
    offset: float  # Constant subtracted from the weighted local mean


@dataclass
class ResultConfig:
    """Configuration for the assembled result."""

    prefer_enhanced: bool


@dataclass
class ScanConfig:
    """Complete scan module configuration."""

    rectification: RectificationConfig
    enhancement: EnhancementConfig
    result: ResultConfig


@dataclass
class ScanResult:
    """
    Output of a completed edit session.

    Every field except `prefer_enhanced` is read-only once constructed;
    downstream UI may flip `prefer_enhanced` before handing the result on.

    Attributes:
        original_image: The source image the quad was drawn on (UP orientation).
        rectified_image: Deskewed and cropped image, no filters applied.
        enhanced_image: Adaptive-threshold variant, None when the filter could
            not process the rectified image.
        prefer_enhanced: Whether the user prefers the enhanced variant.
        detected_quad: The image-space quad used to produce `rectified_image`.
    """

    original_image: RasterImage
    rectified_image: RasterImage
    enhanced_image: Optional[RasterImage]
    detected_quad: Quadrilateral
    prefer_enhanced: bool = False
    _sealed: bool = field(default=False, init=False, repr=False, compare=False)

    _MUTABLE_FIELDS = frozenset({"prefer_enhanced"})

    def __post_init__(self):
        object.__setattr__(self, "_sealed", True)

    def __setattr__(self, name, value):
        if getattr(self, "_sealed", False) and name not in self._MUTABLE_FIELDS:
            raise FrozenInstanceError(f"cannot assign to field '{name}'")
        object.__setattr__(self, name, value)

    def __delattr__(self, name):
        raise FrozenInstanceError(f"cannot delete field '{name}'")

    @property
    def has_enhanced_image(self) -> bool:
        return self.enhanced_image is not None

    @property
    def preferred_image(self) -> RasterImage:
        """Enhanced image when preferred and available, rectified otherwise."""
        if self.prefer_enhanced and self.enhanced_image is not None:
            return self.enhanced_image
        return self.rectified_image
