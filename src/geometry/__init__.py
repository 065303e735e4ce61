"""
Quadrilateral geometry and coordinate-space utilities.

Entry points used by the overlay-rendering and editing collaborators:
- initial_quad / full_frame_quad: starting quads when no detection exists
- canonicalize: relabel corners by position
- scale_quad: preview space <-> image pixel space
- to_cartesian: top-down <-> bottom-up vertical convention
- apply_transforms: chain affine transforms over a quad
"""

from src.geometry.coordinate_space import (
    AffineTransform,
    aspect_fill_scale,
    aspect_fit_rect,
    aspect_fit_transform,
    scale_quad,
    to_cartesian,
    translate_between_centers,
)
from src.geometry.quadrilateral import (
    Quadrilateral,
    apply_transforms,
    canonicalize,
    full_frame_quad,
    initial_quad,
)

__all__ = [
    "AffineTransform",
    "Quadrilateral",
    "apply_transforms",
    "aspect_fill_scale",
    "aspect_fit_rect",
    "aspect_fit_transform",
    "canonicalize",
    "full_frame_quad",
    "initial_quad",
    "scale_quad",
    "to_cartesian",
    "translate_between_centers",
]
