"""
Edit session: the boundary between an interactive quad editor and the core.

The UI keeps its own mutable corner positions while the user drags. It calls
into the session at defined moments only:

- on layout, to get the frame the image occupies and the quad to draw
- on each drag update, to store the edited preview-space quad
- on confirm or cancel, to finish the session and notify its listener

The session never exposes mutable geometry; every quad it returns is a new
immutable value.
"""

import logging
from typing import Optional

from src.common.errors import ScanError
from src.common.types import CoordinateSpace, RasterImage, Rect, Size
from src.geometry.coordinate_space import aspect_fit_rect, aspect_fit_transform
from src.geometry.quadrilateral import Quadrilateral, full_frame_quad, initial_quad
from src.scan.listener import ScanListener
from src.scan.orientation import fix_orientation
from src.scan.processor import ImageInput, ScanProcessor, coerce_image
from src.scan.types import ScanResult

logger = logging.getLogger(__name__)


class EditSession:
    """
    One quad-editing session over a single image.

    Args:
        image: Source image (RasterImage, numpy array or encoded bytes).
        listener: Receives exactly one of finished / cancelled / failed.
        quad: Image-space starting quad, e.g. from a detector. Defaults to
            the centred `initial_quad`.
        processor: Pipeline runner. A default ScanProcessor is created if None.

    Raises:
        ImageDecodingError: If the image cannot be interpreted.
    """

    def __init__(
        self,
        image: ImageInput,
        listener: ScanListener,
        quad: Optional[Quadrilateral] = None,
        processor: Optional[ScanProcessor] = None,
    ):
        self.image: RasterImage = fix_orientation(coerce_image(image))
        self.listener = listener
        self.processor = processor or ScanProcessor()
        self._quad = (quad or initial_quad(self.image.size)).reorganize()
        self._finished = False

    @classmethod
    def crop(
        cls,
        image: ImageInput,
        listener: ScanListener,
        processor: Optional[ScanProcessor] = None,
    ) -> "EditSession":
        """Session for the manual crop flow, starting from the whole image."""
        raster = fix_orientation(coerce_image(image))
        return cls(
            raster,
            listener,
            quad=full_frame_quad(raster.size),
            processor=processor,
        )

    @property
    def quad(self) -> Quadrilateral:
        """Current image-space quad."""
        return self._quad

    @property
    def is_finished(self) -> bool:
        return self._finished

    def preview_frame(self, container: Rect) -> Rect:
        """Frame the aspect-fitted image occupies inside the editor view."""
        return aspect_fit_rect(self.image.size, container)

    def display_quad(self, preview_size: Size) -> Quadrilateral:
        """
        Current quad mapped into PREVIEW space for overlay drawing.

        `preview_size` is the size of the aspect-fit frame (see
        `preview_frame`), so the mapping is a uniform scale.
        """
        transform = aspect_fit_transform(self.image.size, preview_size)
        return self._quad.map_points(transform.apply, space=CoordinateSpace.PREVIEW)

    def update_from_preview(
        self, preview_quad: Quadrilateral, preview_size: Size
    ) -> Quadrilateral:
        """
        Store an edited preview-space quad.

        Returns:
            The canonicalized image-space quad now held by the session.
        """
        self._quad = self.processor.to_image_space(
            preview_quad, self.image.size, preview_size
        )
        logger.debug(f"Quad updated from preview: {self._quad!r}")
        return self._quad

    def confirm(self) -> Optional[ScanResult]:
        """
        Run the pipeline on the current quad and notify the listener.

        Returns:
            The ScanResult, or None when the pipeline failed (the listener
            has received `on_scan_failed`).
        """
        self._ensure_active()
        self._finished = True

        try:
            result = self.processor.process(self.image, self._quad)
        except ScanError as e:
            logger.error(f"Scan failed: {e}")
            self.listener.on_scan_failed(e)
            return None

        self.listener.on_scan_finished(result)
        return result

    def cancel(self) -> None:
        """Finish without running the pipeline."""
        self._ensure_active()
        self._finished = True
        logger.info("Edit session cancelled")
        self.listener.on_scan_cancelled()

    def _ensure_active(self) -> None:
        if self._finished:
            raise RuntimeError("Edit session already finished")
