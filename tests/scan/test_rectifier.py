"""
Unit tests for the rectifier module.

Tests the perspective correspondence, output sizing and buffer validation.
"""

import logging

import cv2
import numpy as np
import pytest

from src.common.errors import CoordinateSpaceError, ImageDecodingError
from src.common.types import CoordinateSpace, Orientation, RasterImage, Size
from src.geometry.coordinate_space import to_cartesian
from src.geometry.quadrilateral import Quadrilateral, full_frame_quad
from src.scan.rectifier import (
    output_dimensions,
    rectify,
    source_corners,
    validate_pixel_buffer,
)


class TestOrientationCorrectness:
    """
    Regression tests for the Cartesian top/bottom correspondence.

    A backwards mapping shows up as a vertically mirrored output, so every
    test here checks which source row ends up at the top.
    """

    def test_full_frame_reproduces_source(self, gradient_raster):
        quad = full_frame_quad(gradient_raster.size)
        rectified = rectify(gradient_raster, quad)

        assert (rectified.width, rectified.height) == (300, 600)
        np.testing.assert_array_equal(rectified.data, gradient_raster.data)

    def test_top_row_stays_on_top(self, gradient_raster):
        rectified = rectify(gradient_raster, full_frame_quad(gradient_raster.size))

        top_row = rectified.data[0]
        bottom_row = rectified.data[-1]
        assert top_row[100:, 0].mean() < bottom_row[:, 0].mean()
        # Red marker still in the top-left corner
        np.testing.assert_array_equal(rectified.data[5, 5], [0, 0, 255])
        assert rectified.data[-5, 5, 2] != 255 or rectified.data[-5, 5, 0] != 0

    def test_full_frame_quad_labels_do_not_matter(self, gradient_raster):
        scrambled = Quadrilateral.from_points(
            [[300, 600], [0, 0], [0, 600], [300, 0]]
        )
        rectified = rectify(gradient_raster, scrambled)
        np.testing.assert_array_equal(rectified.data, gradient_raster.data)

    def test_source_corners_follow_display_orientation(self):
        quad = Quadrilateral.from_points(
            [[10, 20], [290, 30], [280, 570], [15, 580]]
        )
        corners = source_corners(quad, 600)

        np.testing.assert_array_almost_equal(
            corners, [[10, 20], [290, 30], [280, 570], [15, 580]]
        )

    def test_cartesian_labels_are_vertically_inverted(self):
        quad = full_frame_quad(Size(width=300, height=600))
        cartesian = to_cartesian(quad, 600).reorganize()

        # After the flip the visually top corners carry the "bottom" labels
        assert cartesian.bottom_left.y == 600
        assert cartesian.top_left.y == 0

    def test_inner_region(self, gradient_image):
        image = RasterImage(data=gradient_image)
        quad = Quadrilateral.from_points(
            [[50, 100], [250, 100], [250, 500], [50, 500]]
        )
        rectified = rectify(image, quad)

        assert (rectified.width, rectified.height) == (200, 400)
        np.testing.assert_array_equal(rectified.data, gradient_image[100:500, 50:250])


class TestPerspective:
    """Tests on a skewed synthetic document."""

    def test_skewed_document_becomes_upright_page(self, sample_document_image):
        image, pts = sample_document_image
        rectified = rectify(RasterImage(data=image), Quadrilateral.from_points(pts))

        width, height = rectified.width, rectified.height
        assert width == pytest.approx(442, abs=2)
        assert height == pytest.approx(382, abs=2)

        # Interior is the white page, not the dark background
        inner = rectified.data[10:-10, 10:-10]
        assert inner.mean() > 180

    def test_does_not_modify_input(self, sample_document_image):
        image, pts = sample_document_image
        before = image.copy()
        rectified = rectify(RasterImage(data=image), Quadrilateral.from_points(pts))

        np.testing.assert_array_equal(image, before)
        assert not np.shares_memory(rectified.data, image)

    @pytest.mark.parametrize("interpolation", ["linear", "cubic", "nearest", "area", "lanczos"])
    def test_interpolations(self, sample_document_image, interpolation):
        image, pts = sample_document_image
        rectified = rectify(
            RasterImage(data=image), Quadrilateral.from_points(pts), interpolation
        )
        assert rectified.data.shape[2] == 3

    def test_unknown_interpolation(self, gradient_raster):
        with pytest.raises(ValueError, match="Invalid interpolation"):
            rectify(gradient_raster, full_frame_quad(gradient_raster.size), "bicubic")

    def test_grayscale_and_alpha_supported(self, gradient_image):
        quad = full_frame_quad(Size(width=300, height=600))

        gray = cv2.cvtColor(gradient_image, cv2.COLOR_BGR2GRAY)
        assert rectify(RasterImage(data=gray), quad).data.ndim == 2

        bgra = cv2.cvtColor(gradient_image, cv2.COLOR_BGR2BGRA)
        assert rectify(RasterImage(data=bgra), quad).data.shape == (600, 300, 4)

    def test_orientation_tag_carried_over(self, gradient_image):
        image = RasterImage(data=gradient_image, orientation=Orientation.LEFT)
        rectified = rectify(image, full_frame_quad(image.size))
        assert rectified.orientation == Orientation.LEFT


class TestOutputDimensions:
    """Tests for output sizing."""

    def test_uses_longest_edges(self):
        corners = np.array([[0, 0], [100, 0], [120, 50], [0, 60]], dtype=np.float32)
        width, height = output_dimensions(corners)
        assert width == 120
        assert height == 60

    def test_minimum_size(self):
        corners = np.zeros((4, 2), dtype=np.float32)
        assert output_dimensions(corners, min_output_px=1) == (1, 1)
        assert output_dimensions(corners, min_output_px=8) == (8, 8)


class TestValidation:
    """Tests for the fatal decoding / space errors."""

    @pytest.mark.parametrize(
        "data",
        [
            np.array([], dtype=np.uint8),
            np.zeros(10, dtype=np.uint8),
            np.zeros((4, 4, 2), dtype=np.uint8),
            np.zeros((4, 4, 3), dtype=np.int64),
            np.zeros((4, 4), dtype=object),
            np.zeros((2, 4, 4, 3), dtype=np.uint8),
        ],
    )
    def test_invalid_buffers_raise(self, data):
        with pytest.raises(ImageDecodingError):
            validate_pixel_buffer(RasterImage(data=data))

    def test_rectify_invalid_buffer_raises(self):
        quad = full_frame_quad(Size(width=4, height=4))
        with pytest.raises(ImageDecodingError):
            rectify(RasterImage(data=np.zeros((4, 4), dtype=np.float64)), quad)

    @pytest.mark.parametrize("dtype", [np.uint8, np.uint16, np.float32])
    def test_supported_dtypes(self, dtype):
        data = np.zeros((4, 4, 3), dtype=dtype)
        assert validate_pixel_buffer(RasterImage(data=data)) is data

    def test_preview_quad_rejected(self, gradient_raster):
        quad = full_frame_quad(gradient_raster.size).map_points(
            lambda p: p, space=CoordinateSpace.PREVIEW
        )
        with pytest.raises(CoordinateSpaceError):
            rectify(gradient_raster, quad)

    def test_cartesian_quad_rejected(self, gradient_raster):
        quad = to_cartesian(full_frame_quad(gradient_raster.size), 600)
        with pytest.raises(CoordinateSpaceError):
            rectify(gradient_raster, quad)


class TestCornerCorrespondence:
    """The rectifier's source corners agree with the canonical display quad."""

    def test_diamond_matches_canonical_labels(self):
        diamond = Quadrilateral.from_points([[50, 0], [100, 50], [50, 100], [0, 50]])

        np.testing.assert_allclose(
            source_corners(diamond, 100), diamond.reorganize().to_numpy()
        )

    def test_shared_y_corners(self):
        quad = Quadrilateral.from_points([[0, 40], [80, 10], [120, 40], [60, 90]])

        np.testing.assert_allclose(
            source_corners(quad, 200), quad.reorganize().to_numpy()
        )

    def test_random_quads_match_canonical_labels(self):
        rng = np.random.default_rng(11)
        for _ in range(100):
            quad = Quadrilateral.from_points(rng.integers(0, 50, size=(4, 2)))
            if quad.is_degenerate():
                continue
            np.testing.assert_allclose(
                source_corners(quad, 50), quad.reorganize().to_numpy()
            )

    def test_diamond_result_agrees_with_detected_quad(self, gradient_image):
        """The rectified top-left pixel comes from detected_quad.top_left."""
        image = RasterImage(data=gradient_image)
        diamond = Quadrilateral.from_points(
            [[150, 100], [250, 300], [150, 500], [50, 300]]
        )
        canonical = diamond.reorganize()
        rectified = rectify(image, diamond, interpolation="nearest")

        x, y = (int(v) for v in canonical.top_left.to_tuple())
        np.testing.assert_array_equal(rectified.data[0, 0], gradient_image[y, x])


class TestDegenerateQuads:
    """Collinear and coincident quads give a best-effort image."""

    def test_collinear_quad(self, gradient_raster, caplog):
        quad = Quadrilateral.from_points([[0, 0], [50, 50], [100, 100], [20, 20]])

        with caplog.at_level(logging.WARNING, logger="src.scan.rectifier"):
            rectified = rectify(gradient_raster, quad)

        assert rectified.width >= 1
        assert rectified.height >= 1
        assert rectified.data.shape[2] == 3
        assert "degenerate quad" in caplog.text

    def test_collinear_quad_respects_minimum_size(self, gradient_raster):
        quad = Quadrilateral.from_points([[0, 0], [5, 5], [10, 10], [2, 2]])
        rectified = rectify(gradient_raster, quad, min_output_px=32)

        assert rectified.width >= 32
        assert rectified.height >= 32


class TestChannelAxis:
    def test_single_channel_keeps_its_axis(self, gradient_image):
        data = gradient_image[:, :, :1].copy()
        rectified = rectify(
            RasterImage(data=data), full_frame_quad(Size(width=300, height=600))
        )

        assert rectified.data.shape == (600, 300, 1)
        np.testing.assert_array_equal(rectified.data, data)

    def test_wrong_type_is_not_a_decoding_error(self, gradient_image):
        with pytest.raises(TypeError, match="Expected a RasterImage"):
            validate_pixel_buffer(gradient_image)
