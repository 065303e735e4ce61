"""
Unit tests for the enhancer module.
"""

import logging

import numpy as np
import pytest

from src.common.types import Orientation, RasterImage
from src.scan.enhancer import enhance, to_grayscale
from src.scan.types import EnhancementConfig


@pytest.fixture
def text_page(sample_document_image):
    """Upright page with dark text on light paper."""
    image, _ = sample_document_image
    return RasterImage(data=image[100:480, 200:560].copy())


class TestEnhance:
    """Tests for the adaptive-threshold enhancement."""

    def test_output_is_binary_grayscale(self, text_page):
        enhanced = enhance(text_page)

        assert enhanced is not None
        assert enhanced.data.ndim == 2
        assert enhanced.data.dtype == np.uint8
        assert set(np.unique(enhanced.data)) <= {0, 255}
        assert (enhanced.width, enhanced.height) == (text_page.width, text_page.height)

    def test_text_and_paper_separated(self, text_page):
        enhanced = enhance(text_page)
        # Mostly paper (white) with some text (black)
        white_ratio = (enhanced.data == 255).mean()
        assert 0.5 < white_ratio < 1.0

    def test_does_not_modify_input(self, text_page):
        before = text_page.data.copy()
        enhance(text_page)
        np.testing.assert_array_equal(text_page.data, before)

    def test_orientation_tag_carried_over(self):
        image = RasterImage(
            data=np.full((50, 40, 3), 200, dtype=np.uint8),
            orientation=Orientation.RIGHT,
        )
        assert enhance(image).orientation == Orientation.RIGHT

    @pytest.mark.parametrize("channels", [1, 3, 4])
    def test_channel_layouts(self, channels):
        data = np.full((32, 32, channels), 128, dtype=np.uint8)
        assert enhance(RasterImage(data=data)) is not None

    def test_custom_config(self, text_page):
        config = EnhancementConfig(enabled=True, block_size=11, offset=2.0)
        assert enhance(text_page, config) is not None


class TestSoftFailure:
    """Unsupported inputs yield None instead of raising."""

    @pytest.mark.parametrize(
        "data",
        [
            np.zeros((32, 32, 3), dtype=np.uint16),
            np.zeros((32, 32, 3), dtype=np.float32),
            np.zeros((32, 32, 2), dtype=np.uint8),
            np.zeros((0, 0), dtype=np.uint8),
        ],
    )
    def test_unsupported_format_returns_none(self, data, caplog):
        with caplog.at_level(logging.WARNING, logger="src.scan.enhancer"):
            assert enhance(RasterImage(data=data)) is None
        assert "Enhancement unavailable" in caplog.text


class TestToGrayscale:
    """Tests for the grayscale helper."""

    def test_gray_passthrough(self):
        data = np.zeros((4, 4), dtype=np.uint8)
        assert to_grayscale(data) is data

    def test_single_channel_squeezed(self):
        gray = to_grayscale(np.zeros((4, 5, 1), dtype=np.uint8))
        assert gray.shape == (4, 5)

    def test_unsupported_layout(self):
        assert to_grayscale(np.zeros((4, 4, 5), dtype=np.uint8)) is None
