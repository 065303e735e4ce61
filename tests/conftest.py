"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

import cv2
import numpy as np
import pytest

from src.common.types import RasterImage
from src.scan.types import (
    EnhancementConfig,
    RectificationConfig,
    ResultConfig,
    ScanConfig,
)


@pytest.fixture
def sample_quadrilateral_points():
    """Fixture providing 4 corner points in scrambled order."""
    return np.array(
        [
            [300, 150],  # Top-right area
            [100, 200],  # Top-left area
            [320, 400],  # Bottom-right area
            [80, 380],  # Bottom-left area
        ],
        dtype=np.float32,
    )


@pytest.fixture
def gradient_image():
    """
    300x600 BGR image whose rows get brighter towards the bottom, with a red
    marker block in the top-left corner.
    """
    rows = np.linspace(0, 255, 600).astype(np.uint8)
    image = np.repeat(rows[:, None], 300, axis=1)
    image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    image[0:40, 0:40] = (0, 0, 255)
    return image


@pytest.fixture
def gradient_raster(gradient_image):
    return RasterImage(data=gradient_image)


@pytest.fixture
def sample_document_image():
    """Fixture providing a white page drawn skewed on a dark background."""
    image = np.full((600, 800, 3), 40, dtype=np.uint8)

    pts = np.array([[200, 100], [560, 140], [600, 520], [160, 480]], dtype=np.int32)
    cv2.fillPoly(image, [pts], (245, 245, 245))
    cv2.putText(
        image,
        "INVOICE",
        (260, 300),
        cv2.FONT_HERSHEY_SIMPLEX,
        1.5,
        (20, 20, 20),
        3,
    )

    return image, pts.astype(np.float32)


@pytest.fixture
def scan_config():
    """Configuration equal to the shipped config.yaml."""
    return ScanConfig(
        rectification=RectificationConfig(interpolation="linear", min_output_px=1),
        enhancement=EnhancementConfig(enabled=True, block_size=31, offset=10.0),
        result=ResultConfig(prefer_enhanced=False),
    )


class RecordingListener:
    """ScanListener that records every call it receives."""

    def __init__(self):
        self.calls = []

    def on_scan_finished(self, result):
        self.calls.append(("finished", result))

    def on_scan_cancelled(self):
        self.calls.append(("cancelled", None))

    def on_scan_failed(self, error):
        self.calls.append(("failed", error))


@pytest.fixture
def listener():
    return RecordingListener()
