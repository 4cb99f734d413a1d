"""
Test configuration and fixtures for HueSort tests.
"""
import io

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Import the main app
from main import app
from huesort.models import ImageSource
from huesort.utils.metrics import reset_metrics as _reset_global_metrics


def png_bytes(color, size=(32, 32), mode="RGB") -> bytes:
    """Encode a solid-color image as PNG."""
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def array_png_bytes(pixels: np.ndarray) -> bytes:
    """Encode an (H, W, 3|4) uint8 array as PNG."""
    mode = "RGBA" if pixels.shape[2] == 4 else "RGB"
    buffer = io.BytesIO()
    Image.fromarray(pixels.astype(np.uint8), mode).save(buffer, format="PNG")
    return buffer.getvalue()


def make_source(name: str, data: bytes, modified: float = 1700000000000) -> ImageSource:
    return ImageSource(data=data, name=name, size=len(data), modified=modified)


@pytest.fixture
def test_client():
    """Create test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before each test."""
    _reset_global_metrics()


@pytest.fixture
def rgbg_sources():
    """Red, green, blue and gray images, deliberately shuffled."""
    return [
        make_source("gray.png", png_bytes((128, 128, 128))),
        make_source("blue.png", png_bytes((0, 0, 255))),
        make_source("red.png", png_bytes((255, 0, 0))),
        make_source("green.png", png_bytes((0, 255, 0))),
    ]
