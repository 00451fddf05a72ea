"""Pytest configuration and fixtures."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from colour_smash.codec import Rgb5a3Format, Rgba8Format


def write_png(path: Path, rgba: np.ndarray) -> Path:
    """Save a uint8 (H,W,4) array as PNG and return the path."""
    Image.fromarray(np.ascontiguousarray(rgba, dtype=np.uint8)).save(path)
    return path


def random_opaque_colours(count: int, seed: int = 0) -> np.ndarray:
    """`count` distinct opaque RGBA colours as uint8 (count, 4)."""
    rng = np.random.default_rng(seed)
    codes = rng.choice(1 << 24, size=count, replace=False)
    out = np.empty((count, 4), dtype=np.uint8)
    out[:, 0] = (codes >> 16) & 0xFF
    out[:, 1] = (codes >> 8) & 0xFF
    out[:, 2] = codes & 0xFF
    out[:, 3] = 255
    return out


@pytest.fixture
def rgba8():
    """RGBA8 output format."""
    return Rgba8Format()


@pytest.fixture
def rgb5a3():
    """RGB5A3 output format."""
    return Rgb5a3Format()


@pytest.fixture
def four_colour_image():
    """8x8 image with four opaque quadrants and a transparent row."""
    image = np.zeros((8, 8, 4), dtype=np.uint8)
    image[:4, :4] = [255, 0, 0, 255]
    image[:4, 4:] = [0, 255, 0, 255]
    image[4:, :4] = [0, 0, 255, 255]
    image[4:, 4:] = [255, 255, 0, 255]
    image[7, :] = [12, 34, 56, 0]
    return image


@pytest.fixture
def noisy_image():
    """16x16 image with many distinct semi-transparent colours."""
    rng = np.random.default_rng(7)
    image = rng.integers(0, 256, size=(16, 16, 4), dtype=np.uint8)
    image[..., 3] = np.maximum(image[..., 3], 1)
    return image


@pytest.fixture
def png_file(tmp_path, four_colour_image):
    """Path to a PNG of four_colour_image."""
    return write_png(tmp_path / "quadrants.png", four_colour_image)


@pytest.fixture
def png_pair(tmp_path, four_colour_image, noisy_image):
    """Two same-sized PNGs for joint quantization."""
    second = noisy_image[:8, :8]
    return (
        write_png(tmp_path / "first.png", four_colour_image),
        write_png(tmp_path / "second.png", second),
    )
