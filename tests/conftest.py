"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

ImageFactory = Callable[..., Path]


@pytest.fixture
def make_image(tmp_path: Path) -> ImageFactory:
    """Factory writing a solid colour image into ``tmp_path``."""

    def factory(
        name: str = "image.png",
        size: tuple[int, int] = (40, 20),
        color: tuple[int, ...] = (255, 0, 0),
        mode: str = "RGB",
    ) -> Path:
        path = tmp_path / name
        Image.new(mode, size, color).save(path)
        return path

    return factory


@pytest.fixture
def png_file(make_image: ImageFactory) -> Path:
    """A 40x20 red PNG."""
    return make_image()


@pytest.fixture
def noise_image() -> Image.Image:
    """A random RGB image that compresses badly."""
    return Image.frombytes("RGB", (300, 300), os.urandom(300 * 300 * 3))


@pytest.fixture
def corrupt_file(tmp_path: Path) -> Path:
    """A file with an image extension but no image data."""
    path = tmp_path / "broken.png"
    path.write_bytes(b"not really a png")
    return path


@pytest.fixture
def gradient_image() -> Image.Image:
    """A 60x60 two-axis colour gradient with more colours than a sixel palette."""
    image = Image.new("RGB", (60, 60))
    image.putdata([(x * 4, y * 4, (x + y) * 2) for y in range(60) for x in range(60)])
    return image
