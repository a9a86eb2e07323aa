"""Tests for shared renderer helpers."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from termthumbs.detect import GraphicsProtocol
from termthumbs.errors import DecodeError, NotFoundError, UnsupportedProtocolError
from termthumbs.renderers import create_renderer
from termthumbs.renderers.common import (
    fit,
    fit_for_protocol,
    flatten,
    open_image,
    pixel_box,
)


class TestPixelBox:
    """Tests for per-protocol pixel boxes."""

    def test_graphics_protocols_use_cell_pixels(self) -> None:
        """Test kitty and sixel map cells to 10x20 pixels."""
        assert pixel_box(GraphicsProtocol.KITTY, 20, 10) == (200, 200)
        assert pixel_box(GraphicsProtocol.SIXEL, 4, 2) == (40, 40)

    def test_mosaic_doubles_rows(self) -> None:
        """Test two pixels per character vertically."""
        assert pixel_box(GraphicsProtocol.MOSAIC, 20, 10) == (20, 20)

    def test_ascii_is_one_to_one(self) -> None:
        """Test one pixel per character."""
        assert pixel_box(GraphicsProtocol.ASCII, 20, 10) == (20, 10)

    def test_unknown_protocol(self) -> None:
        """Test dispatch on something that is not a protocol."""
        with pytest.raises(UnsupportedProtocolError):
            pixel_box("braille", 1, 1)  # type: ignore[arg-type]


class TestFit:
    """Tests for aspect-preserving resize."""

    def test_downscale_wide_image(self) -> None:
        """Test a wide image is limited by the box width."""
        image = Image.new("RGB", (400, 100))
        assert fit(image, 200, 200).size == (200, 50)

    def test_downscale_tall_image(self) -> None:
        """Test a tall image is limited by the box height."""
        image = Image.new("RGB", (100, 400))
        assert fit(image, 200, 200).size == (50, 200)

    def test_upscale(self) -> None:
        """Test small images grow to fill the box by default."""
        image = Image.new("RGB", (10, 5))
        assert fit(image, 200, 200).size == (200, 100)

    def test_no_upscale(self) -> None:
        """Test small images are left alone without upscaling."""
        image = Image.new("RGB", (10, 5))
        assert fit(image, 200, 200, upscale=False) is image

    def test_never_below_one_pixel(self) -> None:
        """Test extreme aspect ratios keep at least one pixel."""
        image = Image.new("RGB", (1000, 1))
        assert fit(image, 10, 10).size == (10, 1)

    def test_sixel_never_upscales(self) -> None:
        """Test fit_for_protocol keeps small sixel images native."""
        image = Image.new("RGB", (5, 5))
        assert fit_for_protocol(image, GraphicsProtocol.SIXEL, 4, 2).size == (5, 5)
        assert fit_for_protocol(image, GraphicsProtocol.KITTY, 4, 2).size == (40, 40)


class TestOpenImage:
    """Tests for image loading."""

    def test_open_png(self, png_file: Path) -> None:
        """Test decoding to RGBA."""
        image = open_image(png_file)
        assert image.mode == "RGBA"
        assert image.size == (40, 20)

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test missing files raise NotFoundError with the path."""
        path = tmp_path / "missing.png"
        with pytest.raises(NotFoundError) as exc_info:
            open_image(path)
        assert exc_info.value.path == str(path)

    def test_directory(self, tmp_path: Path) -> None:
        """Test directories are not images."""
        with pytest.raises(NotFoundError):
            open_image(tmp_path)

    def test_corrupt_file(self, corrupt_file: Path) -> None:
        """Test undecodable data raises DecodeError."""
        with pytest.raises(DecodeError):
            open_image(corrupt_file)


class TestFlatten:
    """Tests for alpha flattening."""

    def test_transparent_becomes_background(self) -> None:
        """Test fully transparent pixels take the background colour."""
        image = Image.new("RGBA", (2, 2), (255, 255, 255, 0))
        flat = flatten(image, background=(10, 20, 30))
        assert flat.mode == "RGB"
        assert flat.getpixel((0, 0)) == (10, 20, 30)

    def test_rgb_untouched(self) -> None:
        """Test RGB images pass through."""
        image = Image.new("RGB", (2, 2), (1, 2, 3))
        assert flatten(image) is image


class TestCreateRenderer:
    """Tests for the renderer factory."""

    def test_unknown_protocol(self) -> None:
        """Test the factory rejects unknown protocols."""
        with pytest.raises(UnsupportedProtocolError):
            create_renderer("braille", 10, 10)  # type: ignore[arg-type]

    def test_colored_flag_passed(self) -> None:
        """Test the colour flag reaches text renderers."""
        renderer = create_renderer(GraphicsProtocol.MOSAIC, 10, 5, colored=False)
        assert renderer.colored is False  # type: ignore[attr-defined]
