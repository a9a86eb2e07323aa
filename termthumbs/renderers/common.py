"""Image loading and resize helpers shared by all renderers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Never, NoReturn

from PIL import Image, UnidentifiedImageError

from termthumbs.detect import GraphicsProtocol
from termthumbs.errors import DecodeError, NotFoundError, UnsupportedProtocolError

# Conservative estimate of a terminal character cell in pixels
CELL_WIDTH_PX = 10
CELL_HEIGHT_PX = 20


def unsupported_protocol(protocol: Never) -> NoReturn:
    """Raise for a protocol without a renderer.

    Typed as ``Never`` so a type checker flags any dispatch that forgets a
    :class:`GraphicsProtocol` member.
    """
    raise UnsupportedProtocolError(f"Unsupported graphics protocol: {protocol!r}")


def pixel_box(protocol: GraphicsProtocol, width: int, height: int) -> tuple[int, int]:
    """Get the pixel box a ``width`` x ``height`` cell area maps to."""
    if protocol is GraphicsProtocol.KITTY or protocol is GraphicsProtocol.SIXEL:
        return width * CELL_WIDTH_PX, height * CELL_HEIGHT_PX
    elif protocol is GraphicsProtocol.MOSAIC:
        # Each character holds two vertically stacked pixels
        return width, height * 2
    elif protocol is GraphicsProtocol.ASCII:
        return width, height
    else:
        unsupported_protocol(protocol)


def fit(
    image: Image.Image,
    max_width: int,
    max_height: int,
    upscale: bool = True,
) -> Image.Image:
    """Resize ``image`` to fit inside the box, preserving aspect ratio.

    Args:
        image: Source image
        max_width: Box width in pixels
        max_height: Box height in pixels
        upscale: When False, images already inside the box are returned as-is

    Returns:
        The resized image, never larger than the box and at least 1x1
    """
    width, height = image.size
    if not upscale and width <= max_width and height <= max_height:
        return image

    ratio = min(max_width / width, max_height / height)
    new_size = (
        min(max_width, max(1, round(width * ratio))),
        min(max_height, max(1, round(height * ratio))),
    )
    if new_size == image.size:
        return image
    return image.resize(new_size, Image.Resampling.LANCZOS)


def fit_for_protocol(
    image: Image.Image,
    protocol: GraphicsProtocol,
    width: int,
    height: int,
) -> Image.Image:
    """Fit ``image`` to the pixel box of ``protocol``.

    Sixel output is only ever scaled down; small images keep their native
    resolution to avoid upscaling artifacts.
    """
    max_width, max_height = pixel_box(protocol, width, height)
    return fit(
        image,
        max_width,
        max_height,
        upscale=protocol is not GraphicsProtocol.SIXEL,
    )


def open_image(path: str | Path) -> Image.Image:
    """Open and fully decode an image file as RGBA."""
    path = Path(path)
    if not path.is_file() or not os.access(path, os.R_OK):
        raise NotFoundError(f"Image file not found: {path}", path)

    try:
        with Image.open(path) as image:
            image.load()
            return image.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise DecodeError(f"Failed to decode image {path}: {e}", path) from e


def flatten(
    image: Image.Image,
    background: tuple[int, int, int] = (0, 0, 0),
) -> Image.Image:
    """Composite any transparency onto a solid background and return RGB."""
    if image.mode == "RGB":
        return image
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    canvas = Image.new("RGBA", image.size, (*background, 255))
    return Image.alpha_composite(canvas, image).convert("RGB")
