"""Sixel graphics protocol renderer.

Sixel encodes images as bands of six pixel rows using printable characters,
with a palette of up to 256 colours. The image is quantized to the palette
with Pillow (median cut) and remapped with Floyd-Steinberg dithering unless
dithering is disabled.

Protocol reference: https://en.wikipedia.org/wiki/Sixel
"""

from __future__ import annotations

from pathlib import Path

from PIL import Image

from termthumbs.detect import GraphicsProtocol
from termthumbs.errors import EncodeError
from termthumbs.renderers.common import fit_for_protocol, flatten, open_image

MAX_COLORS = 256


def encode_sixel(image: Image.Image, dither: bool = True, colors: int = MAX_COLORS) -> str:
    """Encode an image as a sixel DCS string.

    Args:
        image: Image to encode, transparency is flattened onto black
        dither: Apply Floyd-Steinberg dithering while remapping to the palette
        colors: Palette size (at most 256)

    Returns:
        Sixel escape sequence including the DCS introducer and terminator
    """
    image = flatten(image)
    try:
        palette_image = image.quantize(colors=colors, method=Image.Quantize.MEDIANCUT)
        indexed = image.quantize(
            palette=palette_image,
            dither=Image.Dither.FLOYDSTEINBERG if dither else Image.Dither.NONE,
        )
    except (OSError, ValueError) as e:
        raise EncodeError(f"Failed to quantize image for sixel: {e}") from e

    palette = indexed.getpalette() or []
    pixels = indexed.tobytes()
    width, height = indexed.size

    # P1=0 pixel aspect 2:1, P2=1 unset pixels stay transparent
    parts = ["\x1bP0;1;0q", f'"1;1;{width};{height}']

    for index in sorted(set(pixels)):
        r, g, b = palette[index * 3 : index * 3 + 3]
        parts.append(f"#{index};2;{r * 100 // 255};{g * 100 // 255};{b * 100 // 255}")

    for top in range(0, height, 6):
        band: dict[int, bytearray] = {}
        for bit in range(min(6, height - top)):
            offset = (top + bit) * width
            for x, index in enumerate(pixels[offset : offset + width]):
                columns = band.get(index)
                if columns is None:
                    columns = band[index] = bytearray(width)
                columns[x] |= 1 << bit

        for index in sorted(band):
            parts.append(f"#{index}")
            parts.append(_run_length(band[index]))
            # Graphics carriage return, next colour overdraws the same band
            parts.append("$")
        parts.append("-")

    parts.append("\x1b\\")
    return "".join(parts)


def _run_length(values: bytearray) -> str:
    """Sixel characters with ``!<count><char>`` run-length compression."""
    parts = []
    i = 0
    while i < len(values):
        value = values[i]
        count = 1
        while i + count < len(values) and values[i + count] == value:
            count += 1

        char = chr(value + 63)
        parts.append(f"!{count}{char}" if count >= 3 else char * count)
        i += count
    return "".join(parts)


class SixelRenderer:
    """Renders images with the sixel protocol (always colour)."""

    def __init__(self, width: int, height: int, dither: bool = True) -> None:
        self.width = width
        self.height = height
        self.dither = dither

    def render_file(self, path: str | Path) -> str:
        """Render an image file."""
        return self.render_image(open_image(path))

    def render_file_with_dithering(self, path: str | Path, dither: bool) -> str:
        """Render an image file with dithering explicitly on or off."""
        return self._render(open_image(path), dither)

    def render_image(self, image: Image.Image) -> str:
        """Render a decoded image."""
        return self._render(image, self.dither)

    def _render(self, image: Image.Image, dither: bool) -> str:
        # Never upscale: small thumbnails keep their native resolution
        image = fit_for_protocol(image, GraphicsProtocol.SIXEL, self.width, self.height)
        return encode_sixel(image, dither=dither)

    def set_colored(self, enabled: bool) -> None:
        """No-op: sixel output is always colour."""

    def get_dimensions(self) -> tuple[int, int]:
        return self.width, self.height

    def set_dimensions(self, width: int, height: int) -> None:
        if width > 0 and height > 0:
            self.width = width
            self.height = height
