"""ASCII art renderer backed by :py:mod:`ascii_magic`."""

from __future__ import annotations

from pathlib import Path

from ascii_magic import AsciiArt, Front
from PIL import Image

from termthumbs.detect import GraphicsProtocol
from termthumbs.errors import EncodeError
from termthumbs.renderers.common import fit_for_protocol, flatten, open_image

RESET = AsciiArt.get_charcode(Front.RESET)


class AsciiRenderer:
    """Renders images as ASCII art, optionally coloured with ANSI codes.

    Glyph and colour selection is left entirely to ``ascii_magic``; this
    class only sizes the image and joins the characters into lines.
    """

    def __init__(self, width: int, height: int, colored: bool = True) -> None:
        self.width = width
        self.height = height
        self.colored = colored

    def render_file(self, path: str | Path) -> str:
        """Render an image file."""
        return self.render_image(open_image(path))

    def render_image(self, image: Image.Image) -> str:
        """Render a decoded image."""
        image = fit_for_protocol(image, GraphicsProtocol.ASCII, self.width, self.height)
        art = AsciiArt.from_pillow_image(flatten(image))
        try:
            # One glyph per pixel: the image is already sized in cells
            rows = art.to_character_list(
                columns=image.width,
                width_ratio=1.0,
                monochrome=not self.colored,
            )
        except (OSError, ValueError) as e:
            raise EncodeError(f"Failed to convert image to ASCII: {e}") from e

        if not self.colored:
            return "".join(
                "".join(cell["character"] for cell in row) + "\n" for row in rows
            )
        return "".join(self._color_line(row) for row in rows)

    @staticmethod
    def _color_line(row: list[dict[str, str]]) -> str:
        parts = []
        previous = None
        for cell in row:
            color = cell["terminal-color"]
            if color != previous:
                parts.append(color)
                previous = color
            parts.append(cell["character"])
        parts.append(RESET + "\n")
        return "".join(parts)

    def set_colored(self, enabled: bool) -> None:
        self.colored = enabled

    def get_dimensions(self) -> tuple[int, int]:
        return self.width, self.height

    def set_dimensions(self, width: int, height: int) -> None:
        if width > 0 and height > 0:
            self.width = width
            self.height = height
