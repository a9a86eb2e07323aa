"""Protocol-specific image renderers."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from PIL import Image

from termthumbs.detect import GraphicsProtocol
from termthumbs.renderers.ascii_art import AsciiRenderer
from termthumbs.renderers.common import unsupported_protocol
from termthumbs.renderers.kitty import KittyRenderer
from termthumbs.renderers.mosaic import MosaicRenderer
from termthumbs.renderers.sixel import SixelRenderer


@runtime_checkable
class ImageRenderer(Protocol):
    """Capabilities shared by every renderer."""

    def render_file(self, path: str | Path) -> str: ...

    def render_image(self, image: Image.Image) -> str: ...

    def set_colored(self, enabled: bool) -> None: ...

    def get_dimensions(self) -> tuple[int, int]: ...

    def set_dimensions(self, width: int, height: int) -> None: ...


def create_renderer(
    protocol: GraphicsProtocol,
    width: int,
    height: int,
    colored: bool = True,
    dither: bool = True,
) -> ImageRenderer:
    """Create the renderer for ``protocol``."""
    if protocol is GraphicsProtocol.KITTY:
        return KittyRenderer(width, height)
    elif protocol is GraphicsProtocol.SIXEL:
        return SixelRenderer(width, height, dither=dither)
    elif protocol is GraphicsProtocol.MOSAIC:
        return MosaicRenderer(width, height, colored)
    elif protocol is GraphicsProtocol.ASCII:
        return AsciiRenderer(width, height, colored)
    else:
        unsupported_protocol(protocol)


__all__ = [
    "AsciiRenderer",
    "ImageRenderer",
    "KittyRenderer",
    "MosaicRenderer",
    "SixelRenderer",
    "create_renderer",
    "unsupported_protocol",
]
