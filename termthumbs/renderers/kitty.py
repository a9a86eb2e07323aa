"""Kitty graphics protocol renderer.

Images are transmitted as base64 PNG data directly inside the escape
sequences, split into chunks because the protocol limits the payload of a
single command to 4096 bytes.

Protocol reference: https://sw.kovidgoyal.net/kitty/graphics-protocol/
"""

from __future__ import annotations

import base64
from io import BytesIO
from pathlib import Path
from typing import Any

from PIL import Image

from termthumbs.detect import GraphicsProtocol
from termthumbs.errors import EncodeError
from termthumbs.renderers.common import fit_for_protocol, open_image

CHUNK_SIZE = 4096


def kitty_command(chunk: str = "", **params: Any) -> str:
    """Build a single kitty graphics command."""
    param_str = ",".join(
        f"{key}={value}" for key, value in params.items() if value is not None
    )
    cmd = f"\x1b_G{param_str}"
    if chunk:
        cmd += f";{chunk}"
    return cmd + "\x1b\\"


def split_chunks(data: str, size: int = CHUNK_SIZE) -> list[str]:
    """Split ``data`` into pieces of at most ``size`` characters."""
    return [data[i : i + size] for i in range(0, len(data), size)]


class KittyRenderer:
    """Renders images with the kitty graphics protocol (always full colour)."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def render_file(self, path: str | Path) -> str:
        """Render an image file."""
        return self.render_image(open_image(path))

    def render_image(self, image: Image.Image) -> str:
        """Render a decoded image."""
        return self._transmit(self._encode(image))

    def render_file_with_id(self, path: str | Path, image_id: int) -> str:
        """Render an image file tagged with ``image_id`` for later reuse."""
        return self._transmit(self._encode(open_image(path)), image_id=image_id)

    def delete_image(self, image_id: int) -> str:
        """Command deleting a previously transmitted image by id."""
        return kitty_command(a="d", d="I", i=image_id)

    def _encode(self, image: Image.Image) -> str:
        image = fit_for_protocol(image, GraphicsProtocol.KITTY, self.width, self.height)
        buffer = BytesIO()
        try:
            image.save(buffer, format="PNG")
        except (OSError, ValueError) as e:
            raise EncodeError(f"Failed to encode image as PNG: {e}") from e
        return base64.standard_b64encode(buffer.getvalue()).decode("ascii")

    def _transmit(self, data: str, image_id: int | None = None) -> str:
        chunks = split_chunks(data)
        commands = []
        for index, chunk in enumerate(chunks):
            more = index < len(chunks) - 1
            if index == 0:
                # a=T transmit and display, f=100 PNG, t=d direct transmission
                commands.append(
                    kitty_command(
                        chunk,
                        a="T",
                        f=100,
                        t="d",
                        i=image_id,
                        m=1 if more else None,
                    )
                )
            else:
                commands.append(kitty_command(chunk, m=1 if more else 0))
        return "".join(commands)

    def set_colored(self, enabled: bool) -> None:
        """No-op: kitty output is always full colour."""

    def get_dimensions(self) -> tuple[int, int]:
        return self.width, self.height

    def set_dimensions(self, width: int, height: int) -> None:
        if width > 0 and height > 0:
            self.width = width
            self.height = height
