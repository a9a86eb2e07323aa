"""Thumbnail generator configuration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

from termthumbs.detect import GraphicsProtocol
from termthumbs.renderers.common import pixel_box

SUPPORTED_EXTENSIONS = frozenset(
    {"png", "jpg", "jpeg", "gif", "webp", "bmp", "tiff", "tif"}
)

DEFAULT_WIDTH = 20
DEFAULT_HEIGHT = 10
DEFAULT_CACHE_SIZE = 100


class ThumbnailConfig(BaseModel):
    """Configuration for thumbnail generation."""

    width: int = Field(default=DEFAULT_WIDTH, gt=0, description="Width in character columns")
    height: int = Field(default=DEFAULT_HEIGHT, gt=0, description="Height in character rows")
    protocol: GraphicsProtocol | None = Field(
        default=None, description="Graphics protocol, None to auto-detect"
    )
    colored: bool = Field(default=True, description="Colour output for mosaic and ASCII")
    cache_size: int = Field(
        default=DEFAULT_CACHE_SIZE, ge=1, description="Maximum number of cached thumbnails"
    )
    eviction: Literal["clear", "lru", "lfu"] = Field(
        default="clear", description="Cache eviction policy"
    )
    dither: bool = Field(default=True, description="Dither sixel palette encoding")

    @property
    def supported_extensions(self) -> frozenset[str]:
        """File extensions accepted by validation."""
        return SUPPORTED_EXTENSIONS

    @classmethod
    def from_yaml(cls, path: Path) -> "ThumbnailConfig":
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.model_validate(data)


@dataclass(frozen=True)
class RenderConfig:
    """Snapshot of the settings a thumbnail was rendered with."""

    width: int
    height: int
    protocol: GraphicsProtocol
    colored: bool

    @property
    def pixel_box(self) -> tuple[int, int]:
        """Target pixel box for the protocol."""
        return pixel_box(self.protocol, self.width, self.height)
