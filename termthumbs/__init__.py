"""termthumbs - Image thumbnails for the terminal via Kitty, Sixel, Unicode mosaic or ASCII."""

from termthumbs.detect import GraphicsProtocol, ProtocolDetector
from termthumbs.errors import ThumbnailError
from termthumbs.thumbnails import ThumbnailCache, ThumbnailConfig, ThumbnailGenerator

__version__ = "0.1.0"
__all__ = [
    "GraphicsProtocol",
    "ProtocolDetector",
    "ThumbnailCache",
    "ThumbnailConfig",
    "ThumbnailError",
    "ThumbnailGenerator",
]
