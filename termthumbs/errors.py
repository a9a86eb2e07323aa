"""Exceptions raised while validating, decoding and rendering thumbnails."""

from __future__ import annotations

from pathlib import Path


class ThumbnailError(Exception):
    """Base class for all thumbnail rendering errors."""

    def __init__(self, message: str, path: str | Path | None = None) -> None:
        super().__init__(message)
        self.path = str(path) if path is not None else None


class NotFoundError(ThumbnailError):
    """The path does not resolve to a readable file."""


class DecodeError(ThumbnailError):
    """The file is not a supported or parseable raster image."""


class UnsupportedFormatError(ThumbnailError):
    """The file extension is not in the allow-list."""


class UnsupportedProtocolError(ThumbnailError):
    """No renderer exists for the requested graphics protocol."""


class EncodeError(ThumbnailError):
    """A protocol-specific encode step failed."""
