"""Thumbnail generation and caching module."""

from termthumbs.thumbnails.cache import (
    CacheStats,
    ClearAllPolicy,
    EvictionPolicy,
    LFUPolicy,
    LRUPolicy,
    ThumbnailCache,
    build_policy,
)
from termthumbs.thumbnails.config import RenderConfig, ThumbnailConfig
from termthumbs.thumbnails.generator import ThumbnailGenerator

__all__ = [
    "CacheStats",
    "ClearAllPolicy",
    "EvictionPolicy",
    "LFUPolicy",
    "LRUPolicy",
    "RenderConfig",
    "ThumbnailCache",
    "ThumbnailConfig",
    "ThumbnailGenerator",
    "build_policy",
]
