"""Protocol-aware thumbnail generator with an in-memory cache."""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import Future
from pathlib import Path
from typing import Callable, Iterable

from PIL import Image, UnidentifiedImageError

from termthumbs.detect import GraphicsProtocol, ProtocolDetector
from termthumbs.errors import (
    DecodeError,
    NotFoundError,
    ThumbnailError,
    UnsupportedFormatError,
)
from termthumbs.renderers import create_renderer
from termthumbs.thumbnails.cache import CacheStats, EvictionPolicy, ThumbnailCache, build_policy
from termthumbs.thumbnails.config import (
    DEFAULT_CACHE_SIZE,
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    SUPPORTED_EXTENSIONS,
    RenderConfig,
    ThumbnailConfig,
)
from termthumbs.thumbnails.locks import ReadWriteLock

logger = logging.getLogger(__name__)

ResultCallback = Callable[[str | None, Exception | None], None]
PreloadCallback = Callable[[str, str | None, Exception | None], None]


class ThumbnailGenerator:
    """Generates terminal thumbnails for image files.

    Rendered output is cached per path and is only valid for the settings it
    was rendered with: changing the protocol, dimensions or colour flag
    clears the whole cache.
    """

    def __init__(
        self,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        protocol: GraphicsProtocol | str | None = None,
        colored: bool = True,
        cache_size: int = DEFAULT_CACHE_SIZE,
        policy: EvictionPolicy | None = None,
        detector: ProtocolDetector | None = None,
        dither: bool = True,
    ) -> None:
        if width <= 0:
            width = DEFAULT_WIDTH
        if height <= 0:
            height = DEFAULT_HEIGHT
        if protocol is None:
            protocol = (detector or ProtocolDetector()).detect()

        self._width = width
        self._height = height
        self._protocol = GraphicsProtocol.parse(protocol)
        self._colored = colored
        self._dither = dither
        self._config_lock = ReadWriteLock()

        self.cache = ThumbnailCache(cache_size, policy)
        self._inflight: dict[str, Future[str]] = {}
        self._inflight_lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: ThumbnailConfig,
        detector: ProtocolDetector | None = None,
    ) -> ThumbnailGenerator:
        """Create a generator from a :class:`ThumbnailConfig`."""
        return cls(
            width=config.width,
            height=config.height,
            protocol=config.protocol,
            colored=config.colored,
            cache_size=config.cache_size,
            policy=build_policy(config.eviction),
            detector=detector,
            dither=config.dither,
        )

    # Generation

    def generate(self, path: str | Path) -> str:
        """Generate the thumbnail for an image file.

        Cached output is returned immediately. Concurrent calls for the same
        path share one render: later callers wait for the first one and get
        its result or its exception.

        Raises:
            NotFoundError: The file does not exist
            DecodeError: The file is not a decodable image
            EncodeError: Protocol encoding failed
        """
        key = str(path)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        if not Path(key).is_file():
            raise NotFoundError(f"Image file not found: {key}", key)

        with self._inflight_lock:
            pending = self._inflight.get(key)
            if pending is None:
                future: Future[str] = Future()
                self._inflight[key] = future

        if pending is not None:
            return pending.result()

        try:
            return self._render_and_store(key, future)
        finally:
            # Only reached unresolved when interrupted by a BaseException
            if not future.done():
                self._release(key, future)
                future.cancel()

    def _render_and_store(self, key: str, future: Future[str]) -> str:
        # Held until the future is resolved and released so a configuration
        # change cannot interleave between rendering and publishing the result.
        with self._config_lock.read():
            try:
                # Another render may have finished between the miss and now
                result = self.cache.peek(key)
                if result is None:
                    config = self._snapshot()
                    renderer = create_renderer(
                        config.protocol,
                        config.width,
                        config.height,
                        config.colored,
                        dither=self._dither,
                    )
                    result = renderer.render_file(key)
                    self.cache.set(key, result)
                    logger.debug(
                        f"Rendered {key} as {config.protocol.label} "
                        f"at {config.width}x{config.height}"
                    )
            except Exception as e:
                self._release(key, future)
                future.set_exception(e)
                raise

            self._release(key, future)
            future.set_result(result)
        return result

    def _release(self, key: str, future: Future[str]) -> None:
        with self._inflight_lock:
            if self._inflight.get(key) is future:
                del self._inflight[key]

    def generate_async(
        self,
        path: str | Path,
        callback: ResultCallback | None = None,
    ) -> Future[str]:
        """Generate a thumbnail on a background thread.

        ``callback(result, error)`` is called once when rendering finishes;
        ``result`` is None when ``error`` is set. The returned future resolves
        after the callback has run.
        """
        future: Future[str] = Future()

        def run() -> None:
            try:
                result = self.generate(path)
            except Exception as e:
                logger.warning(f"Failed to generate thumbnail for {path}: {e}")
                self._notify(callback, None, e)
                future.set_exception(e)
            else:
                self._notify(callback, result, None)
                future.set_result(result)

        threading.Thread(
            target=run, name=f"termthumbs-{Path(path).name}", daemon=True
        ).start()
        return future

    def generate_from_image(self, image: Image.Image) -> str:
        """Generate a thumbnail for an in-memory image. Never cached."""
        with self._config_lock.read():
            config = self._snapshot()

        # Renderers fit the image to their own pixel box
        renderer = create_renderer(
            config.protocol,
            config.width,
            config.height,
            config.colored,
            dither=self._dither,
        )
        return renderer.render_image(image)

    def preload(
        self,
        paths: Iterable[str | Path],
        callback: PreloadCallback | None = None,
    ) -> list[Future[str]]:
        """Start generating thumbnails for many files without waiting.

        Each path renders on its own thread. ``callback(path, result, error)``
        is called per path in completion order.
        """
        futures = []
        for path in paths:
            path_callback = None
            if callback is not None:
                path_callback = _bind_path(callback, str(path))
            futures.append(self.generate_async(path, path_callback))
        return futures

    @staticmethod
    def _notify(
        callback: ResultCallback | None,
        result: str | None,
        error: Exception | None,
    ) -> None:
        if callback is None:
            return
        try:
            callback(result, error)
        except Exception:
            logger.exception("Thumbnail callback raised")

    # Configuration

    def _snapshot(self) -> RenderConfig:
        return RenderConfig(
            width=self._width,
            height=self._height,
            protocol=self._protocol,
            colored=self._colored,
        )

    @property
    def render_config(self) -> RenderConfig:
        """Current rendering settings."""
        with self._config_lock.read():
            return self._snapshot()

    @property
    def protocol(self) -> GraphicsProtocol:
        with self._config_lock.read():
            return self._protocol

    @property
    def colored(self) -> bool:
        with self._config_lock.read():
            return self._colored

    def get_dimensions(self) -> tuple[int, int]:
        """Thumbnail size in character cells."""
        with self._config_lock.read():
            return self._width, self._height

    def set_protocol(self, protocol: GraphicsProtocol | str) -> None:
        """Switch protocol, clearing the cache if it changed."""
        protocol = GraphicsProtocol.parse(protocol)
        with self._config_lock.write():
            if self._protocol is not protocol:
                logger.debug(f"Protocol changed to {protocol.label}")
                self._protocol = protocol
                self.cache.clear()

    def set_dimensions(self, width: int, height: int) -> None:
        """Resize thumbnails, clearing the cache if the size changed.

        Non-positive values are ignored.
        """
        if width <= 0 or height <= 0:
            return

        with self._config_lock.write():
            if (self._width, self._height) != (width, height):
                logger.debug(f"Dimensions changed to {width}x{height}")
                self._width = width
                self._height = height
                self.cache.clear()

    def set_colored(self, enabled: bool) -> None:
        """Toggle colour output, clearing the cache if it changed."""
        with self._config_lock.write():
            if self._colored != enabled:
                logger.debug(f"Colour output {'enabled' if enabled else 'disabled'}")
                self._colored = enabled
                self.cache.clear()

    # Cache management

    def clear_cache(self) -> int:
        """Drop every cached thumbnail."""
        return self.cache.clear()

    def remove_from_cache(self, path: str | Path) -> bool:
        """Drop the thumbnail of a file that changed on disk."""
        return self.cache.remove(str(path))

    def cache_size(self) -> int:
        return self.cache.size()

    def cache_stats(self) -> CacheStats:
        return self.cache.stats

    # Validation

    def validate(self, path: str | Path) -> tuple[bool, ThumbnailError | None]:
        """Check that a file exists, has a supported extension and a readable header.

        Nothing is rendered.
        """
        path = Path(path)
        if not path.is_file() or not os.access(path, os.R_OK):
            return False, NotFoundError(
                f"File does not exist or is not readable: {path}", path
            )

        ext = path.suffix.lstrip(".").lower()
        if ext not in SUPPORTED_EXTENSIONS:
            return False, UnsupportedFormatError(
                f"Unsupported image format: {path.suffix or '(none)'}", path
            )

        try:
            # Image.open only parses the header until pixel data is requested
            with Image.open(path):
                pass
        except (UnidentifiedImageError, OSError) as e:
            return False, DecodeError(f"Invalid image file {path}: {e}", path)

        return True, None


def _bind_path(callback: PreloadCallback, path: str) -> ResultCallback:
    def bound(result: str | None, error: Exception | None) -> None:
        callback(path, result, error)

    return bound
