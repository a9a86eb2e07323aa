"""Terminal graphics capability detection.

Detection relies on environment variables only:

- ``TERM`` / ``TERM_PROGRAM`` identify the emulator
- ``COLORTERM`` advertises 24-bit colour
- ``KITTY_WINDOW_ID`` is set inside kitty windows

A live Device Attributes probe is available through
:meth:`ProtocolDetector.query_capabilities` but detection never depends on it.
"""

from __future__ import annotations

import logging
import os
import select
import sys
import threading
from concurrent.futures import Future
from enum import Enum
from typing import IO, TYPE_CHECKING, Mapping

from termthumbs.errors import UnsupportedProtocolError

if TYPE_CHECKING:
    from termthumbs.renderers import ImageRenderer

logger = logging.getLogger(__name__)


class GraphicsProtocol(str, Enum):
    """Terminal graphics protocols, in descending rendering fidelity."""

    KITTY = "kitty"
    SIXEL = "sixel"
    MOSAIC = "mosaic"
    ASCII = "ascii"

    @property
    def label(self) -> str:
        """Human readable protocol name."""
        return _LABELS[self]

    @classmethod
    def parse(cls, value: GraphicsProtocol | str) -> GraphicsProtocol:
        """Resolve a member from itself, its value or its label."""
        if isinstance(value, cls):
            return value
        needle = str(value).strip().lower()
        for protocol in cls:
            if needle in (protocol.value, protocol.label.lower()):
                return protocol
        raise UnsupportedProtocolError(f"Unknown graphics protocol: {value!r}")


_LABELS = {
    GraphicsProtocol.KITTY: "Kitty",
    GraphicsProtocol.SIXEL: "Sixel",
    GraphicsProtocol.MOSAIC: "Unicode Mosaic",
    GraphicsProtocol.ASCII: "ASCII",
}

KITTY_TERMINALS = ("kitty", "ghostty")

SIXEL_TERMINALS = ("xterm", "mlterm", "wezterm", "foot", "contour", "yaft")

TRUECOLOR_TERMINALS = (
    "iterm",
    "vte",
    "konsole",
    "gnome",
    "terminator",
    "alacritty",
    "wezterm",
    "kitty",
)

# Primary Device Attributes request; replies look like ESC [ ? 62 ; 4 ; ... c
DA1_QUERY = "\x1b[c"


class ProtocolDetector:
    """Detects the best graphics protocol for the current terminal.

    The detected value is memoized on the instance. :meth:`force` overrides
    it, which is how tests and user preferences pin a protocol.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        env = os.environ if environ is None else environ
        self.term = env.get("TERM", "")
        self.term_program = env.get("TERM_PROGRAM", "")
        self.colorterm = env.get("COLORTERM", "")
        self.kitty_window_id = env.get("KITTY_WINDOW_ID", "")
        self._detected: GraphicsProtocol | None = None
        self._lock = threading.Lock()

    def detect(self) -> GraphicsProtocol:
        """Return the best supported protocol, detecting it on first use."""
        with self._lock:
            if self._detected is None:
                self._detected = self._detect()
                logger.debug(f"Detected graphics protocol: {self._detected.label}")
            return self._detected

    def force(self, protocol: GraphicsProtocol | str) -> None:
        """Pin the detected protocol."""
        with self._lock:
            self._detected = GraphicsProtocol.parse(protocol)

    def reset(self) -> None:
        """Forget the memoized protocol."""
        with self._lock:
            self._detected = None

    def _detect(self) -> GraphicsProtocol:
        if self.is_kitty():
            return GraphicsProtocol.KITTY
        if self.supports_sixel():
            return GraphicsProtocol.SIXEL
        if self.supports_truecolor():
            return GraphicsProtocol.MOSAIC
        return GraphicsProtocol.ASCII

    def is_kitty(self) -> bool:
        """Check for kitty or a terminal speaking the kitty graphics protocol."""
        if self.kitty_window_id:
            return True
        names = (self.term.lower(), self.term_program.lower())
        return any(term in name for term in KITTY_TERMINALS for name in names)

    def supports_sixel(self) -> bool:
        """Check the terminal name against known sixel-capable emulators."""
        names = (self.term.lower(), self.term_program.lower())
        return any(term in name for term in SIXEL_TERMINALS for name in names)

    def supports_truecolor(self) -> bool:
        """Check for 24-bit colour support."""
        if self.colorterm.lower() in ("truecolor", "24bit"):
            return True

        term = self.term.lower()
        if "24bit" in term or "truecolor" in term:
            return True

        names = (term, self.term_program.lower())
        return any(known in name for known in TRUECOLOR_TERMINALS for name in names)

    def info(self) -> str:
        """Describe the detected protocol and the environment it came from."""
        return (
            f"Graphics Protocol: {self.detect().label}\n"
            f"TERM: {self.term}\n"
            f"TERM_PROGRAM: {self.term_program}\n"
            f"COLORTERM: {self.colorterm}\n"
        )

    def get_renderer(
        self, width: int, height: int, colored: bool = True
    ) -> ImageRenderer:
        """Create a renderer for the detected protocol."""
        from termthumbs.renderers import create_renderer

        return create_renderer(self.detect(), width, height, colored)

    def query_capabilities(
        self,
        stdout: IO[str] | None = None,
        stdin: IO[str] | None = None,
        timeout: float = 0.1,
    ) -> Future[str]:
        """Send a Device Attributes query and collect the reply.

        The future resolves to the raw reply, or to ``""`` when stdin is
        not a TTY or nothing arrives within ``timeout`` seconds.
        """
        stdout = stdout or sys.stdout
        stdin = stdin or sys.stdin
        future: Future[str] = Future()

        def probe() -> None:
            try:
                future.set_result(_read_da1_reply(stdout, stdin, timeout))
            except (OSError, ValueError) as e:
                logger.debug(f"Terminal capability query failed: {e}")
                future.set_result("")

        threading.Thread(target=probe, name="termthumbs-da1", daemon=True).start()
        return future


def _read_da1_reply(stdout: IO[str], stdin: IO[str], timeout: float) -> str:
    """Write the DA1 query and read the reply in raw mode."""
    if not stdin.isatty():
        stdout.write(DA1_QUERY)
        stdout.flush()
        return ""

    import termios
    import tty

    fd = stdin.fileno()
    saved = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        stdout.write(DA1_QUERY)
        stdout.flush()

        reply = ""
        while not reply.endswith("c") and len(reply) < 64:
            ready, _, _ = select.select([fd], [], [], timeout)
            if not ready:
                return ""
            reply += os.read(fd, 1).decode("ascii", errors="replace")
        return reply
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)
