"""Escape-sequence interpreter — turns raw pty output into terminal events.

A pyte screen does the actual parsing (CSI cursor movement, SGR styling,
erase sequences, charsets). The screen is subclassed so that every effect
we care about is reported as a low-level *primitive* while pyte keeps its
own cursor and attribute state up to date. ``translate()`` then maps
primitives onto the public ``Event`` model and drops the rest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Union

import pyte
from pyte import modes
from wcwidth import wcwidth

from readterm.color import Color
from readterm.event import ClearScreen, Event, PutCharacter

logger = logging.getLogger(__name__)

DEFAULT_FOREGROUND = 0xFFFFFFFF

# xterm's default palette for the 16 named SGR colours.
_NAMED_COLORS: dict[str, int] = {
    "black": 0xFF000000,
    "red": 0xFFCD0000,
    "green": 0xFF00CD00,
    "brown": 0xFFCDCD00,
    "blue": 0xFF0000EE,
    "magenta": 0xFFCD00CD,
    "cyan": 0xFF00CDCD,
    "white": 0xFFE5E5E5,
    "brightblack": 0xFF7F7F7F,
    "brightred": 0xFFFF0000,
    "brightgreen": 0xFF00FF00,
    "brightbrown": 0xFFFFFF00,
    "brightblue": 0xFF5C5CFF,
    "brightmagenta": 0xFFFF00FF,
    "brightcyan": 0xFF00FFFF,
    "brightwhite": 0xFFFFFFFF,
}


def packed_color(name: str) -> int:
    """Convert a pyte colour (``"default"``, a name, or ``"rrggbb"``) to ``0xAARRGGBB``."""
    if name == "default":
        return DEFAULT_FOREGROUND
    packed = _NAMED_COLORS.get(name)
    if packed is not None:
        return packed
    try:
        return 0xFF000000 | int(name, 16)
    except ValueError:
        logger.debug("Unknown colour %r, using default", name)
        return DEFAULT_FOREGROUND


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CharPrimitive:
    """A character placed at viewport cell ``(x, y)``; color is packed ARGB."""

    x: int
    y: int
    character: str
    color: int
    bold: bool
    italic: bool
    underlined: bool
    strikethrough: bool


@dataclass(frozen=True)
class ScreenBufferPrimitive:
    """The screen buffer was erased, fully (``clear``) or partially."""

    clear: bool


@dataclass(frozen=True)
class OtherPrimitive:
    """Anything decoded but not modelled (device status reports, ...)."""

    name: str


Primitive = Union[CharPrimitive, ScreenBufferPrimitive, OtherPrimitive]


def translate(primitive: Primitive) -> list[Event]:
    """Map a primitive to zero or more events."""
    if isinstance(primitive, CharPrimitive):
        return [
            PutCharacter(
                x=primitive.x,
                y=primitive.y,
                character=primitive.character,
                bold=primitive.bold,
                italic=primitive.italic,
                underlined=primitive.underlined,
                strikethrough=primitive.strikethrough,
                color=Color.from_packed_argb8(primitive.color),
            )
        ]
    if isinstance(primitive, ScreenBufferPrimitive):
        return [ClearScreen()] if primitive.clear else []
    return []


# ---------------------------------------------------------------------------
# Screen
# ---------------------------------------------------------------------------


class _PrimitiveScreen(pyte.Screen):
    """A pyte screen that reports what it draws.

    Only drawing, line feeds, full-screen erases and resets are reported.
    Partial erases (``erase_in_line``, ``erase_characters`` and
    ``erase_in_display`` modes 0 and 1) produce no primitive, so after
    ``abc\\r\\x1b[K`` a scroll buffer fed from these events still shows
    ``abc`` while the pyte screen is blank.
    """

    _emit: Callable[[Primitive], None] | None = None

    def _char_primitive(self, x: int, y: int, character: str, attrs: Any) -> CharPrimitive:
        return CharPrimitive(
            x=x,
            y=y,
            character=character,
            color=packed_color(attrs.fg),
            bold=attrs.bold,
            italic=attrs.italics,
            underlined=attrs.underscore,
            strikethrough=attrs.strikethrough,
        )

    def draw(self, data: str) -> None:
        for char in data:
            width = wcwidth(char)
            wraps_from = self.cursor.x
            super().draw(char)
            if width <= 0 or self._emit is None:
                continue

            # pyte defers wrapping until the next character is drawn.
            if wraps_from >= self.columns:
                x = 0 if modes.DECAWM in self.mode else self.columns - width
            else:
                x = wraps_from
            y = self.cursor.y
            cell = self.buffer[y][x]
            self._emit(self._char_primitive(x, y, cell.data, cell))

    def index(self) -> None:
        # Called for LF, VT, FF, ESC D and auto-wrap.
        if self._emit is not None:
            self._emit(
                self._char_primitive(self.cursor.x, self.cursor.y, "\n", self.cursor.attrs)
            )
        super().index()

    def erase_in_display(self, how: int = 0, *args: Any, **kwargs: Any) -> None:
        super().erase_in_display(how, *args, **kwargs)
        if self._emit is not None:
            self._emit(ScreenBufferPrimitive(clear=how in (2, 3)))

    def reset(self) -> None:
        super().reset()
        if self._emit is not None:
            self._emit(ScreenBufferPrimitive(clear=True))

    def report_device_status(self, mode: int, **kwargs: Any) -> None:
        # Replies are never written back to the shell.
        if self._emit is not None:
            self._emit(OtherPrimitive(name="report_device_status"))


class Interpreter:
    """Incremental escape-sequence decoder sized to the viewport.

    Usage:
        interpreter = Interpreter(columns=85, lines=100)
        events = []
        interpreter.feed(b"\\x1b[31mhi", lambda p: events.extend(translate(p)))
    """

    def __init__(self, columns: int, lines: int) -> None:
        self.columns = columns
        self.lines = lines
        self._screen = _PrimitiveScreen(columns, lines)
        self._stream = pyte.ByteStream(self._screen)

    def feed(self, data: bytes, callback: Callable[[Primitive], None]) -> None:
        """Decode ``data`` and call ``callback`` once per primitive, in order.

        Incomplete UTF-8 or escape sequences at the end of ``data`` are
        kept until the next call.
        """
        self._screen._emit = callback
        try:
            self._stream.feed(data)
        finally:
            self._screen._emit = None

    def feed_events(self, data: bytes) -> list[Event]:
        events: list[Event] = []
        self.feed(data, lambda primitive: events.extend(translate(primitive)))
        return events

    def reset(self, columns: int, lines: int) -> None:
        """Rebuild for a new geometry.

        Any partially decoded sequence is discarded.
        """
        self.columns = columns
        self.lines = lines
        self._screen = _PrimitiveScreen(columns, lines)
        self._stream = pyte.ByteStream(self._screen)

    @property
    def cursor(self) -> tuple[int, int]:
        return self._screen.cursor.x, self._screen.cursor.y
