"""Terminal events and caller actions.

Events flow from a driver to the consumer: they are the only observable
effects of the child's output. Actions flow the other way: they describe
what a caller wants to send to the session.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from readterm.color import Color, Style

if TYPE_CHECKING:
    from readterm.pty.driver import Driver
    from readterm.terminal import Terminal


@dataclass(frozen=True)
class PutCharacter:
    """A character placed at viewport coordinates ``(x, y)``."""

    x: int
    y: int
    character: str
    bold: bool = False
    italic: bool = False
    underlined: bool = False
    strikethrough: bool = False
    color: Color = Color.WHITE

    @property
    def style(self) -> Style:
        return Style(
            color=self.color,
            bold=self.bold,
            italic=self.italic,
            underlined=self.underlined,
            strikethrough=self.strikethrough,
        )


@dataclass(frozen=True)
class ClearScreen:
    """The visible screen was cleared."""


Event = Union[PutCharacter, ClearScreen]


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WriteText:
    text: str

    def apply(self, target: Driver | Terminal) -> None:
        target.write_text(self.text)


@dataclass(frozen=True)
class Backspace:
    def apply(self, target: Driver | Terminal) -> None:
        target.backspace()


@dataclass(frozen=True)
class Escape:
    def apply(self, target: Driver | Terminal) -> None:
        target.escape()


@dataclass(frozen=True)
class CursorLeft:
    def apply(self, target: Driver | Terminal) -> None:
        target.cursor_left()


@dataclass(frozen=True)
class CursorRight:
    def apply(self, target: Driver | Terminal) -> None:
        target.cursor_right()


@dataclass(frozen=True)
class CursorUp:
    def apply(self, target: Driver | Terminal) -> None:
        target.cursor_up()


@dataclass(frozen=True)
class CursorDown:
    def apply(self, target: Driver | Terminal) -> None:
        target.cursor_down()


@dataclass(frozen=True)
class ControlCode:
    """Send ``Ctrl+<char>`` (e.g. ``ControlCode("c")`` for ETX)."""

    char: str

    def apply(self, target: Driver | Terminal) -> None:
        target.control_code(self.char)


Action = Union[
    WriteText,
    Backspace,
    Escape,
    CursorLeft,
    CursorRight,
    CursorUp,
    CursorDown,
    ControlCode,
]
