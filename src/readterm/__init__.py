"""readterm — programmatic control of an interactive terminal session."""

from readterm.color import Color, Style
from readterm.config import Settings
from readterm.errors import (
    SessionFinished,
    SpawnError,
    TerminalError,
    UnsupportedOperation,
    WriteError,
)
from readterm.event import (
    Action,
    Backspace,
    ClearScreen,
    ControlCode,
    CursorDown,
    CursorLeft,
    CursorRight,
    CursorUp,
    Escape,
    Event,
    PutCharacter,
    WriteText,
)
from readterm.pty.buffer import ScrollBuffer, TextSlice
from readterm.terminal import Terminal

__all__ = [
    "Color",
    "Style",
    "Settings",
    "TerminalError",
    "SpawnError",
    "WriteError",
    "SessionFinished",
    "UnsupportedOperation",
    "Action",
    "WriteText",
    "Backspace",
    "Escape",
    "CursorLeft",
    "CursorRight",
    "CursorUp",
    "CursorDown",
    "ControlCode",
    "Event",
    "PutCharacter",
    "ClearScreen",
    "ScrollBuffer",
    "TextSlice",
    "Terminal",
]
