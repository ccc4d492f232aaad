"""Colors and text styles."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass(frozen=True)
class Color:
    """An RGBA color with channels normalised to [0, 1]."""

    red: float
    green: float
    blue: float
    alpha: float = 1.0

    RED: ClassVar[Color]
    GREEN: ClassVar[Color]
    BLUE: ClassVar[Color]
    BLACK: ClassVar[Color]
    WHITE: ClassVar[Color]

    @classmethod
    def from_packed_argb8(cls, value: int) -> Color:
        """Build a color from a packed ``0xAARRGGBB`` integer."""
        alpha = (value & 0xFF000000) >> 24
        red = (value & 0x00FF0000) >> 16
        green = (value & 0x0000FF00) >> 8
        blue = value & 0x000000FF
        return cls.from_rgba8(red, green, blue, alpha)

    @classmethod
    def from_rgb8(cls, red: int, green: int, blue: int) -> Color:
        return cls.from_rgba8(red, green, blue, 0xFF)

    @classmethod
    def from_rgba8(cls, red: int, green: int, blue: int, alpha: int) -> Color:
        return cls(
            red=red / 255.0,
            green=green / 255.0,
            blue=blue / 255.0,
            alpha=alpha / 255.0,
        )

    def to_hex(self) -> str:
        """``#rrggbb`` form (alpha dropped)."""
        return "#{:02x}{:02x}{:02x}".format(
            round(self.red * 255), round(self.green * 255), round(self.blue * 255)
        )


Color.RED = Color(1.0, 0.0, 0.0, 1.0)
Color.GREEN = Color(0.0, 1.0, 0.0, 1.0)
Color.BLUE = Color(0.0, 0.0, 1.0, 1.0)
Color.BLACK = Color(0.0, 0.0, 0.0, 1.0)
Color.WHITE = Color(1.0, 1.0, 1.0, 1.0)


@dataclass(frozen=True)
class Style:
    """How a character is rendered.

    Equality drives style-run extraction: two adjacent cells belong to the
    same run only if every field matches.
    """

    color: Color = field(default_factory=lambda: Color.BLACK)
    bold: bool = False
    italic: bool = False
    underlined: bool = False
    strikethrough: bool = False
