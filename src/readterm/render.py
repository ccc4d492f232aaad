"""Render text slices with rich."""

from __future__ import annotations

from collections.abc import Iterable

from rich.style import Style as RichStyle
from rich.text import Text

from readterm.color import Style
from readterm.pty.buffer import TextSlice


def to_rich_style(style: Style) -> RichStyle:
    return RichStyle(
        color=style.color.to_hex(),
        bold=style.bold,
        italic=style.italic,
        underline=style.underlined,
        strike=style.strikethrough,
    )


def to_rich_text(slices: Iterable[TextSlice], strip_trailing_newline: bool = True) -> Text:
    """Build a rich ``Text`` from style runs, one span per slice.

    Slices are appended as-is, so the per-line ``"\\n"`` slices become line
    breaks. The final one is dropped unless ``strip_trailing_newline`` is
    False.
    """
    text = Text()
    for text_slice in slices:
        text.append(text_slice.text, style=to_rich_style(text_slice.style))
    if strip_trailing_newline and text.plain.endswith("\n"):
        text.right_crop(1)
    return text
