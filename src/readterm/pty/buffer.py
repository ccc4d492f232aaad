"""Scroll buffer — the virtual screen with bounded scrollback."""

from __future__ import annotations

import codecs
from collections import deque
from dataclasses import dataclass, field

from readterm.color import Style


@dataclass(frozen=True)
class BufferSettings:
    """Geometry of a scroll buffer."""

    max_columns: int
    max_lines: int
    tab_width: int = 2
    lines_to_remember: int = 10_000


@dataclass(frozen=True)
class Cell:
    """One grid position."""

    character: str = " "
    style: Style = field(default_factory=Style)


@dataclass(frozen=True)
class TextSlice:
    """A run of same-styled text, ready for display."""

    text: str
    style: Style


@dataclass
class Line:
    """A constant-width line. Unused cells are space-padded."""

    cells: list[Cell]

    @classmethod
    def blank(cls, settings: BufferSettings) -> Line:
        return cls(cells=[Cell() for _ in range(settings.max_columns)])

    def __str__(self) -> str:
        return "".join(cell.character for cell in self.cells)


@dataclass
class Location:
    """A zero-based (line, column) position relative to the top-left of the viewport."""

    line_number: int = 0
    column_number: int = 0

    @classmethod
    def top_left(cls) -> Location:
        return cls(0, 0)

    @classmethod
    def eof(cls, settings: BufferSettings) -> Location:
        """The slot after the last cell of the last visible line."""
        return cls(line_number=settings.max_lines - 1, column_number=settings.max_columns)

    def carriage_return(self) -> Location:
        self.column_number = 0
        return self

    def line_feed(self) -> Location:
        self.line_number += 1
        return self

    def is_eof(self, settings: BufferSettings) -> bool:
        return self == Location.eof(settings)


class ScrollBuffer:
    """A fixed-width grid of lines with a cursor and bounded history.

    The buffer always holds at least ``max_lines`` lines; the last
    ``max_lines`` of them form the visible viewport. Everything before that
    is scrollback, capped at ``lines_to_remember`` lines and evicted oldest
    first.

    Not thread-safe: the consumer thread owns it exclusively.
    """

    def __init__(self, settings: BufferSettings) -> None:
        self.settings = settings
        self._lines: deque[Line] = deque(Line.blank(settings) for _ in range(settings.max_lines))
        self._cursor = Location.top_left()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def put_str(self, s: str) -> None:
        for c in s:
            self.put_character(c)

    def put_character(self, character: str) -> None:
        self.put_character_styled(character, Style())

    def put_character_styled(self, character: str, style: Style) -> None:
        """Place a character at the cursor, handling control characters."""
        self._evict_overflow()

        if character == "\n":
            self._cursor.carriage_return()
            # The cursor is relative to the viewport, so on the last row a
            # new line scrolls the viewport instead of moving the cursor.
            if self._cursor.line_number == Location.eof(self.settings).line_number:
                self._add_new_whitespace_line()
            else:
                self._cursor.line_feed()
        elif character == "\r":
            self._cursor.carriage_return()
        elif character == "\t":
            for _ in range(self.settings.tab_width):
                self.put_character(" ")
        else:
            if self._cursor.is_eof(self.settings):
                self._add_new_whitespace_line()
                self._cursor.carriage_return()
            elif self._cursor.column_number >= self.settings.max_columns:
                self._cursor.carriage_return().line_feed()

            line = self._line_at(self._cursor.line_number)
            line.cells[self._cursor.column_number] = Cell(character=character, style=style)
            self._cursor.column_number += 1

    def backspace(self) -> None:
        """Move back one column and blank the vacated cell."""
        if self._cursor.column_number == 0:
            return
        self._cursor.column_number -= 1
        self.put_character(" ")
        self._cursor.column_number -= 1

    def write(self, data: bytes | str) -> int:
        """File-like adapter: ``print(..., file=buffer)`` works."""
        if isinstance(data, bytes):
            self.put_str(self._decoder.decode(data))
        else:
            self.put_str(data)
        return len(data)

    def flush(self) -> None:
        pass

    # ------------------------------------------------------------------
    # Clearing and cursor
    # ------------------------------------------------------------------

    def clear_visible(self) -> None:
        """Blank the viewport. Scrollback and cursor are untouched."""
        first = self._first_visible_line_index_no_scroll()
        for index in range(first, len(self._lines)):
            self._lines[index] = Line.blank(self.settings)

    def clear_everything(self) -> None:
        """Drop all history and start over with a blank viewport."""
        self._lines = deque(Line.blank(self.settings) for _ in range(self.settings.max_lines))
        self.reset_cursor()

    def reset_cursor(self) -> None:
        self._cursor = Location.top_left()

    def set_cursor_xy(self, x: int, y: int) -> None:
        """Move the cursor to viewport column ``x``, row ``y`` (clamped)."""
        self._cursor = Location(
            line_number=max(0, min(y, self.settings.max_lines - 1)),
            column_number=max(0, min(x, self.settings.max_columns)),
        )

    def cursor_xy(self) -> tuple[int, int]:
        return self._cursor.column_number, self._cursor.line_number

    def cursor_index(self) -> int:
        """Cursor offset into the viewport, row-major."""
        return self._cursor.line_number * self.settings.max_columns + self._cursor.column_number

    @property
    def cursor(self) -> Location:
        return Location(self._cursor.line_number, self._cursor.column_number)

    @property
    def line_count(self) -> int:
        """Total buffered lines, scrollback included."""
        return len(self._lines)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def visible_cells(self, scrollback_line_count: int = 0) -> list[list[Cell]]:
        return [list(line.cells) for line in self._visible_lines(scrollback_line_count)]

    def visible_text(self, scrollback_line_count: int = 0) -> str:
        return "\n".join(str(line) for line in self._visible_lines(scrollback_line_count))

    def visible_slices(self, scrollback_line_count: int = 0) -> list[TextSlice]:
        """Split each visible line into maximal same-style runs.

        Every line ends with a ``"\\n"`` slice carrying the style of its
        last cell.
        """
        slices: list[TextSlice] = []
        for line in self._visible_lines(scrollback_line_count):
            cells = line.cells
            start = 0
            while start < len(cells):
                style = cells[start].style
                end = start + 1
                while end < len(cells) and cells[end].style == style:
                    end += 1
                text = "".join(cell.character for cell in cells[start:end])
                slices.append(TextSlice(text=text, style=style))
                start = end
            slices.append(TextSlice(text="\n", style=cells[-1].style))
        return slices

    def entire_text(self) -> str:
        return "\n".join(str(line) for line in self._lines)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _line_at(self, line_number: int) -> Line:
        line = self._lines[self._first_visible_line_index_no_scroll() + line_number]
        assert len(line.cells) == self.settings.max_columns, "line width does not match column count"
        return line

    def _visible_lines(self, scrollback_line_count: int) -> list[Line]:
        first = self._first_visible_line_index(scrollback_line_count)
        return [self._lines[i] for i in range(first, first + self.settings.max_lines)]

    def _add_new_whitespace_line(self) -> None:
        self._lines.append(Line.blank(self.settings))
        self._evict_overflow()

    def _evict_overflow(self) -> None:
        while self._lines_in_scroll_buffer() > self.settings.lines_to_remember:
            self._lines.popleft()

    def _first_visible_line_index(self, scrollback_line_count: int) -> int:
        return max(0, self._first_visible_line_index_no_scroll() - scrollback_line_count)

    def _first_visible_line_index_no_scroll(self) -> int:
        return self._lines_in_scroll_buffer()

    def _lines_in_scroll_buffer(self) -> int:
        return len(self._lines) - self.settings.max_lines
