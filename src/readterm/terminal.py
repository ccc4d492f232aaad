"""Terminal — a shell session plus the virtual screen it renders into."""

from __future__ import annotations

from readterm.config import Settings
from readterm.event import Action, ClearScreen, Event, PutCharacter
from readterm.pty.buffer import Cell, ScrollBuffer, TextSlice
from readterm.pty.driver import Driver, current_driver_class


class Terminal:
    """A terminal: a session driver feeding a scroll buffer.

    The caller's thread owns the terminal. ``update()`` pulls whatever the
    shell has produced since the last call and applies it to the buffer;
    nothing happens in the background except reading.

    Usage:
        with Terminal(Settings(shell="sh")) as term:
            term.write_text("echo hi\\n")
            term.update_blocking()
            print(term.visible_text())
    """

    def __init__(
        self,
        settings: Settings | None = None,
        driver_class: type[Driver] | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self._driver = (driver_class or current_driver_class())(self.settings)
        self._scroll_buffer = ScrollBuffer(self.settings.buffer_settings())

    @property
    def driver(self) -> Driver:
        return self._driver

    @property
    def scroll_buffer(self) -> ScrollBuffer:
        return self._scroll_buffer

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def write_text(self, s: str) -> None:
        """Write text to the shell, echoing it into the buffer."""
        self._scroll_buffer.put_str(s)
        self._driver.write_text(s)

    def backspace(self) -> None:
        self._scroll_buffer.backspace()
        self._driver.backspace()

    def escape(self) -> None:
        self._driver.escape()

    def cursor_left(self) -> None:
        self._driver.cursor_left()

    def cursor_right(self) -> None:
        self._driver.cursor_right()

    def cursor_up(self) -> None:
        self._driver.cursor_up()

    def cursor_down(self) -> None:
        self._driver.cursor_down()

    def control_code(self, c: str) -> None:
        self._driver.control_code(c)

    def signal_interrupt(self) -> None:
        self.control_code("c")

    def send_raw(self, s: object) -> None:
        """Send data to the shell without echoing it into the buffer."""
        self._driver.send_raw(s)

    def apply(self, action: Action) -> None:
        action.apply(self)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def update(self) -> list[Event]:
        """Apply pending output to the buffer and return the raw events."""
        if self._driver.is_session_finished():
            return []

        events = self._driver.update()
        for event in events:
            self._handle_event(event)
        return events

    def update_blocking(self) -> list[Event]:
        """Like ``Driver.update_blocking()``, applying events to the buffer."""
        events = self._driver.update_blocking()
        for event in events:
            self._handle_event(event)
        return events

    def _handle_event(self, event: Event) -> None:
        if isinstance(event, PutCharacter):
            self._scroll_buffer.set_cursor_xy(event.x, event.y)
            self._scroll_buffer.put_character_styled(event.character, event.style)
        elif isinstance(event, ClearScreen):
            self._scroll_buffer.clear_visible()

    def is_session_finished(self) -> bool:
        return self._driver.is_session_finished()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def visible_text(self, scrollback_line_count: int = 0) -> str:
        return self._scroll_buffer.visible_text(scrollback_line_count)

    def visible_slices(self, scrollback_line_count: int = 0) -> list[TextSlice]:
        return self._scroll_buffer.visible_slices(scrollback_line_count)

    def visible_cells(self, scrollback_line_count: int = 0) -> list[list[Cell]]:
        return self._scroll_buffer.visible_cells(scrollback_line_count)

    def entire_text(self) -> str:
        return self._scroll_buffer.entire_text()

    def cursor_index(self) -> int:
        return self._scroll_buffer.cursor_index()

    def cursor_xy(self) -> tuple[int, int]:
        return self._scroll_buffer.cursor_xy()

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._driver.close()

    def __enter__(self) -> Terminal:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
