"""Tests for readterm.pty.interpreter (Interpreter, primitives, translate)."""

from __future__ import annotations

from readterm.color import Color
from readterm.event import ClearScreen, PutCharacter
from readterm.pty.interpreter import (
    CharPrimitive,
    Interpreter,
    OtherPrimitive,
    Primitive,
    ScreenBufferPrimitive,
    packed_color,
    translate,
)


def chars(events: list) -> str:
    return "".join(e.character for e in events if isinstance(e, PutCharacter))


def positions(events: list) -> list[tuple[str, int, int]]:
    return [(e.character, e.x, e.y) for e in events if isinstance(e, PutCharacter)]


# ---------------------------------------------------------------------------
# packed_color
# ---------------------------------------------------------------------------


class TestPackedColor:
    def test_default_is_white(self) -> None:
        assert packed_color("default") == 0xFFFFFFFF

    def test_named(self) -> None:
        assert packed_color("red") == 0xFFCD0000
        assert packed_color("brightblue") == 0xFF5C5CFF

    def test_hex(self) -> None:
        assert packed_color("ff8700") == 0xFFFF8700

    def test_unknown_falls_back_to_default(self) -> None:
        assert packed_color("not-a-colour") == 0xFFFFFFFF


# ---------------------------------------------------------------------------
# translate
# ---------------------------------------------------------------------------


class TestTranslate:
    def test_char(self) -> None:
        primitive = CharPrimitive(
            x=1,
            y=2,
            character="q",
            color=0xFF00FF00,
            bold=True,
            italic=False,
            underlined=True,
            strikethrough=False,
        )
        assert translate(primitive) == [
            PutCharacter(
                x=1,
                y=2,
                character="q",
                bold=True,
                italic=False,
                underlined=True,
                strikethrough=False,
                color=Color.GREEN,
            )
        ]

    def test_clear_screen_only_when_flag_set(self) -> None:
        assert translate(ScreenBufferPrimitive(clear=True)) == [ClearScreen()]
        assert translate(ScreenBufferPrimitive(clear=False)) == []

    def test_other_is_dropped(self) -> None:
        assert translate(OtherPrimitive(name="report_device_status")) == []


# ---------------------------------------------------------------------------
# Interpreter
# ---------------------------------------------------------------------------


class TestInterpreterText:
    def test_plain_text(self) -> None:
        events = Interpreter(10, 3).feed_events(b"hi")
        assert events == [
            PutCharacter(x=0, y=0, character="h", color=Color.WHITE),
            PutCharacter(x=1, y=0, character="i", color=Color.WHITE),
        ]

    def test_line_feed_is_reported_at_cursor(self) -> None:
        events = Interpreter(10, 3).feed_events(b"a\r\nb")
        assert positions(events) == [("a", 0, 0), ("\n", 0, 0), ("b", 0, 1)]

    def test_carriage_return_alone_is_not_reported(self) -> None:
        events = Interpreter(10, 3).feed_events(b"ab\rc")
        assert positions(events) == [("a", 0, 0), ("b", 1, 0), ("c", 0, 0)]

    def test_auto_wrap(self) -> None:
        events = Interpreter(3, 2).feed_events(b"abcd")
        assert positions(events) == [
            ("a", 0, 0),
            ("b", 1, 0),
            ("c", 2, 0),
            ("\n", 0, 0),
            ("d", 0, 1),
        ]

    def test_scrolling_keeps_last_row(self) -> None:
        events = Interpreter(3, 2).feed_events(b"a\r\nb\r\nc")
        assert positions(events)[-1] == ("c", 0, 1)

    def test_cursor_position_sequence(self) -> None:
        events = Interpreter(10, 3).feed_events(b"\x1b[2;3Hx")
        assert positions(events) == [("x", 2, 1)]

    def test_utf8(self) -> None:
        events = Interpreter(10, 3).feed_events("héllo".encode("utf-8"))
        assert chars(events) == "héllo"


class TestInterpreterStyles:
    def test_foreground_color(self) -> None:
        events = Interpreter(10, 3).feed_events(b"\x1b[31mr")
        assert events[0].color == Color.from_packed_argb8(0xFFCD0000)

    def test_reset_attributes(self) -> None:
        events = Interpreter(10, 3).feed_events(b"\x1b[1;31ma\x1b[0mb")
        assert events[0].bold is True
        assert events[1] == PutCharacter(x=1, y=0, character="b", color=Color.WHITE)

    def test_boolean_attributes(self) -> None:
        events = Interpreter(10, 3).feed_events(b"\x1b[1ma\x1b[0;3mb\x1b[0;4mc\x1b[0;9md")
        assert [e.bold for e in events] == [True, False, False, False]
        assert [e.italic for e in events] == [False, True, False, False]
        assert [e.underlined for e in events] == [False, False, True, False]
        assert [e.strikethrough for e in events] == [False, False, False, True]

    def test_true_color(self) -> None:
        events = Interpreter(10, 3).feed_events(b"\x1b[38;2;255;135;0mx")
        assert events[0].color == Color.from_rgb8(255, 135, 0)


class TestInterpreterScreen:
    def test_clear_screen(self) -> None:
        events = Interpreter(10, 3).feed_events(b"a\x1b[2J")
        assert events[-1] == ClearScreen()

    def test_partial_erase_is_dropped(self) -> None:
        events = Interpreter(10, 3).feed_events(b"\x1b[J")
        assert events == []

    def test_erase_in_line_is_dropped(self) -> None:
        events = Interpreter(10, 3).feed_events(b"abc\r\x1b[K")
        assert chars(events) == "abc"
        assert not any(isinstance(e, ClearScreen) for e in events)

    def test_full_reset_clears(self) -> None:
        events = Interpreter(10, 3).feed_events(b"\x1bc")
        assert events == [ClearScreen()]

    def test_device_status_report_is_dropped(self) -> None:
        primitives: list[Primitive] = []
        interpreter = Interpreter(10, 3)
        interpreter.feed(b"\x1b[6n", primitives.append)
        assert primitives == [OtherPrimitive(name="report_device_status")]
        assert interpreter.feed_events(b"\x1b[6n") == []


class TestInterpreterIncremental:
    def test_split_escape_sequence(self) -> None:
        interpreter = Interpreter(10, 3)
        assert interpreter.feed_events(b"\x1b[3") == []
        events = interpreter.feed_events(b"1mx")
        assert chars(events) == "x"
        assert events[0].color == Color.from_packed_argb8(0xFFCD0000)

    def test_split_utf8(self) -> None:
        interpreter = Interpreter(10, 3)
        encoded = "é".encode("utf-8")
        assert interpreter.feed_events(encoded[:1]) == []
        assert chars(interpreter.feed_events(encoded[1:])) == "é"

    def test_callback_called_in_order(self) -> None:
        primitives: list[Primitive] = []
        Interpreter(10, 3).feed(b"ab", primitives.append)
        assert [p.character for p in primitives if isinstance(p, CharPrimitive)] == ["a", "b"]

    def test_reset_changes_geometry(self) -> None:
        interpreter = Interpreter(10, 3)
        interpreter.feed_events(b"abc")
        interpreter.reset(2, 2)
        assert interpreter.cursor == (0, 0)
        events = interpreter.feed_events(b"xyz")
        assert positions(events)[-1] == ("z", 0, 1)
