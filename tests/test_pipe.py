"""Tests for readterm.pty.pipe.PipeDriver (spawns real processes)."""

from __future__ import annotations

import pytest

from readterm.color import Color
from readterm.config import Settings
from readterm.errors import SessionFinished, SpawnError, UnsupportedOperation
from readterm.event import PutCharacter
from readterm.pty.driver import DriverStatus
from readterm.pty.pipe import PipeDriver

from conftest import posix_only, pump_until_finished

pytestmark = posix_only


def events_for_plain_text(s: str) -> list[PutCharacter]:
    """Events a fresh pipe session emits for ``s`` written on one line."""
    return [
        PutCharacter(x=x, y=0, character=character, color=Color.WHITE)
        for x, character in enumerate(s)
    ]


@pytest.fixture
def driver():
    with PipeDriver(Settings(shell="sh")) as d:
        yield d


class TestPipeDriverSession:
    def test_can_create_driver(self, driver: PipeDriver) -> None:
        assert driver.pid is not None
        assert driver.status == DriverStatus.RUNNING
        assert not driver.is_session_finished()

    def test_can_echo_text(self, driver: PipeDriver) -> None:
        driver.write_text("echo 1\n")
        driver.write_text("exit 0\n")

        events = driver.update_blocking()
        assert events == events_for_plain_text("1\n")

        assert pump_until_finished(driver) == []
        assert driver.is_session_finished()
        assert driver.exit_code == 0
        assert driver.update() == []

    def test_stderr_is_merged(self, driver: PipeDriver) -> None:
        driver.write_text("echo oops >&2; exit 3\n")
        events = pump_until_finished(driver)
        assert "".join(e.character for e in events) == "oops\n"
        assert driver.exit_code == 3

    def test_write_after_exit_raises(self, driver: PipeDriver) -> None:
        driver.write_text("exit 0\n")
        pump_until_finished(driver)
        with pytest.raises(SessionFinished):
            driver.write_text("echo late\n")

    def test_close_kills_running_shell(self) -> None:
        driver = PipeDriver(Settings(shell="sh"))
        driver.close()
        assert driver.status == DriverStatus.KILLED
        assert driver.is_session_finished()
        driver.close()  # idempotent

    def test_spawn_failure(self) -> None:
        with pytest.raises(SpawnError) as excinfo:
            PipeDriver(Settings(shell="/nonexistent/readterm-shell"))
        assert isinstance(excinfo.value, OSError)


class TestPipeDriverUnsupported:
    @pytest.mark.parametrize(
        "operation",
        ["backspace", "escape", "cursor_left", "cursor_right", "cursor_up", "cursor_down", "signal_interrupt"],
    )
    def test_terminal_keys_are_unsupported(self, driver: PipeDriver, operation: str) -> None:
        with pytest.raises(UnsupportedOperation):
            getattr(driver, operation)()

    def test_control_code_is_unsupported(self, driver: PipeDriver) -> None:
        with pytest.raises(UnsupportedOperation) as excinfo:
            driver.control_code("c")
        assert isinstance(excinfo.value, NotImplementedError)
        assert excinfo.value.driver == "pipe driver"


class TestPipeDriverCoordinates:
    def test_wraps_and_sticks_to_last_row(self) -> None:
        with PipeDriver(Settings(shell="sh", column_count=3, line_count=2)) as d:
            events = d._decode(b"abcd\nef\n\rg")
        assert [(e.character, e.x, e.y) for e in events] == [
            ("a", 0, 0),
            ("b", 1, 0),
            ("c", 2, 0),
            ("d", 0, 1),
            ("\n", 1, 1),
            ("e", 0, 1),
            ("f", 1, 1),
            ("\n", 2, 1),
            ("\r", 0, 1),
            ("g", 0, 1),
        ]

    def test_split_utf8(self, driver: PipeDriver) -> None:
        encoded = "é".encode("utf-8")
        assert driver._decode(encoded[:1]) == []
        assert [e.character for e in driver._decode(encoded[1:])] == ["é"]
