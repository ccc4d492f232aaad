"""Shared test helpers."""

from __future__ import annotations

import os
import time

import pytest

from readterm.config import Settings
from readterm.event import Event
from readterm.pty.driver import Driver
from readterm.terminal import Terminal

posix_only = pytest.mark.skipif(os.name != "posix", reason="needs a POSIX shell")


class ScriptedDriver(Driver):
    """A driver with no process: ``update()`` replays queued batches."""

    name = "scripted"

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.batches: list[list[Event]] = []
        self.sent: list[str] = []
        self.finished = False
        self.closed = False

    def write_text(self, s: str) -> None:
        self.sent.append(s)

    def backspace(self) -> None:
        self.sent.append("<backspace>")

    def escape(self) -> None:
        self.sent.append("<escape>")

    def cursor_left(self) -> None:
        self.sent.append("<left>")

    def cursor_right(self) -> None:
        self.sent.append("<right>")

    def cursor_up(self) -> None:
        self.sent.append("<up>")

    def cursor_down(self) -> None:
        self.sent.append("<down>")

    def control_code(self, c: str) -> None:
        self.sent.append(f"<ctrl-{c}>")

    def update(self) -> list[Event]:
        if self.finished or not self.batches:
            return []
        return self.batches.pop(0)

    def is_session_finished(self) -> bool:
        return self.finished

    def close(self) -> None:
        self.closed = True


def pump_until_finished(driver: Driver | Terminal, timeout: float = 10.0) -> list[Event]:
    """Collect events until the session ends; fails the test on timeout."""
    events: list[Event] = []
    deadline = time.monotonic() + timeout
    while not driver.is_session_finished():
        if time.monotonic() > deadline:
            pytest.fail(f"session did not finish within {timeout}s")
        new_events = driver.update()
        if new_events:
            events.extend(new_events)
        else:
            time.sleep(0.01)
    return events
