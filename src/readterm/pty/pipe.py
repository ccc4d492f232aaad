"""Pipe driver — the fallback for platforms without pseudo-terminals.

*NOTE:* This driver does not support many features. The shell talks over
plain stdin/stdout pipes (stderr merged into stdout), so there are no
escape sequences, colors or styling, and keys that only make sense on a
terminal (backspace, escape, cursor movement, control codes) raise
``UnsupportedOperation``.
"""

from __future__ import annotations

import codecs
import logging
import os
import shlex
import subprocess
from typing import TYPE_CHECKING

from readterm.color import Color
from readterm.errors import SpawnError, UnsupportedOperation, WriteError
from readterm.event import Event, PutCharacter
from readterm.pty.driver import DriverStatus, ThreadedDriver

if TYPE_CHECKING:
    from readterm.config import Settings

logger = logging.getLogger(__name__)

TEXT_COLOR = Color.WHITE


class PipeDriver(ThreadedDriver):
    """An operating-system independent driver over standard streams.

    Every decoded output character becomes one ``PutCharacter`` event,
    control characters included. Coordinates come from a minimal cursor
    model (advance, wrap at the column count, ``\\n`` moves down and
    sticks to the last row, ``\\r`` returns) so consumers see the same
    viewport-relative positions the pty driver reports.
    """

    name = "pipe"

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._x = 0
        self._y = 0

        command = shlex.split(settings.shell, posix=os.name == "posix")
        try:
            self._proc = subprocess.Popen(
                command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            self._closed = True
            raise SpawnError(f"failed to spawn shell {settings.shell!r}: {e}") from e

        assert self._proc.stdout is not None
        stdout = self._proc.stdout
        self._start_threads(lambda: stdout.read1(4096))
        logger.info("Pipe session started: pid=%d cmd=%s", self._proc.pid, settings.shell)

    def _decode(self, data: bytes) -> list[Event]:
        events: list[Event] = []
        for character in self._decoder.decode(data):
            if character not in "\n\r" and self._x >= self.settings.column_count:
                self._x = 0
                self._y = min(self._y + 1, self.settings.line_count - 1)

            events.append(
                PutCharacter(x=self._x, y=self._y, character=character, color=TEXT_COLOR)
            )

            if character == "\n":
                self._x = 0
                self._y = min(self._y + 1, self.settings.line_count - 1)
            elif character == "\r":
                self._x = 0
            elif character == "\t":
                self._x += self.settings.tab_width
            else:
                self._x += 1
        return events

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def write_text(self, s: str) -> None:
        self._ensure_running()
        assert self._proc is not None and self._proc.stdin is not None
        try:
            self._proc.stdin.write(s.encode("utf-8"))
            self._proc.stdin.flush()
        except OSError as e:
            raise WriteError(e.errno, f"failed to write to shell stdin: {e.strerror}") from e

    def _unsupported(self, operation: str) -> UnsupportedOperation:
        return UnsupportedOperation(f"{self.name} driver", operation)

    def backspace(self) -> None:
        raise self._unsupported("backspace")

    def escape(self) -> None:
        raise self._unsupported("escape key")

    def cursor_left(self) -> None:
        raise self._unsupported("cursor left")

    def cursor_right(self) -> None:
        raise self._unsupported("cursor right")

    def cursor_up(self) -> None:
        raise self._unsupported("cursor up")

    def cursor_down(self) -> None:
        raise self._unsupported("cursor down")

    def control_code(self, c: str) -> None:
        raise self._unsupported(f"control code {c!r}")

    def signal_interrupt(self) -> None:
        raise self._unsupported("signal interrupt")

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Kill the shell if it is still running. Failures are logged."""
        if self._closed:
            return
        self._closed = True
        if self._proc is None:
            return

        if not self.is_session_finished() and self._proc.poll() is None:
            self._status = DriverStatus.KILLING
            try:
                self._proc.kill()
                self._exit_code = self._proc.wait(timeout=2)
                logger.info("Killed pipe session (pid=%d)", self._proc.pid)
            except (OSError, subprocess.TimeoutExpired) as e:
                logger.warning(
                    "Failed to kill terminal process with pid %d: %s", self._proc.pid, e
                )
            self._status = DriverStatus.KILLED
        elif not self.is_session_finished():
            self._status = DriverStatus.EXITED
            self._exit_code = self._proc.returncode

        if self._reader is not None:
            self._reader.join(timeout=self.READER_JOIN_TIMEOUT)
        self._release_output_if_idle()

        if self._proc.stdin is not None:
            try:
                self._proc.stdin.close()
            except OSError:
                pass

    def _release_output(self) -> None:
        if self._proc is not None and self._proc.stdout is not None:
            self._proc.stdout.close()
