"""PTY session — a shell attached to a pseudo-terminal."""

from __future__ import annotations

import fcntl
import logging
import os
import pty
import shlex
import signal
import struct
import subprocess
import termios
from typing import TYPE_CHECKING

from readterm.errors import SpawnError, WriteError
from readterm.event import Event
from readterm.pty.driver import (
    BACKSPACE,
    CURSOR_DOWN,
    CURSOR_LEFT,
    CURSOR_RIGHT,
    CURSOR_UP,
    ESCAPE,
    DriverStatus,
    ThreadedDriver,
    control_byte,
)
from readterm.pty.interpreter import Interpreter

if TYPE_CHECKING:
    from readterm.config import Settings

logger = logging.getLogger(__name__)


def _set_window_size(fd: int, lines: int, columns: int) -> None:
    fcntl.ioctl(fd, termios.TIOCSWINSZ, struct.pack("HHHH", lines, columns, 0, 0))


def _acquire_controlling_tty() -> None:
    # Runs in the child after setsid(): make the pty slave (fd 0) the
    # controlling terminal so Ctrl+C reaches the foreground job.
    fcntl.ioctl(0, termios.TIOCSCTTY, 0)


class PtyDriver(ThreadedDriver):
    """Drives a shell through a pseudo-terminal.

    - The shell runs in its own session and process group
      (``start_new_session``) with the pty slave as controlling terminal,
      so the whole tree can be killed at once.
    - Output is decoded by an ``Interpreter`` sized to the viewport, which
      reports real viewport coordinates and SGR attributes.
    - Input operations write straight to the pty master; write failures
      raise ``WriteError``.

    Uses subprocess.Popen (not os.fork) so no Python code runs in the
    forked child besides the controlling-tty ioctl.
    """

    name = "pty"

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self._master_fd = -1
        self._pgid = 0
        self._interpreter = Interpreter(settings.column_count, settings.line_count)
        self._spawn()
        self._start_threads(self._read_chunk)

        logger.info(
            "PTY session started: pid=%d pgid=%d cmd=%s",
            self.pid,
            self._pgid,
            self.settings.shell,
        )

    def _spawn(self) -> None:
        """Spawn the shell on a new pty with its own process group."""
        master_fd, slave_fd = pty.openpty()
        self._master_fd = master_fd
        _set_window_size(slave_fd, self.settings.line_count, self.settings.column_count)

        env = {
            **os.environ,
            "TERM": "xterm",
            "COLUMNS": str(self.settings.column_count),
            "LINES": str(self.settings.line_count),
        }

        try:
            self._proc = subprocess.Popen(
                shlex.split(self.settings.shell),
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                start_new_session=True,  # Creates new process group
                preexec_fn=_acquire_controlling_tty,
                env=env,
            )
        except (OSError, subprocess.SubprocessError) as e:
            os.close(master_fd)
            self._master_fd = -1
            self._closed = True
            raise SpawnError(f"failed to spawn shell {self.settings.shell!r}: {e}") from e
        finally:
            # Parent always closes slave fd
            os.close(slave_fd)

        try:
            self._pgid = os.getpgid(self._proc.pid)
        except ProcessLookupError:
            # Already gone; the session leader's pid is its group id.
            self._pgid = self._proc.pid

    def _read_chunk(self) -> bytes:
        return os.read(self._master_fd, 4096)

    def _decode(self, data: bytes) -> list[Event]:
        return self._interpreter.feed_events(data)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def _write(self, data: bytes) -> None:
        self._ensure_running()
        view = memoryview(data)
        while view:
            try:
                written = os.write(self._master_fd, view)
            except OSError as e:
                raise WriteError(e.errno, f"failed to write to pty: {e.strerror}") from e
            view = view[written:]

    def write_text(self, s: str) -> None:
        self._write(s.encode("utf-8"))

    def backspace(self) -> None:
        self.write_text(BACKSPACE)

    def escape(self) -> None:
        self.write_text(ESCAPE)

    def cursor_left(self) -> None:
        self.write_text(CURSOR_LEFT)

    def cursor_right(self) -> None:
        self.write_text(CURSOR_RIGHT)

    def cursor_up(self) -> None:
        self.write_text(CURSOR_UP)

    def cursor_down(self) -> None:
        self.write_text(CURSOR_DOWN)

    def control_code(self, c: str) -> None:
        self._write(control_byte(c))

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Kill the entire process tree if it is still running.

        Failures are logged, never raised: this runs during cleanup where
        the caller can no longer act on them.
        """
        if self._closed:
            return
        self._closed = True

        if self._proc is not None and not self.is_session_finished():
            if self._proc.poll() is None:
                self._kill()
            else:
                self._status = DriverStatus.EXITED
                self._exit_code = self._proc.returncode

        if self._reader is not None:
            self._reader.join(timeout=self.READER_JOIN_TIMEOUT)
        # A background job that kept the slave open leaves the reader
        # blocked; it then closes the master itself when the read returns.
        self._release_output_if_idle()

    def _release_output(self) -> None:
        with self._release_lock:
            fd, self._master_fd = self._master_fd, -1
        if fd < 0:
            return
        try:
            os.close(fd)
        except OSError:
            pass

    def _kill(self) -> None:
        assert self._proc is not None
        self._status = DriverStatus.KILLING
        try:
            os.killpg(self._pgid, signal.SIGKILL)
            logger.info("Killed PTY session (pgid=%d)", self._pgid)
        except ProcessLookupError:
            logger.debug("Process group already gone: %d", self._pgid)
        except OSError as e:
            logger.warning("Failed to kill terminal process with pid %d: %s", self._proc.pid, e)

        # Wait for process to be reaped (avoids zombies)
        try:
            self._exit_code = self._proc.wait(timeout=2)
        except subprocess.TimeoutExpired:
            logger.warning("Terminal process %d did not exit after SIGKILL", self._proc.pid)

        self._status = DriverStatus.KILLED
