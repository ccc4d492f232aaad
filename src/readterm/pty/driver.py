"""Driver contract shared by every platform-specific session driver."""

from __future__ import annotations

import enum
import logging
import os
import queue
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from readterm.errors import SessionFinished
from readterm.event import Event

if TYPE_CHECKING:
    from readterm.config import Settings

logger = logging.getLogger(__name__)

# Cursor movement sequences sent on behalf of the caller (CUB, CUF, CUU, CUD).
CURSOR_LEFT = "\x1b[D"
CURSOR_RIGHT = "\x1b[C"
CURSOR_UP = "\x1b[A"
CURSOR_DOWN = "\x1b[B"

BACKSPACE = "\x08"
ESCAPE = "\x1b"


class DriverStatus(enum.StrEnum):
    """Lifecycle states for a session driver."""

    RUNNING = "running"
    KILLING = "killing"  # Kill requested, waiting for process to die
    KILLED = "killed"  # Killed by us (SIGKILL)
    EXITED = "exited"  # Process exited on its own


@dataclass(frozen=True)
class ProcessExited:
    """Queue marker pushed by the exit watcher once the child is gone."""

    exit_code: int | None


def control_byte(c: str) -> bytes:
    """Map a letter to its control byte: ``"c"`` -> ``b"\\x03"`` (ETX).

    Also accepts ``@ [ \\ ] ^ _`` and ``?`` (DEL), as a terminal would.
    """
    if len(c) != 1:
        raise ValueError(f"control code must be a single character, got {c!r}")
    if c == "?":
        return b"\x7f"
    code = ord(c.upper())
    if not 0x40 <= code <= 0x5F:
        raise ValueError(f"no control code for {c!r}")
    return bytes([code & 0x1F])


class Driver(ABC):
    """A terminal session driver.

    A driver owns a child shell process, feeds it input, and turns its
    output into ``Event`` objects. Output is produced by background threads
    and handed over through an ordered queue; ``update()`` drains it
    without blocking.

    Drivers are context managers: leaving the ``with`` block kills the
    child if it is still running.
    """

    name = "driver"

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    @abstractmethod
    def write_text(self, s: str) -> None:
        """Write text to the session's input."""

    @abstractmethod
    def backspace(self) -> None: ...

    @abstractmethod
    def escape(self) -> None: ...

    @abstractmethod
    def cursor_left(self) -> None: ...

    @abstractmethod
    def cursor_right(self) -> None: ...

    @abstractmethod
    def cursor_up(self) -> None: ...

    @abstractmethod
    def cursor_down(self) -> None: ...

    @abstractmethod
    def control_code(self, c: str) -> None:
        """Send ``Ctrl+c`` style control codes."""

    def signal_interrupt(self) -> None:
        """Interrupt the running program (Ctrl+C)."""
        self.control_code("c")

    def send_raw(self, s: object) -> None:
        """Send ``str(s)`` to the session, bypassing any key translation."""
        self.write_text(str(s))

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    @abstractmethod
    def update(self) -> list[Event]:
        """Drain pending output as events, without blocking."""

    @abstractmethod
    def is_session_finished(self) -> bool: ...

    def update_blocking(self) -> list[Event]:
        """Wait for a burst of output and return all of it.

        Spins on ``update()`` until the first events arrive, then keeps
        polling until a poll comes back empty. This busy-waits: it burns
        CPU while the session is idle and only gives up without output once
        the session has finished.
        """
        events: list[Event] = []

        while True:
            new_events = self.update()
            if new_events:
                events.extend(new_events)
                break
            if self.is_session_finished():
                return events
            _yield_now()

        while True:
            new_events = self.update()
            if not new_events:
                break
            events.extend(new_events)
            _yield_now()

        return events

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    @abstractmethod
    def close(self) -> None:
        """Kill the child if it is still running. Never raises."""

    def __enter__(self) -> Driver:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __del__(self) -> None:
        """Ensure cleanup on garbage collection."""
        try:
            self.close()
        except Exception:
            logger.debug("Error closing %s during garbage collection", self.name, exc_info=True)


def _yield_now() -> None:
    # sleep(0) releases the GIL so the reader threads can run.
    time.sleep(0)


def current_driver_class() -> type[Driver]:
    """The driver for this platform: a real pty on POSIX, pipes elsewhere."""
    if os.name == "posix":
        from readterm.pty.session import PtyDriver

        return PtyDriver

    from readterm.pty.pipe import PipeDriver

    return PipeDriver


class ThreadedDriver(Driver):
    """Base for drivers fed by a reader thread and an exit-watcher thread.

    Both threads push onto one unbounded FIFO queue: raw output chunks from
    the reader, then a single ``ProcessExited`` marker from the watcher.
    The watcher joins the reader first, so every chunk read before the
    child exited is queued ahead of the marker. The consumer drains the
    queue in ``update()`` and never blocks the producers.
    """

    # How long the watcher waits for the reader after the child exits.
    # A grandchild still holding the output open would otherwise block it.
    READER_JOIN_TIMEOUT = 1.0

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self._queue: queue.SimpleQueue[bytes | ProcessExited] = queue.SimpleQueue()
        self._status = DriverStatus.RUNNING
        self._exit_code: int | None = None
        self._proc: subprocess.Popen[bytes] | None = None
        self._reader: threading.Thread | None = None
        self._watcher: threading.Thread | None = None
        self._closed = False
        self._release_lock = threading.Lock()
        self._reader_done = False

    def _start_threads(self, read: Callable[[], bytes]) -> None:
        self._reader = threading.Thread(
            target=self._read_loop,
            args=(read,),
            name=f"readterm-{self.name}-reader",
            daemon=True,
        )
        self._watcher = threading.Thread(
            target=self._watch_exit,
            name=f"readterm-{self.name}-watcher",
            daemon=True,
        )
        self._reader.start()
        self._watcher.start()

    def _read_loop(self, read: Callable[[], bytes]) -> None:
        """Continuously read output until end of stream or close.

        Once ``close()`` has been requested the reader owns releasing the
        output stream, so the descriptor is never closed under a blocked
        read (a reused fd number would hand it another session's output).
        """
        try:
            while not self._closed:
                try:
                    data = read()
                except (OSError, ValueError) as e:
                    # EIO once the pty slave is closed; ValueError on a closed pipe.
                    logger.debug("%s reader ended: %s", self.name, e)
                    break
                if not data or self._closed:
                    break
                self._queue.put(data)
        finally:
            with self._release_lock:
                self._reader_done = True
                release = self._closed
            if release:
                self._release_output()

    def _release_output(self) -> None:
        """Close the output stream. Must be safe to call more than once."""

    def _release_output_if_idle(self) -> None:
        """Release the output stream unless the reader still holds it."""
        with self._release_lock:
            release = self._reader is None or self._reader_done
        if release:
            self._release_output()

    def _watch_exit(self) -> None:
        assert self._proc is not None
        exit_code = self._proc.wait()
        if self._reader is not None:
            self._reader.join(timeout=self.READER_JOIN_TIMEOUT)
        self._queue.put(ProcessExited(exit_code))

    @abstractmethod
    def _decode(self, data: bytes) -> list[Event]:
        """Turn a raw output chunk into events."""

    def update(self) -> list[Event]:
        events: list[Event] = []
        if self.is_session_finished():
            return events

        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break

            if isinstance(item, ProcessExited):
                self._exit_code = item.exit_code
                self._status = DriverStatus.EXITED
                logger.info(
                    "%s session exited: pid=%s code=%s", self.name, self.pid, item.exit_code
                )
                break

            events.extend(self._decode(item))

        return events

    def is_session_finished(self) -> bool:
        return self._status in (DriverStatus.EXITED, DriverStatus.KILLED)

    def _ensure_running(self) -> None:
        if self._closed or self.is_session_finished():
            raise SessionFinished(f"{self.name} session (pid={self.pid}) has finished")

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc is not None else None

    @property
    def exit_code(self) -> int | None:
        return self._exit_code

    @property
    def status(self) -> DriverStatus:
        return self._status
