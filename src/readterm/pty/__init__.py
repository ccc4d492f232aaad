"""Terminal session drivers and the virtual screen.

A driver spawns a shell, reads its output on background threads and turns
it into events; the scroll buffer is the virtual screen those events are
applied to.
"""

from readterm.pty.buffer import BufferSettings, Cell, Location, ScrollBuffer, TextSlice
from readterm.pty.driver import Driver, DriverStatus, ThreadedDriver, current_driver_class
from readterm.pty.interpreter import Interpreter
from readterm.pty.pipe import PipeDriver

__all__ = [
    "BufferSettings",
    "Cell",
    "Location",
    "ScrollBuffer",
    "TextSlice",
    "Driver",
    "DriverStatus",
    "ThreadedDriver",
    "current_driver_class",
    "Interpreter",
    "PipeDriver",
]
