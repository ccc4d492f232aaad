"""CLI entry point for readterm."""

from __future__ import annotations

import logging
import time

import typer
from rich.console import Console

from readterm.config import Settings
from readterm.errors import TerminalError
from readterm.event import PutCharacter
from readterm.render import to_rich_text
from readterm.terminal import Terminal

app = typer.Typer(
    name="readterm",
    help="Drive a shell through a pseudo-terminal and inspect its screen.",
    no_args_is_help=True,
)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_settings(
    config_file: str | None,
    shell: str | None,
    columns: int | None = None,
    lines: int | None = None,
) -> Settings:
    settings = Settings.load(config_file)
    overrides = {
        key: value
        for key, value in (("shell", shell), ("column_count", columns), ("line_count", lines))
        if value is not None
    }
    return settings.model_copy(update=overrides) if overrides else settings


def _pump_until_finished(terminal: Terminal, timeout: float) -> bool:
    """Poll the terminal until the session ends. Returns False on timeout."""
    deadline = time.monotonic() + timeout
    while not terminal.is_session_finished():
        if time.monotonic() > deadline:
            return False
        if not terminal.update():
            time.sleep(0.01)
    return True


@app.command("dump-events")
def dump_events(
    text: list[str] = typer.Argument(help="Text to send; joined with spaces, newline appended."),
    shell: str | None = typer.Option(None, "--shell", "-s", help="Shell to spawn."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    config_file: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """Send text to a fresh session and print the first burst of events."""
    setup_logging(verbose)
    settings = _load_settings(config_file, shell)

    try:
        with Terminal(settings) as terminal:
            terminal.send_raw(" ".join(text) + "\n")
            for event in terminal.update_blocking():
                if isinstance(event, PutCharacter):
                    typer.echo(
                        f"PutCharacter x={event.x} y={event.y} {event.character!r} "
                        f"color={event.color.to_hex()} bold={event.bold}"
                    )
                else:
                    typer.echo(type(event).__name__)
    except TerminalError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def run(
    command: str = typer.Argument(help="Command line to run inside the shell."),
    shell: str | None = typer.Option(None, "--shell", "-s", help="Shell to spawn."),
    columns: int | None = typer.Option(None, "--columns", help="Viewport columns."),
    lines: int | None = typer.Option(None, "--lines", help="Viewport rows."),
    timeout: float = typer.Option(10.0, "--timeout", "-t", help="Seconds to wait for exit."),
    plain: bool = typer.Option(False, "--plain", help="Print plain text without styling."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    config_file: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """Run a command in a session and print the final screen."""
    setup_logging(verbose)
    settings = _load_settings(config_file, shell, columns, lines)

    try:
        with Terminal(settings) as terminal:
            terminal.send_raw(f"{command}\nexit\n")
            if not _pump_until_finished(terminal, timeout):
                typer.echo(f"Warning: session still running after {timeout}s", err=True)

            if plain:
                typer.echo(terminal.visible_text())
            else:
                Console().print(to_rich_text(terminal.visible_slices()))
    except TerminalError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
