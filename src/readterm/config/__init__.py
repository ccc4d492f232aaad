"""Configuration — Pydantic model for terminal settings."""

from __future__ import annotations

import json
import os
from typing import Any

from pydantic import BaseModel, Field

from readterm.pty.buffer import BufferSettings


def _default_shell() -> str:
    return os.environ.get("SHELL") or "sh"


class Settings(BaseModel):
    """Terminal settings.

    ``line_count`` and ``column_count`` describe the viewport; the scroll
    buffer keeps ``lines_to_remember`` additional lines of history on top
    of it.
    """

    shell: str = Field(
        default_factory=_default_shell,
        description="The shell to execute. Defaults to $SHELL, then 'sh'.",
    )
    lines_to_remember: int = Field(
        default=10_000, ge=0, description="How many lines to keep in the scrollback"
    )
    line_count: int = Field(
        default=100, ge=1, description="The number of lines visible at once"
    )
    column_count: int = Field(
        default=85, ge=1, description="The number of columns visible at once"
    )
    tab_width: int = Field(
        default=2, ge=0, description="The number of spaces used to render a tab"
    )

    def buffer_settings(self) -> BufferSettings:
        return BufferSettings(
            max_columns=self.column_count,
            max_lines=self.line_count,
            tab_width=self.tab_width,
            lines_to_remember=self.lines_to_remember,
        )

    @classmethod
    def load(cls, config_path: str | None = None) -> Settings:
        """Load settings from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            READTERM_SHELL               - Shell command to spawn
            READTERM_LINES_TO_REMEMBER   - Scrollback size in lines
            READTERM_LINE_COUNT          - Viewport rows
            READTERM_COLUMN_COUNT        - Viewport columns
            READTERM_TAB_WIDTH           - Spaces per tab
        """
        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            with open(config_path) as f:
                config_data = json.load(f)

        env_shell = os.environ.get("READTERM_SHELL")
        if env_shell:
            config_data["shell"] = env_shell

        for key in ("lines_to_remember", "line_count", "column_count", "tab_width"):
            value = os.environ.get(f"READTERM_{key.upper()}")
            if value:
                config_data[key] = int(value)

        return cls.model_validate(config_data)


__all__ = ["Settings"]
