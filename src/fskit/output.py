"""Output formatting for the fskit CLI."""

import json
from dataclasses import dataclass, field
from typing import Any

from rich.console import Console

from .config import FskitConfig


@dataclass
class OutputContext:
    """Per-invocation CLI state: console, output mode and loaded config."""

    console: Console
    json_mode: bool = False
    config: FskitConfig = field(default_factory=FskitConfig)

    def print(self, message: str, style: str | None = None) -> None:
        """Print message unless in JSON mode."""
        if not self.json_mode:
            self.console.print(message, style=style)

    def print_json(self, data: dict[str, Any]) -> None:
        """Print JSON data to stdout if in JSON mode."""
        if self.json_mode:
            print(json.dumps(data, indent=2, default=str))

    def result(self, data: dict[str, Any], message: str = "") -> None:
        """Print a result as JSON or as a plain line.

        Plain results go to stdout undecorated so shell scripts can capture
        them (e.g. ``path=$(fskit temp-file)``).
        """
        if self.json_mode:
            self.print_json(data)
        elif message:
            print(message)

    def error(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Print error in appropriate format."""
        if self.json_mode:
            self.print_json({"error": message, **(data or {})})
        else:
            self.console.print(f"[red]Error: {message}[/red]")

    def success(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Print success message in appropriate format."""
        if self.json_mode:
            self.print_json({"success": message, **(data or {})})
        else:
            self.console.print(f"[green]{message}[/green]")


_ctx: OutputContext | None = None


def get_output_context() -> OutputContext:
    """Get the current output context.

    Returns a default OutputContext if not yet initialized by the CLI.
    """
    if _ctx is None:
        return OutputContext(Console(stderr=True))
    return _ctx


def set_output_context(ctx: OutputContext) -> None:
    """Set the global output context. Called by the CLI main callback."""
    global _ctx
    _ctx = ctx
