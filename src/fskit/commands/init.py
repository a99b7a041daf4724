"""Init command: write a config template."""

from pathlib import Path

import typer

from ..config import config_path, write_config_template
from ..output import get_output_context


def init(
    path: Path | None = typer.Option(
        None, "--path", "-p", help="Where to write the config (default: ./fskit.toml)"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config"),
) -> None:
    """Write a default fskit.toml."""
    ctx = get_output_context()
    target = config_path(path)

    if target.exists() and not force:
        ctx.console.print(f"[yellow]Config already exists:[/yellow] {target}")
        return

    write_config_template(target)
    ctx.success(f"Created config template: {target}", {"path": str(target)})
