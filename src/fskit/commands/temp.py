"""Random name and temp path commands."""

import asyncio

import typer

from ..constants import TOKEN_LENGTH
from ..core import create_temp_dir, random_token, temp_file
from ..errors import EntropyUnavailable
from ..output import get_output_context


def token(
    length: int = typer.Option(
        TOKEN_LENGTH, "--length", "-n", min=1, help="Number of hex characters"
    ),
) -> None:
    """Print a random hex token."""
    ctx = get_output_context()
    try:
        value = random_token(length)
    except EntropyUnavailable as e:
        ctx.error(str(e))
        raise typer.Exit(1) from None
    ctx.result({"token": value}, value)


def temp_file_cmd(
    name: str | None = typer.Argument(None, help="File name (random if omitted)"),
) -> None:
    """Create a temporary file and print its path."""
    ctx = get_output_context()
    try:
        path = asyncio.run(temp_file(name, ctx.config))
    except (EntropyUnavailable, OSError) as e:
        ctx.error(f"Could not create temp file: {e}")
        raise typer.Exit(1) from None
    ctx.result({"path": str(path)}, str(path))


def temp_dir_cmd() -> None:
    """Create a temporary directory and print its path."""
    ctx = get_output_context()
    try:
        path = asyncio.run(create_temp_dir(ctx.config))
    except (EntropyUnavailable, OSError) as e:
        ctx.error(f"Could not create temp directory: {e}")
        raise typer.Exit(1) from None
    ctx.result({"path": str(path)}, str(path))
