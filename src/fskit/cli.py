"""fskit CLI: advisory locks and temp paths for shell scripts."""

import tomllib
from pathlib import Path

import typer
from pydantic import ValidationError

from fskit import __version__

from .commands import init, lock, run, status, temp_dir_cmd, temp_file_cmd, token, unlock
from .config import load_config
from .logging import configure_logging
from .output import OutputContext, set_output_context


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"fskit {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="fskit",
    help="Cross-process file locks and temp paths",
    no_args_is_help=True,
)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v, -vv)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress non-error output",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Debug logging with timestamps",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in JSON format for automation",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (default: $FSKIT_CONFIG or ./fskit.toml)",
    ),
) -> None:
    """fskit - cross-process file locks and temp paths."""
    console = configure_logging(
        verbosity=verbose,
        quiet=quiet,
        no_color=no_color,
        debug=debug,
    )
    ctx = OutputContext(console=console, json_mode=json_output)
    set_output_context(ctx)

    try:
        ctx.config = load_config(config)
    except (tomllib.TOMLDecodeError, ValidationError) as e:
        ctx.error(f"Invalid config: {e}")
        raise typer.Exit(1) from None


app.command()(init)
app.command()(token)
app.command()(lock)
app.command()(unlock)
app.command()(status)
app.command()(run)
app.command("temp-file")(temp_file_cmd)
app.command("temp-dir")(temp_dir_cmd)
