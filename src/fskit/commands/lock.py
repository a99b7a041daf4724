"""Lock commands: acquire, release, inspect, and run under a lock."""

import asyncio
import logging
from pathlib import Path

import typer

from ..core import LockManager
from ..errors import FsIOError, LockCompromised, LockContention, PathNotFound
from ..models import LockOptions
from ..output import OutputContext, get_output_context

logger = logging.getLogger(__name__)

EXIT_ERROR = 1
EXIT_CONTENTION = 3
EXIT_PATH_NOT_FOUND = 4
EXIT_COMMAND_NOT_FOUND = 127


def _build_options(
    ctx: OutputContext,
    stale: float | None = None,
    retries: int | None = None,
    contend: bool = False,
    refresh: bool = True,
) -> LockOptions:
    """Merge CLI flags over the configured lock defaults."""
    options = ctx.config.lock.to_options()
    updates: dict[str, object] = {"refresh": refresh}
    if stale is not None:
        updates["stale"] = stale
    if retries is not None:
        updates["retries"] = options.retries.model_copy(update={"retries": retries})
    if contend:
        updates["contend"] = True
    return options.model_copy(update=updates)


def _fail(ctx: OutputContext, error: Exception, path: Path) -> typer.Exit:
    """Report a lock error and pick the exit code for it."""
    ctx.error(str(error), {"path": str(path)})
    if isinstance(error, LockContention):
        return typer.Exit(EXIT_CONTENTION)
    if isinstance(error, PathNotFound):
        return typer.Exit(EXIT_PATH_NOT_FOUND)
    return typer.Exit(EXIT_ERROR)


def lock(
    path: Path = typer.Argument(..., help="File to lock (may not exist yet)"),
    stale: float | None = typer.Option(
        None, "--stale", "-s", help="Seconds after which the lock counts as abandoned"
    ),
    retries: int | None = typer.Option(None, "--retries", "-r", help="Retries when contended"),
    contend: bool = typer.Option(
        False, "--contend", help="Fail instead of skipping when already locked"
    ),
) -> None:
    """Acquire a lock that outlives this command.

    The marker is not refreshed after the command exits, so it expires after
    --stale seconds unless released with 'fskit unlock'.
    """
    ctx = get_output_context()
    options = _build_options(ctx, stale, retries, contend, refresh=False)
    manager = LockManager(options)

    try:
        asyncio.run(manager.lock(path))
    except (LockContention, PathNotFound, FsIOError) as e:
        raise _fail(ctx, e, path) from None

    ctx.success(f"Locked {path}", {"path": str(path), "stale": options.stale})


def unlock(
    path: Path = typer.Argument(..., help="File to unlock"),
) -> None:
    """Release a lock. Unlocked paths are left alone."""
    ctx = get_output_context()
    manager = LockManager(_build_options(ctx))

    try:
        asyncio.run(manager.unlock(path))
    except FsIOError as e:
        raise _fail(ctx, e, path) from None

    ctx.success(f"Unlocked {path}", {"path": str(path)})


def status(
    path: Path = typer.Argument(..., help="File to inspect"),
    stale: float | None = typer.Option(
        None, "--stale", "-s", help="Seconds after which the lock counts as abandoned"
    ),
) -> None:
    """Show whether a path is locked."""
    ctx = get_output_context()
    manager = LockManager(_build_options(ctx, stale))

    try:
        info = asyncio.run(manager.status(path))
    except FsIOError as e:
        raise _fail(ctx, e, path) from None

    if ctx.json_mode:
        ctx.print_json(info.model_dump(mode="json"))
        return

    if info.locked:
        ctx.console.print(f"[yellow]Locked[/yellow] {info.path} (age {info.age_seconds:.1f}s)")
    elif info.stale:
        ctx.console.print(f"[dim]Stale lock[/dim] {info.path} (age {info.age_seconds:.1f}s)")
    else:
        ctx.console.print(f"[green]Unlocked[/green] {info.path}")


async def _run_locked(path: Path, options: LockOptions, command: list[str]) -> int:
    """Run command while holding the lock on path.

    If the lock is compromised the command is terminated.
    """
    proc: asyncio.subprocess.Process | None = None

    def on_compromised(error: LockCompromised) -> None:
        logger.error(f"{error}; terminating command")
        if proc is not None and proc.returncode is None:
            proc.terminate()

    manager = LockManager(options.model_copy(update={"on_compromised": on_compromised}))
    async with manager.locked(path):
        logger.info(f"Running {' '.join(command)} under lock {path}")
        proc = await asyncio.create_subprocess_exec(*command)
        return_code = await proc.wait()
    logger.debug(f"Command exited with {return_code}")
    return return_code


def run(
    path: Path = typer.Argument(..., help="File to lock while the command runs"),
    command: list[str] = typer.Argument(..., help="Command to run (after --)"),
    stale: float | None = typer.Option(
        None, "--stale", "-s", help="Seconds after which the lock counts as abandoned"
    ),
    retries: int | None = typer.Option(None, "--retries", "-r", help="Retries when contended"),
) -> None:
    """Run a command while holding a lock, like flock(1).

    Example: fskit run data.db -- ./migrate.sh
    """
    ctx = get_output_context()
    options = _build_options(ctx, stale, retries)

    try:
        return_code = asyncio.run(_run_locked(path, options, command))
    except (LockContention, PathNotFound, FsIOError) as e:
        raise _fail(ctx, e, path) from None
    except FileNotFoundError:
        ctx.error(f"Command not found: {command[0]}")
        raise typer.Exit(EXIT_COMMAND_NOT_FOUND) from None

    raise typer.Exit(return_code)
