"""Async wrappers over OS filesystem primitives.

Thin and stateless: each function awaits one OS call (through aiofiles or a
worker thread) and lets ``OSError`` propagate. Callers decide how to map
failures.
"""

import asyncio
import os
import time
from datetime import datetime
from pathlib import Path

import aiofiles.os


async def exists(path: Path) -> bool:
    """Check if path exists."""
    return bool(await aiofiles.os.path.exists(path))


async def not_exists(path: Path) -> bool:
    """Check if path does not exist."""
    return not await exists(path)


async def is_file(path: Path) -> bool:
    """Check if path is a regular file."""
    return bool(await aiofiles.os.path.isfile(path))


async def is_dir(path: Path) -> bool:
    """Check if path is a directory."""
    return bool(await aiofiles.os.path.isdir(path))


async def stat(path: Path) -> os.stat_result:
    """Stat path, following symlinks."""
    return await aiofiles.os.stat(path)


async def size(path: Path) -> int:
    """Size of the file at path in bytes."""
    return (await stat(path)).st_size


async def last_modified(path: Path) -> datetime:
    """Time path was last modified."""
    return datetime.fromtimestamp((await stat(path)).st_mtime)


async def last_accessed(path: Path) -> datetime:
    """Time path was last accessed."""
    return datetime.fromtimestamp((await stat(path)).st_atime)


async def update_timestamps(path: Path, last_accessed: datetime, last_modified: datetime) -> None:
    """Set access and modification times of path.

    Raises:
        TypeError: If either timestamp is not a datetime
    """
    if not isinstance(last_accessed, datetime):
        raise TypeError(
            f"Updating the last accessed timestamp for {path} requires a datetime, "
            f"got {type(last_accessed).__name__}"
        )
    if not isinstance(last_modified, datetime):
        raise TypeError(
            f"Updating the last modified timestamp for {path} requires a datetime, "
            f"got {type(last_modified).__name__}"
        )
    await asyncio.to_thread(
        os.utime, path, (last_accessed.timestamp(), last_modified.timestamp())
    )


async def touch(path: Path, when: float | None = None) -> None:
    """Set both timestamps of an existing path to ``when`` (default: now)."""
    stamp = time.time() if when is None else when
    await asyncio.to_thread(os.utime, path, (stamp, stamp))


async def real_path(path: Path, strict: bool = False) -> Path:
    """Resolve symlinks and relative components of path."""
    return await asyncio.to_thread(Path(path).expanduser().resolve, strict)


async def ensure_dir(path: Path) -> Path:
    """Create directory (and parents) if missing.

    Returns:
        The path, for chaining
    """
    await aiofiles.os.makedirs(path, exist_ok=True)
    return path


async def ensure_file(path: Path) -> Path:
    """Create an empty file (and parent directories) if missing.

    Existing files are left untouched.

    Returns:
        The path, for chaining
    """
    await ensure_dir(Path(path).parent)
    fd = await asyncio.to_thread(os.open, path, os.O_CREAT | os.O_WRONLY)
    os.close(fd)
    return path


async def make_dir_exclusive(path: Path, mode: int = 0o777) -> None:
    """Create a single directory, failing if anything already exists there.

    ``mkdir`` is atomic: of several concurrent callers exactly one succeeds
    and the rest get ``FileExistsError``.
    """
    await aiofiles.os.mkdir(path, mode)


async def create_file_exclusive(path: Path, mode: int = 0o666) -> Path:
    """Create a new empty file, failing with FileExistsError if present."""
    fd = await asyncio.to_thread(os.open, path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, mode)
    os.close(fd)
    return path


async def rename(src: Path, dst: Path) -> None:
    """Atomically rename src to dst."""
    await aiofiles.os.rename(src, dst)


async def remove_file(path: Path) -> None:
    """Remove a file."""
    await aiofiles.os.remove(path)


async def remove_dir(path: Path) -> None:
    """Remove an empty directory."""
    await aiofiles.os.rmdir(path)
