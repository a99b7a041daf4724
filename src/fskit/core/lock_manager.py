"""Lock manager for advisory, cross-process file locks.

A lock on ``target`` is an empty marker directory at ``target.lock``.
Acquisition relies on ``mkdir`` failing when the directory exists, so of
several processes racing for the same marker exactly one wins. The marker
mtime is refreshed while the lock is held; a marker older than the stale
threshold belongs to a crashed holder and may be taken over.

Stale takeover renames the marker to a unique tombstone first. Rename is
atomic too, so only one contender removes a given stale marker.
"""

import asyncio
import contextlib
import inspect
import logging
import os
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ..config import FskitConfig
from ..constants import LOCK_SUFFIX, STALE_SUFFIX
from ..errors import FsIOError, LockCompromised, LockContention, PathNotFound
from ..models import LockOptions, LockStatus
from ..services import filesystem
from .naming import random_token

logger = logging.getLogger(__name__)


def marker_path(target: Path, options: LockOptions | None = None) -> Path:
    """Get the marker directory for a lock target.

    Args:
        target: Resolved path being locked
        options: Lock options, consulted for an explicit ``lockfile_path``

    Returns:
        Path of the marker directory
    """
    if options is not None and options.lockfile_path is not None:
        return Path(options.lockfile_path)
    return Path(f"{target}{LOCK_SUFFIX}")


def is_stale(mtime: float, stale: float, now: float | None = None) -> bool:
    """Check if a marker with the given mtime has outlived the stale threshold."""
    current = time.time() if now is None else now
    return current - mtime >= stale


def _same_marker(st: os.stat_result, identity: tuple[int, int], mtime_ns: int) -> bool:
    """Check a stat result describes the marker directory seen earlier."""
    return (st.st_dev, st.st_ino) == identity and st.st_mtime_ns == mtime_ns


@dataclass
class _HeldLock:
    """Lock acquired by this manager."""

    target: Path
    marker: Path
    options: LockOptions
    mtime_ns: int
    identity: tuple[int, int]
    refresher: asyncio.Task[None] | None = None


class LockManager:
    """Acquire, inspect and release marker-directory locks.

    The manager holds no global state: default options are passed in at
    construction and may be replaced per call. The only state it keeps is
    the set of locks it acquired itself, so that it can refresh their
    markers and recognise them on re-lock.

    Example:
        >>> manager = LockManager(LockOptions(stale=30))
        >>> async with manager.locked(Path("/tmp/data.txt")):
        ...     ...
    """

    def __init__(self, options: LockOptions | None = None) -> None:
        self.options = options or LockOptions()
        self._held: dict[Path, _HeldLock] = {}

    @classmethod
    def from_config(cls, config: FskitConfig) -> "LockManager":
        """Create a manager using the ``[lock]`` section of a config."""
        return cls(config.lock.to_options())

    async def lock(self, path: Path | str, options: LockOptions | None = None) -> None:
        """Acquire the lock on path.

        Locking a path that already has a live marker is a no-op, unless
        ``options.contend`` is set and the marker belongs to someone else,
        in which case the call waits per the retry policy.

        Args:
            path: File to lock (need not exist, its parent directory must)
            options: Overrides the manager defaults

        Raises:
            PathNotFound: If the parent directory does not exist
            LockContention: If a live holder keeps the lock past all retries
            FsIOError: On other marker I/O failures
        """
        opts = options or self.options
        target = await self._resolve(path, opts, strict=True)
        marker = marker_path(target, opts)

        held = self._held.get(marker)
        if held is not None:
            if await self._owns(held):
                logger.debug(f"Lock on {target} already held")
                return
            await self._forget(held)

        if not opts.contend and await self._is_live(marker, opts):
            logger.debug(f"{target} is already locked, skipping")
            return

        await self._acquire(target, marker, opts)

    async def unlock(self, path: Path | str, options: LockOptions | None = None) -> None:
        """Release the lock on path.

        For a path this manager locked, only the marker it created is
        removed: if the lock was taken over in the meantime the new owner's
        marker is left alone. For a path it never locked, any live marker is
        removed. Unlocked paths and markers removed by someone else are not
        errors.

        Raises:
            FsIOError: If the marker exists but cannot be removed
        """
        opts = options or self.options
        target = await self._resolve(path, opts, strict=False)
        marker = marker_path(target, opts)

        held = self._held.pop(marker, None)
        if held is not None:
            await self._stop_refresh(held)

        st = await self._stat_marker(marker)
        if st is None:
            return
        if held is not None:
            if not _same_marker(st, held.identity, held.mtime_ns):
                logger.warning(f"Lock on {target} was lost to another holder, not releasing")
                return
        elif is_stale(st.st_mtime, opts.stale):
            return

        try:
            await filesystem.remove_dir(marker)
        except FileNotFoundError:
            return
        except OSError as e:
            raise FsIOError(marker, "remove lock marker") from e
        logger.debug(f"Released lock on {target}")

    async def is_locked(self, path: Path | str, options: LockOptions | None = None) -> bool:
        """Check if path has a live (non-stale) marker.

        Staleness is evaluated on every call. Missing targets or parent
        directories read as unlocked.
        """
        opts = options or self.options
        target = await self._resolve(path, opts, strict=False)
        return await self._is_live(marker_path(target, opts), opts)

    async def is_not_locked(self, path: Path | str, options: LockOptions | None = None) -> bool:
        """Check if path has no live marker."""
        return not await self.is_locked(path, options)

    async def status(self, path: Path | str, options: LockOptions | None = None) -> LockStatus:
        """Inspect the marker for path without changing it."""
        opts = options or self.options
        target = await self._resolve(path, opts, strict=False)
        marker = marker_path(target, opts)
        result = LockStatus(path=target, marker=marker)

        st = await self._stat_marker(marker)
        if st is None:
            return result

        now = time.time()
        stale = is_stale(st.st_mtime, opts.stale, now)
        held = self._held.get(marker)
        result.exists = True
        result.stale = stale
        result.locked = not stale
        result.age_seconds = max(0.0, now - st.st_mtime)
        result.modified_at = datetime.fromtimestamp(st.st_mtime)
        result.held = held is not None and _same_marker(st, held.identity, held.mtime_ns)
        return result

    @contextlib.asynccontextmanager
    async def locked(
        self, path: Path | str, options: LockOptions | None = None
    ) -> AsyncIterator[None]:
        """Hold the lock on path for the duration of the block.

        Always contends for the lock: a marker held elsewhere is waited on
        (or raises LockContention) rather than silently skipped, so the
        block never runs under someone else's lock. A lock compromised
        during the block is not released on exit.
        """
        opts = (options or self.options).model_copy(update={"contend": True})
        await self.lock(path, opts)
        marker = marker_path(await self._resolve(path, opts, strict=False), opts)
        try:
            yield
        finally:
            if marker in self._held:
                await self.unlock(path, opts)

    def held_paths(self) -> list[Path]:
        """Targets currently locked by this manager."""
        return [held.target for held in self._held.values()]

    async def release_all(self) -> None:
        """Release every lock acquired by this manager."""
        for held in list(self._held.values()):
            await self.unlock(held.target, held.options)

    async def _resolve(self, path: Path | str, options: LockOptions, strict: bool) -> Path:
        """Make path absolute, resolving symlinks in its parent if configured.

        With ``strict`` a missing parent raises PathNotFound; otherwise the
        unresolved absolute path is returned.
        """
        target = Path(os.path.abspath(Path(path).expanduser()))
        if not options.realpath:
            return target
        try:
            parent = await filesystem.real_path(target.parent, strict=True)
        except (FileNotFoundError, NotADirectoryError) as e:
            if strict:
                raise PathNotFound(target) from e
            return target
        except OSError as e:
            if strict:
                raise FsIOError(target.parent, "resolve") from e
            return target
        return parent / target.name

    async def _stat_marker(self, marker: Path) -> os.stat_result | None:
        """Stat marker, returning None if it does not exist."""
        try:
            return await filesystem.stat(marker)
        except (FileNotFoundError, NotADirectoryError):
            return None
        except OSError as e:
            raise FsIOError(marker, "stat lock marker") from e

    async def _is_live(self, marker: Path, options: LockOptions) -> bool:
        st = await self._stat_marker(marker)
        return st is not None and not is_stale(st.st_mtime, options.stale)

    async def _owns(self, held: _HeldLock) -> bool:
        """Check the marker is still the one this manager created or refreshed."""
        st = await self._stat_marker(held.marker)
        if st is None or not _same_marker(st, held.identity, held.mtime_ns):
            return False
        return not is_stale(st.st_mtime, held.options.stale)

    async def _acquire(self, target: Path, marker: Path, options: LockOptions) -> None:
        """Create the marker, taking over stale markers and backing off on live ones."""
        policy = options.retries
        started = time.monotonic()
        attempt = 0

        while True:
            try:
                created = await self._create_marker(marker)
            except FileNotFoundError as e:
                missing = marker if options.lockfile_path is not None else target
                raise PathNotFound(missing) from e
            except OSError as e:
                raise FsIOError(marker, "create lock marker") from e

            if created:
                await self._register(target, marker, options)
                logger.debug(f"Acquired lock on {target}")
                return

            if await self._remove_if_stale(marker, options):
                continue

            elapsed = time.monotonic() - started
            out_of_time = policy.max_retry_time is not None and elapsed >= policy.max_retry_time
            if attempt >= policy.retries or out_of_time:
                logger.warning(f"Lock on {target} is held elsewhere, giving up")
                raise LockContention(target, attempt + 1)

            delay = policy.timeout_for(attempt)
            if policy.max_retry_time is not None:
                delay = min(delay, policy.max_retry_time - elapsed)
            attempt += 1
            logger.debug(f"Lock on {target} is busy, retry {attempt} in {delay:.3f}s")
            await asyncio.sleep(delay)

    async def _create_marker(self, marker: Path) -> bool:
        """Attempt the atomic mkdir.

        Returns:
            True if the marker was created, False if it already exists
        """
        # The mkdir runs in a worker thread and completes even if this task
        # is cancelled, so a cancelled attempt must undo a successful mkdir.
        attempt = asyncio.ensure_future(filesystem.make_dir_exclusive(marker))
        try:
            await asyncio.shield(attempt)
        except FileExistsError:
            return False
        except asyncio.CancelledError:
            with contextlib.suppress(OSError):
                await attempt
                os.rmdir(marker)
            raise
        return True

    async def _register(self, target: Path, marker: Path, options: LockOptions) -> None:
        """Record a freshly created marker and start refreshing it."""
        try:
            st = await filesystem.stat(marker)
            held = _HeldLock(
                target,
                marker,
                options,
                mtime_ns=st.st_mtime_ns,
                identity=(st.st_dev, st.st_ino),
            )
            self._held[marker] = held
            interval = options.update_interval
            if interval is not None:
                held.refresher = asyncio.create_task(self._refresh(held, interval))
        except BaseException as e:
            self._held.pop(marker, None)
            # Synchronous so cleanup cannot itself be cancelled.
            with contextlib.suppress(OSError):
                os.rmdir(marker)
            if isinstance(e, OSError):
                raise FsIOError(marker, "stat lock marker") from e
            raise

    async def _remove_if_stale(self, marker: Path, options: LockOptions) -> bool:
        """Remove marker if it is stale.

        Returns:
            True if the caller should retry immediately (stale marker removed
            or marker already gone), False if a live marker is in the way
        """
        st = await self._stat_marker(marker)
        if st is None:
            return True
        if not is_stale(st.st_mtime, options.stale):
            return False

        tombstone = marker.with_name(f"{marker.name}.{random_token()}{STALE_SUFFIX}")
        try:
            await filesystem.rename(marker, tombstone)
        except FileNotFoundError:
            return True
        except OSError as e:
            raise FsIOError(marker, "remove stale lock marker") from e

        moved = await self._stat_marker(tombstone)
        if moved is not None and not _same_marker(moved, (st.st_dev, st.st_ino), st.st_mtime_ns):
            # Another process took over between our stat and rename.
            await self._restore(marker, tombstone)
            return False

        try:
            await filesystem.remove_dir(tombstone)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise FsIOError(tombstone, "remove stale lock marker") from e
        logger.info(f"Removed stale lock marker {marker} (age {time.time() - st.st_mtime:.1f}s)")
        return True

    async def _restore(self, marker: Path, tombstone: Path) -> None:
        """Put back a live marker that a stale takeover moved aside.

        Renaming a directory replaces an empty one at the destination, so the
        marker is only restored while its path is free. If a third contender
        has locked in the meantime, the moved marker is discarded and its
        owner finds out through its refresh check.
        """
        if await self._stat_marker(marker) is not None:
            logger.warning(f"Lock marker {marker} was retaken during stale takeover, dropping it")
            with contextlib.suppress(OSError):
                await filesystem.remove_dir(tombstone)
            return

        logger.warning(f"Lock marker {marker} changed during stale takeover, restoring it")
        try:
            await filesystem.rename(tombstone, marker)
        except OSError:
            logger.warning(f"Could not restore lock marker {marker}")
            with contextlib.suppress(OSError):
                await filesystem.remove_dir(tombstone)

    async def _refresh(self, held: _HeldLock, interval: float) -> None:
        """Keep the marker mtime fresh until released or compromised."""
        while True:
            await asyncio.sleep(interval)
            try:
                st = await filesystem.stat(held.marker)
            except FileNotFoundError:
                await self._compromise(held, "marker was removed")
                return
            except OSError as e:
                await self._compromise(held, f"marker could not be read ({e})")
                return

            if not _same_marker(st, held.identity, held.mtime_ns):
                await self._compromise(held, "marker was replaced by another process")
                return

            try:
                await filesystem.touch(held.marker)
                st = await filesystem.stat(held.marker)
            except OSError as e:
                await self._compromise(held, f"marker could not be updated ({e})")
                return
            if (st.st_dev, st.st_ino) != held.identity:
                await self._compromise(held, "marker was replaced by another process")
                return
            held.mtime_ns = st.st_mtime_ns

    async def _compromise(self, held: _HeldLock, reason: str) -> None:
        """Drop a lost lock and notify the owner."""
        if self._held.get(held.marker) is held:
            del self._held[held.marker]

        error = LockCompromised(held.target, reason)
        callback = held.options.on_compromised
        if callback is None:
            logger.error(str(error))
            return

        logger.warning(str(error))
        try:
            result = callback(error)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(f"on_compromised callback failed for {held.target}")

    async def _forget(self, held: _HeldLock) -> None:
        """Stop tracking a lock this manager no longer owns."""
        self._held.pop(held.marker, None)
        await self._stop_refresh(held)

    async def _stop_refresh(self, held: _HeldLock) -> None:
        task = held.refresher
        held.refresher = None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
