"""Shared test fixtures for fskit tests."""

import logging
import os
import time
from collections.abc import AsyncGenerator, Callable, Generator
from pathlib import Path

import pytest
from rich.logging import RichHandler
from typer.testing import CliRunner

from fskit.constants import CONFIG_ENV_VAR
from fskit.core import LockManager
from fskit.models import LockOptions


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests from picking up a real fskit.toml or $FSKIT_CONFIG."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def reset_fskit_logger() -> Generator[None, None, None]:
    """Undo handlers the CLI attaches to the fskit logger."""
    yield
    logger = logging.getLogger("fskit")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def target(tmp_path: Path) -> Path:
    """Path to lock. The file itself is not created."""
    return tmp_path.resolve() / "data.txt"


@pytest.fixture
async def manager() -> AsyncGenerator[LockManager, None]:
    """Lock manager with a 10s stale threshold, released after the test."""
    mgr = LockManager(LockOptions(stale=10))
    try:
        yield mgr
    finally:
        await mgr.release_all()


@pytest.fixture
def make_marker() -> Callable[..., Path]:
    """Create a marker directory for a target as another process would.

    Call with the locked path and optionally ``age``, the number of seconds
    to backdate the marker mtime by.
    """

    def _make(target: Path, age: float = 0.0) -> Path:
        marker = Path(f"{target}.lock")
        marker.mkdir()
        if age:
            stamp = time.time() - age
            os.utime(marker, (stamp, stamp))
        return marker

    return _make
