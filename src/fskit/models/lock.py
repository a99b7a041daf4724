"""Lock models for marker-based advisory locking.

A lock on ``target`` is an empty directory at ``target.lock``. The
directory's mtime is the time of acquisition or the last refresh, and a
marker older than ``stale`` seconds is treated as abandoned.
"""

import random
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, Field, field_validator, model_validator

from ..constants import (
    DEFAULT_RETRY_FACTOR,
    DEFAULT_RETRY_MIN_TIMEOUT,
    DEFAULT_STALE_SECONDS,
    MIN_BACKOFF_SECONDS,
)
from ..errors import LockCompromised

CompromisedCallback = Callable[[LockCompromised], Any]


class RetryPolicy(BaseModel):
    """Backoff policy for contested lock acquisition.

    Attributes:
        retries: Extra attempts after the first one (0 = fail fast).
        factor: Exponential growth factor between attempts.
        min_timeout: Delay before the first retry, in seconds.
        max_timeout: Upper bound for a single delay (None = unbounded).
        randomize: Multiply each delay by a random factor in [1, 2).
        max_retry_time: Give up once this many seconds have elapsed.
    """

    retries: int = Field(default=0, ge=0, description="Retries after the first attempt")
    factor: float = Field(default=DEFAULT_RETRY_FACTOR, ge=1)
    min_timeout: float = Field(default=DEFAULT_RETRY_MIN_TIMEOUT, ge=0)
    max_timeout: float | None = Field(default=None, ge=0)
    randomize: bool = False
    max_retry_time: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def validate_timeout_bounds(self) -> Self:
        """Ensure max_timeout is not below min_timeout."""
        if self.max_timeout is not None and self.max_timeout < self.min_timeout:
            raise ValueError(
                f"max_timeout ({self.max_timeout}) must be >= min_timeout ({self.min_timeout})"
            )
        return self

    def timeout_for(self, attempt: int) -> float:
        """Delay in seconds before retry number ``attempt`` (0-based)."""
        jitter = random.uniform(1, 2) if self.randomize else 1.0
        delay = jitter * max(self.min_timeout, MIN_BACKOFF_SECONDS) * self.factor**attempt
        if self.max_timeout is not None:
            delay = min(delay, self.max_timeout)
        return delay


class LockOptions(BaseModel):
    """Per-call lock settings.

    ``retries`` also accepts a plain integer, shorthand for
    ``RetryPolicy(retries=n)``.
    """

    stale: float = Field(
        default=DEFAULT_STALE_SECONDS, gt=0, description="Marker age (s) treated as abandoned"
    )
    update: float | None = Field(default=None, gt=0, description="Refresh interval in seconds")
    refresh: bool = Field(default=True, description="Keep the marker fresh while held")
    retries: RetryPolicy = Field(default_factory=RetryPolicy)
    realpath: bool = Field(default=True, description="Resolve symlinks in the parent directory")
    lockfile_path: Path | None = Field(default=None, description="Explicit marker location")
    contend: bool = Field(
        default=False, description="Treat a live marker owned elsewhere as contention"
    )
    on_compromised: CompromisedCallback | None = Field(default=None, exclude=True)

    @field_validator("retries", mode="before")
    @classmethod
    def coerce_retry_count(cls, value: Any) -> Any:
        """Allow ``retries=3`` as shorthand for a policy."""
        if isinstance(value, int) and not isinstance(value, bool):
            return {"retries": value}
        return value

    @property
    def update_interval(self) -> float | None:
        """Effective refresh interval, never more than half the stale threshold."""
        if not self.refresh:
            return None
        half = self.stale / 2
        if self.update is None:
            return half
        return min(self.update, half)


class LockStatus(BaseModel):
    """Point-in-time view of a lock target.

    Attributes:
        path: Resolved target path.
        marker: Marker directory location.
        exists: Whether a marker exists at all.
        locked: Whether a live (non-stale) marker exists.
        stale: Whether an existing marker is past the stale threshold.
        age_seconds: Marker age, if it exists.
        modified_at: Marker mtime, if it exists.
        held: Whether the inspecting manager holds the lock.
    """

    path: Path
    marker: Path
    exists: bool = False
    locked: bool = False
    stale: bool = False
    age_seconds: float | None = None
    modified_at: datetime | None = None
    held: bool = False
