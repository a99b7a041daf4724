"""Errors raised by fskit."""

from pathlib import Path


class FskitError(Exception):
    """Base exception for fskit errors."""


class PathNotFound(FskitError):
    """Raised when the parent directory of a lock target does not exist."""

    def __init__(self, path: Path, message: str | None = None) -> None:
        self.path = path
        super().__init__(message or f"Parent directory does not exist: {path.parent}")


class LockContention(FskitError):
    """Raised when retries are exhausted while another holder keeps the lock."""

    def __init__(self, path: Path, attempts: int) -> None:
        self.path = path
        self.attempts = attempts
        super().__init__(f"Lock on {path} is held by another process ({attempts} attempts)")


class FsIOError(FskitError):
    """Raised for OS-level failures on marker I/O.

    The original ``OSError`` is available as ``__cause__``.
    """

    def __init__(self, path: Path, operation: str) -> None:
        self.path = path
        self.operation = operation
        super().__init__(f"Failed to {operation} {path}")


class EntropyUnavailable(FskitError):
    """Raised when the secure random source cannot supply bytes."""


class LockCompromised(FskitError):
    """Passed to ``on_compromised`` when a held lock is lost unexpectedly."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Lock on {path} was compromised: {reason}")
