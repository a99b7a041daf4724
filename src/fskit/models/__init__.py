"""Pydantic data models for fskit.

- Lock settings and backoff policy (LockOptions, RetryPolicy)
- Lock inspection results (LockStatus)
"""

from .lock import CompromisedCallback, LockOptions, LockStatus, RetryPolicy

__all__ = [
    "CompromisedCallback",
    "LockOptions",
    "LockStatus",
    "RetryPolicy",
]
