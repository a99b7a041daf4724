"""Core logic for fskit.

- lock_manager: marker-directory locks with stale takeover
- naming: random tokens for temp names
- temp: temp file and directory helpers
"""

from .lock_manager import LockManager, is_stale, marker_path
from .naming import random_token
from .temp import create_temp_dir, temp_dir, temp_file, temp_path

__all__ = [
    "LockManager",
    "create_temp_dir",
    "is_stale",
    "marker_path",
    "random_token",
    "temp_dir",
    "temp_file",
    "temp_path",
]
