"""CLI command implementations for fskit.

Each command lives here, separated from the CLI framework setup in cli.py.
"""

from .init import init
from .lock import lock, run, status, unlock
from .temp import temp_dir_cmd, temp_file_cmd, token

__all__ = [
    "init",
    "lock",
    "run",
    "status",
    "temp_dir_cmd",
    "temp_file_cmd",
    "token",
    "unlock",
]
