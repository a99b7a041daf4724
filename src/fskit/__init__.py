"""fskit: async filesystem helpers with cross-process advisory locks."""

import logging

from .config import FskitConfig, load_config
from .core import (
    LockManager,
    create_temp_dir,
    random_token,
    temp_dir,
    temp_file,
    temp_path,
)
from .errors import (
    EntropyUnavailable,
    FsIOError,
    FskitError,
    LockCompromised,
    LockContention,
    PathNotFound,
)
from .models import LockOptions, LockStatus, RetryPolicy

__version__ = "0.3.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "EntropyUnavailable",
    "FsIOError",
    "FskitConfig",
    "FskitError",
    "LockCompromised",
    "LockContention",
    "LockManager",
    "LockOptions",
    "LockStatus",
    "PathNotFound",
    "RetryPolicy",
    "__version__",
    "create_temp_dir",
    "load_config",
    "random_token",
    "temp_dir",
    "temp_file",
    "temp_path",
]
