"""Temporary file and directory helpers.

Random names come from ``random_token``. Files and directories with a
generated name are created exclusively, so a pre-planted file or symlink
with the same name makes creation fail instead of being reused.
"""

import tempfile
from pathlib import Path

from ..config import FskitConfig
from ..constants import TEMP_DIR_MODE, TEMP_FILE_MODE
from ..services import filesystem
from .naming import random_token


def temp_dir(config: FskitConfig | None = None) -> Path:
    """Get the directory temp paths are created in.

    Returns the configured ``[temp] directory`` if set, otherwise the OS
    temp directory. The OS cleans the latter up on its own schedule.
    """
    if config is not None and config.temp.directory is not None:
        return config.temp.directory.expanduser()
    return Path(tempfile.gettempdir())


async def temp_path(config: FskitConfig | None = None) -> Path:
    """Get a random path inside the temp directory without creating it."""
    base = await filesystem.real_path(temp_dir(config))
    return base / random_token()


async def temp_file(name: str | None = None, config: FskitConfig | None = None) -> Path:
    """Create a temporary file you can write to.

    Args:
        name: File name inside the temp directory; random if omitted
        config: Optional config providing the temp directory

    Returns:
        Path to the file

    Raises:
        FileExistsError: If a generated name already exists (never expected)
    """
    if name is not None:
        return await filesystem.ensure_file(temp_dir(config) / name)
    return await filesystem.create_file_exclusive(await temp_path(config), TEMP_FILE_MODE)


async def create_temp_dir(config: FskitConfig | None = None) -> Path:
    """Create a new random directory inside the temp directory."""
    path = await temp_path(config)
    await filesystem.make_dir_exclusive(path, TEMP_DIR_MODE)
    return path
