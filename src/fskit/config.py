"""Configuration management for fskit."""

import os
import tomllib
from pathlib import Path

import tomli_w
from pydantic import BaseModel, Field

from .constants import CONFIG_ENV_VAR, CONFIG_FILENAME, DEFAULT_STALE_SECONDS
from .models import LockOptions, RetryPolicy


class LockConfig(BaseModel):
    """Default lock settings for a LockManager."""

    stale: float = Field(default=DEFAULT_STALE_SECONDS, gt=0)
    update: float | None = Field(default=None, gt=0)
    refresh: bool = True
    realpath: bool = True
    contend: bool = False
    retries: RetryPolicy = Field(default_factory=RetryPolicy)

    def to_options(self) -> LockOptions:
        """Build LockOptions from these settings."""
        return LockOptions(
            stale=self.stale,
            update=self.update,
            refresh=self.refresh,
            realpath=self.realpath,
            contend=self.contend,
            retries=self.retries.model_copy(),
        )


class TempConfig(BaseModel):
    """Configuration for temp file helpers."""

    directory: Path | None = None  # None = OS temp dir


class FskitConfig(BaseModel):
    """Root configuration for fskit."""

    lock: LockConfig = Field(default_factory=LockConfig)
    temp: TempConfig = Field(default_factory=TempConfig)


def config_path(path: Path | None = None) -> Path:
    """Locate the config file.

    Precedence: explicit path, then ``$FSKIT_CONFIG``, then ``./fskit.toml``.
    """
    if path is not None:
        return path
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return Path.cwd() / CONFIG_FILENAME


def load_config(path: Path | None = None) -> FskitConfig:
    """Load config from TOML.

    Args:
        path: Config file; discovered via ``config_path`` if not given

    Returns:
        Loaded configuration, or defaults if the file doesn't exist
    """
    resolved = config_path(path)
    if not resolved.exists():
        return FskitConfig()
    with open(resolved, "rb") as f:
        data = tomllib.load(f)
    return FskitConfig.model_validate(data)


def write_config_template(path: Path) -> Path:
    """Write default config template.

    Args:
        path: Destination file

    Returns:
        Path to the written config file
    """
    template = {
        "lock": {
            "stale": DEFAULT_STALE_SECONDS,
            "refresh": True,
            "realpath": True,
            "contend": False,
            # Backoff for contested locks: delay = min_timeout * factor ** attempt
            "retries": {"retries": 0, "factor": 2.0, "min_timeout": 1.0, "randomize": False},
        },
        "temp": {},
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        tomli_w.dump(template, f)
    return path
