"""Constants for fskit."""

# Lock markers
LOCK_SUFFIX = ".lock"
STALE_SUFFIX = ".stale"
DEFAULT_STALE_SECONDS = 10.0

# Retry backoff (seconds)
DEFAULT_RETRY_FACTOR = 2.0
DEFAULT_RETRY_MIN_TIMEOUT = 1.0
MIN_BACKOFF_SECONDS = 0.001

# Random names
TOKEN_LENGTH = 32
TOKEN_MIN_BYTES = 16  # 128 bits

# Permissions for created temp artifacts
TEMP_FILE_MODE = 0o600
TEMP_DIR_MODE = 0o700

# Config discovery
CONFIG_FILENAME = "fskit.toml"
CONFIG_ENV_VAR = "FSKIT_CONFIG"
