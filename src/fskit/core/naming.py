"""Random name generation for temporary files and directories.

Names come from the OS CSPRNG via ``secrets`` so temp paths cannot be
predicted by another local user.
"""

import math
import secrets

from ..constants import TOKEN_LENGTH, TOKEN_MIN_BYTES
from ..errors import EntropyUnavailable


def random_token(length: int = TOKEN_LENGTH) -> str:
    """Generate a random lowercase hex token.

    Args:
        length: Number of hex characters to return (default 32)

    Returns:
        Token of exactly ``length`` characters from ``0-9a-f``

    Raises:
        ValueError: If length is less than 1
        EntropyUnavailable: If the OS random source fails
    """
    if length < 1:
        raise ValueError(f"Token length must be positive, got {length}")

    nbytes = max(TOKEN_MIN_BYTES, math.ceil(length / 2))
    try:
        raw = secrets.token_bytes(nbytes)
    except (NotImplementedError, OSError) as e:
        raise EntropyUnavailable("Secure random source is unavailable") from e
    return raw.hex()[:length]
