"""OS-facing services for fskit.

- filesystem: async wrappers over OS filesystem primitives
"""

from . import filesystem

__all__ = ["filesystem"]
