"""Filesystem primitives.

This module provides the atomic move primitive, mount point discovery,
same-device checks and the protected path list used by trash backends.
"""

from refuse.filesystem.mounts import MountIndex, device_probe, same_device
from refuse.filesystem.mover import (
    InvalidPathError,
    MoveError,
    SourceNotFoundError,
    copy_path,
    move,
    remove_path,
)
from refuse.filesystem.protected import (
    PROTECTED_PATH_PATTERNS,
    is_protected_path,
    is_unsafe_argument,
)

__all__ = [
    "PROTECTED_PATH_PATTERNS",
    "InvalidPathError",
    "MountIndex",
    "MoveError",
    "SourceNotFoundError",
    "copy_path",
    "device_probe",
    "is_protected_path",
    "is_unsafe_argument",
    "move",
    "remove_path",
    "same_device",
]
