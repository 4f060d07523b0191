"""Trashed entry model shared by all backends.

This module defines the backend-agnostic view of an object sitting in
the trash, together with the descriptive information every backend
reports about itself.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from refuse.backends.base import Backend


class StorageType(str, Enum):
    """Kind of trash backend.

    Attributes:
        XDG: freedesktop.org trash specification layout (files/ + info/).
        LEGACY: Single directory with a JSON history document.
    """

    XDG = "xdg"
    LEGACY = "legacy"


class StorageLocation(str, Enum):
    """Where a trash location lives.

    Attributes:
        HOME: In the user's home directory.
        EXTERNAL: At the top of another mounted device.
    """

    HOME = "home"
    EXTERNAL = "external"


@dataclass(frozen=True, slots=True)
class StorageInfo:
    """Description of a backend.

    Attributes:
        location: Home or external storage.
        root: Root directory of the backend's primary location.
        available: Whether the backend can currently be used.
        type: Backend kind.
    """

    location: StorageLocation
    root: str
    available: bool
    type: StorageType


@dataclass(slots=True)
class TrashedEntry:
    """An object currently held in the trash.

    Attributes:
        name: Original base name.
        original_path: Absolute path the object was trashed from.
        trash_path: Absolute path of the object inside the trash.
        deleted_at: When the object was trashed.
        size: Size in bytes as reported by stat (0 if unavailable).
        is_dir: Whether the object is a directory.
        file_mode: st_mode of the object (0 if unavailable).
        backend: Backend that listed this entry. Only used to route
            restore and remove calls; never owns the backend.
    """

    name: str
    original_path: str
    trash_path: str
    deleted_at: datetime
    size: int = 0
    is_dir: bool = False
    file_mode: int = 0
    backend: Backend | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.trash_path:
            msg = "Trash path cannot be empty"
            raise ValueError(msg)

    def exists(self) -> bool:
        """Check if the payload is still present in the trash."""
        return os.path.lexists(self.trash_path)

    def requires_admin(self) -> bool:
        """Check if restoring or removing needs elevated privileges.

        Returns:
            True if the payload exists but is not writable by its owner.
        """
        try:
            mode = os.stat(self.trash_path).st_mode
        except OSError:
            return False
        return mode & 0o200 == 0
