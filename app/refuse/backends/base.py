"""Backend interface shared by all trash formats.

This module defines the capabilities every trash backend provides. The
set of backends is closed (see refuse.backends.factory); this protocol
only describes what the Manager relies on.
"""

from pathlib import Path
from typing import Protocol, runtime_checkable

from refuse.models.entry import StorageInfo, StorageType, TrashedEntry


@runtime_checkable
class Backend(Protocol):
    """Capabilities of a trash backend.

    Every operation raises refuse.core.errors.StorageError on failure,
    wrapping the underlying cause.

    Example:
        >>> backend = SpecBackend(home_trash_dir=Path("~/.local/share/Trash").expanduser())
        >>> backend.put("/home/user/notes.txt")
        >>> for entry in backend.list():
        ...     print(entry.name, entry.deleted_at)
    """

    @property
    def type(self) -> StorageType:
        """Return the backend kind."""
        ...

    def put(self, path: str | Path) -> None:
        """Move a file or directory into the trash.

        Args:
            path: Absolute path of the object to trash.
        """
        ...

    def list(self) -> list[TrashedEntry]:
        """List every object currently held by this backend."""
        ...

    def restore(self, entry: TrashedEntry, dest: str | Path | None = None) -> None:
        """Move an entry back out of the trash.

        Args:
            entry: Entry previously returned by list().
            dest: Target path (default: the entry's original path).
        """
        ...

    def remove(self, entry: TrashedEntry) -> None:
        """Permanently delete an entry."""
        ...

    def info(self) -> StorageInfo:
        """Describe this backend."""
        ...

    def same_device(self, path: str | Path) -> bool:
        """Check whether path can be trashed here without crossing devices."""
        ...
