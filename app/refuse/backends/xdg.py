"""freedesktop.org trash backend.

Implements the trash specification layout: a home trash under
``$XDG_DATA_HOME/Trash`` plus one trash per mounted device
(``$topdir/.Trash/$uid`` or ``$topdir/.Trash-$uid``). Every payload in
``files/`` is paired with a ``.trashinfo`` sidecar in ``info/``.
"""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from refuse.backends.trashinfo import (
    TRASHINFO_SUFFIX,
    TrashInfoRecord,
    is_trashinfo_name,
    load_trashinfo,
    write_trashinfo,
)
from refuse.core.errors import (
    CrossDeviceError,
    NotFoundError,
    StorageError,
    StorageNotReadyError,
    storage_error,
)
from refuse.core.paths import get_home_trash_dir
from refuse.filesystem.mounts import MountIndex, device_probe, same_device
from refuse.filesystem.mover import move, remove_path
from refuse.models.entry import StorageInfo, StorageLocation, StorageType, TrashedEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TrashLocation:
    """One trash directory.

    Attributes:
        root: Trash directory (e.g. ~/.local/share/Trash or /media/disk/.Trash-1000).
        is_home: Whether this is the home trash.
        mount: Mount point the location belongs to (empty for home).
    """

    root: str
    is_home: bool = False
    mount: str = ""

    @property
    def files_dir(self) -> str:
        return os.path.join(self.root, "files")

    @property
    def info_dir(self) -> str:
        return os.path.join(self.root, "info")

    def payload_path(self, name: str) -> str:
        return os.path.join(self.files_dir, name)

    def sidecar_path(self, name: str) -> str:
        return os.path.join(self.info_dir, name + TRASHINFO_SUFFIX)


@dataclass(frozen=True, slots=True)
class OrphanReport:
    """Unpaired files found across all locations.

    Attributes:
        sidecars: Sidecars whose payload is missing.
        payloads: Payloads without a sidecar.
    """

    sidecars: list[str] = field(default_factory=list)
    payloads: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.sidecars and not self.payloads


class SpecBackend:
    """Trash backend following the freedesktop.org trash specification.

    Args:
        home_trash_dir: Home trash root (default: $XDG_DATA_HOME/Trash).
        force_home_trash: Ignore per-device trash directories.
        home_fallback: Use the home trash (copying across devices) when no
            location shares the object's device.
        mounts: Mount index used to discover external locations.
        uid: User ID naming the external locations (default: current user).

    Raises:
        StorageNotReadyError: If the home trash cannot be created.
    """

    def __init__(
        self,
        home_trash_dir: str | Path | None = None,
        *,
        force_home_trash: bool = False,
        home_fallback: bool = True,
        mounts: MountIndex | None = None,
        uid: int | None = None,
    ) -> None:
        self.force_home_trash = force_home_trash
        self.home_fallback = home_fallback
        self._mounts = mounts or MountIndex()
        self._uid = os.getuid() if uid is None else uid

        root = os.path.abspath(home_trash_dir or get_home_trash_dir())
        self.home = TrashLocation(root=root, is_home=True)
        try:
            os.makedirs(self.home.files_dir, mode=0o700, exist_ok=True)
            os.makedirs(self.home.info_dir, mode=0o700, exist_ok=True)
        except OSError as e:
            msg = f"Failed to initialize home trash {root}: {e}"
            raise StorageNotReadyError(msg) from e

        self.external: list[TrashLocation] = []
        if not force_home_trash:
            try:
                self.external = self._scan_external()
            except OSError as e:
                logger.warning("Failed to scan external trash directories: %s", e)

        logger.info(
            "Initialized xdg storage at %s (%d external locations)",
            root,
            len(self.external),
        )

    @property
    def type(self) -> StorageType:
        return StorageType.XDG

    @property
    def locations(self) -> list[TrashLocation]:
        """Home location followed by external locations."""
        return [self.home, *self.external]

    def info(self) -> StorageInfo:
        return StorageInfo(
            location=StorageLocation.HOME,
            root=self.home.root,
            available=True,
            type=StorageType.XDG,
        )

    def same_device(self, path: str | Path) -> bool:
        """Check whether path shares a device with any location."""
        return any(self._on_device_of(path, loc) for loc in self.locations)

    def put(self, path: str | Path) -> None:
        """Move an object into the trash.

        The sidecar is written first; the payload is moved second. If the
        move fails the sidecar is deleted again.

        Raises:
            StorageError: Wrapping NotFoundError, CrossDeviceError or the
                underlying OSError.
        """
        src = os.path.abspath(path)
        if not os.path.lexists(src):
            msg = f"no such file or directory: {src}"
            raise StorageError("put", src, NotFoundError(msg))

        try:
            loc = self._select_location(src)
        except CrossDeviceError as e:
            raise StorageError("put", src, e) from e

        name = self._unique_name(loc, os.path.basename(src.rstrip(os.sep)))
        sidecar = loc.sidecar_path(name)
        record = TrashInfoRecord(path=src, deletion_date=datetime.now().astimezone())
        try:
            write_trashinfo(sidecar, record)
        except OSError as e:
            raise storage_error("put", src, e) from e

        payload = loc.payload_path(name)
        try:
            move(src, payload, allow_cross_device=self.home_fallback)
        except OSError as e:
            try:
                os.unlink(sidecar)
            except OSError as rm_err:
                logger.warning("Failed to remove sidecar %s: %s", sidecar, rm_err)
            raise storage_error("put", src, e) from e

        logger.debug("Trashed %s as %s", src, payload)

    def list(self) -> list[TrashedEntry]:
        """List entries in every location.

        Raises:
            StorageError: If the home files directory cannot be read.
        """
        try:
            entries = self._list_location(self.home)
        except OSError as e:
            raise storage_error("list", "", e) from e

        for loc in self.external:
            try:
                entries.extend(self._list_location(loc))
            except OSError as e:
                logger.warning("Failed to list external trash %s: %s", loc.root, e)
        return entries

    def restore(self, entry: TrashedEntry, dest: str | Path | None = None) -> None:
        """Move an entry's payload back and delete its sidecar.

        Raises:
            StorageError: If the payload cannot be moved.
        """
        target = os.path.abspath(dest or entry.original_path)
        try:
            move(entry.trash_path, target, allow_cross_device=True)
        except OSError as e:
            raise storage_error("restore", target, e) from e

        self._drop_sidecar(entry)
        logger.debug("Restored %s to %s", entry.trash_path, target)

    def remove(self, entry: TrashedEntry) -> None:
        """Permanently delete an entry's payload and sidecar.

        Raises:
            StorageError: If the payload cannot be deleted.
        """
        try:
            remove_path(entry.trash_path)
        except FileNotFoundError:
            logger.debug("Payload %s already gone", entry.trash_path)
        except OSError as e:
            raise storage_error("remove", entry.trash_path, e) from e

        self._drop_sidecar(entry)
        logger.debug("Removed %s", entry.trash_path)

    def find_orphans(self) -> OrphanReport:
        """Find sidecars without payloads and payloads without sidecars."""
        report = OrphanReport()
        for loc in self.locations:
            try:
                infos = set(os.listdir(loc.info_dir))
                files = set(os.listdir(loc.files_dir))
            except OSError as e:
                logger.warning("Failed to scan %s for orphans: %s", loc.root, e)
                continue

            for info_name in sorted(infos):
                # "._" files are macOS resource forks, not sidecars
                if not is_trashinfo_name(info_name) or info_name.startswith("._"):
                    continue
                if info_name[: -len(TRASHINFO_SUFFIX)] not in files:
                    report.sidecars.append(os.path.join(loc.info_dir, info_name))

            for file_name in sorted(files):
                if file_name + TRASHINFO_SUFFIX not in infos:
                    report.payloads.append(os.path.join(loc.files_dir, file_name))
        return report

    def prune_orphans(self) -> list[str]:
        """Delete sidecars whose payload is missing.

        Payloads without sidecars are never deleted.

        Returns:
            Sidecar paths that were deleted.
        """
        removed: list[str] = []
        for sidecar in self.find_orphans().sidecars:
            try:
                os.unlink(sidecar)
            except OSError as e:
                logger.error("Failed to remove orphaned sidecar %s: %s", sidecar, e)
                continue
            removed.append(sidecar)
        return removed

    def _scan_external(self) -> list[TrashLocation]:
        locations: list[TrashLocation] = []
        for mount in self._mounts.mount_points():
            top_dir = os.path.join(mount, ".Trash")
            candidate = os.path.join(top_dir, str(self._uid))
            if _has_sticky_bit(top_dir) and _is_valid_location(candidate):
                locations.append(TrashLocation(root=candidate, mount=mount))
                continue

            candidate = os.path.join(mount, f".Trash-{self._uid}")
            if _is_valid_location(candidate):
                locations.append(TrashLocation(root=candidate, mount=mount))

        home_root = os.path.realpath(self.home.root)
        return [loc for loc in locations if os.path.realpath(loc.root) != home_root]

    def _select_location(self, path: str) -> TrashLocation:
        if self._on_device_of(path, self.home):
            return self.home
        for loc in self.external:
            if self._on_device_of(path, loc):
                return loc
        if self.home_fallback:
            logger.debug("No trash on the device of %s, falling back to home trash", path)
            return self.home
        msg = f"no trash directory on the same device as {path}"
        raise CrossDeviceError(msg)

    def _on_device_of(self, path: str | Path, loc: TrashLocation) -> bool:
        try:
            return same_device(device_probe(path), loc.root)
        except OSError as e:
            logger.debug("Device check %s vs %s failed: %s", path, loc.root, e)
            return False

    def _unique_name(self, loc: TrashLocation, base_name: str) -> str:
        name = base_name
        counter = 1
        while os.path.lexists(loc.sidecar_path(name)) or os.path.lexists(loc.payload_path(name)):
            name = f"{base_name}_{counter}"
            counter += 1
        return name

    def _list_location(self, loc: TrashLocation) -> list[TrashedEntry]:
        entries: list[TrashedEntry] = []
        for name in sorted(os.listdir(loc.files_dir)):
            payload = loc.payload_path(name)
            try:
                record = load_trashinfo(loc.sidecar_path(name), loc.mount or None)
            except (OSError, ValueError) as e:
                logger.debug("Skipping %s: %s", payload, e)
                continue
            try:
                st = os.lstat(payload)
            except OSError as e:
                logger.debug("Skipping %s: %s", payload, e)
                continue

            entries.append(
                TrashedEntry(
                    name=record.original_name,
                    original_path=record.path,
                    trash_path=payload,
                    deleted_at=record.deletion_date,
                    size=st.st_size,
                    is_dir=stat.S_ISDIR(st.st_mode),
                    file_mode=st.st_mode,
                    backend=self,
                )
            )
        return entries

    def _drop_sidecar(self, entry: TrashedEntry) -> None:
        root = os.path.dirname(os.path.dirname(entry.trash_path))
        sidecar = os.path.join(root, "info", os.path.basename(entry.trash_path) + TRASHINFO_SUFFIX)
        try:
            os.unlink(sidecar)
        except OSError as e:
            logger.warning("Failed to remove trash info %s: %s", sidecar, e)


def _has_sticky_bit(path: str) -> bool:
    try:
        st = os.lstat(path)
    except OSError:
        return False
    return stat.S_ISDIR(st.st_mode) and bool(st.st_mode & stat.S_ISVTX)


def _is_valid_location(path: str) -> bool:
    if os.path.islink(path) or not os.path.isdir(path):
        return False
    return os.path.isdir(os.path.join(path, "files")) and os.path.isdir(os.path.join(path, "info"))
