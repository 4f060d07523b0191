"""Trash manager.

The Manager owns the configured backends, picks the right one for each
put, merges their listings and routes restore and remove calls back to
the backend that listed an entry.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path

from refuse.backends.base import Backend
from refuse.backends.xdg import OrphanReport, SpecBackend
from refuse.core.config import HistoryConfig
from refuse.core.errors import (
    CrossDeviceError,
    DestinationExistsError,
    ForbiddenPathError,
    MissingBackendError,
    NotFoundError,
    StorageNotReadyError,
    TrashError,
)
from refuse.core.filter import apply_filters
from refuse.filesystem.protected import is_protected_path, is_unsafe_argument
from refuse.models.entry import StorageInfo, StorageLocation, TrashedEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TrashActionResult:
    """Result of a single put or remove in a batch.

    Attributes:
        path: Path the action was applied to.
        success: Whether the action completed.
        error: Error message if the action failed, None otherwise.
        storage: Backend that handled a successful put.
    """

    path: str
    success: bool
    error: str | None = None
    storage: StorageInfo | None = field(default=None, compare=False)


class Manager:
    """Coordinates a fixed set of trash backends.

    Args:
        backends: Backends in priority order.
        history: Listing filters (default: no filtering).
        home_fallback: Use the first home backend when no backend shares
            the device of a path being trashed.

    Raises:
        StorageNotReadyError: If no backend is given.
    """

    def __init__(
        self,
        backends: Sequence[Backend],
        *,
        history: HistoryConfig | None = None,
        home_fallback: bool = True,
    ) -> None:
        if not backends:
            msg = "no storage backend configured"
            raise StorageNotReadyError(msg)
        self._backends = list(backends)
        self._history = history or HistoryConfig()
        self.home_fallback = home_fallback
        logger.info(
            "Trash strategy: %s",
            "+".join(backend.type.value for backend in self._backends),
        )

    @property
    def backends(self) -> list[Backend]:
        return list(self._backends)

    def storages(self) -> list[StorageInfo]:
        """Describe every backend."""
        return [backend.info() for backend in self._backends]

    def put(self, path: str | Path) -> StorageInfo:
        """Move an object into the trash.

        Args:
            path: Object to trash (made absolute first).

        Returns:
            Description of the backend that took the object.

        Raises:
            ForbiddenPathError: If the path must never be trashed.
            NotFoundError: If the path does not exist.
            CrossDeviceError: If no backend can take the object.
            StorageError: If the selected backend fails.
        """
        raw = os.fspath(path)
        abs_path = os.path.abspath(raw)
        roots = [info.root for info in self.storages()]
        if is_unsafe_argument(raw) or is_protected_path(abs_path, extra_roots=roots):
            msg = f"refusing to trash protected path: {raw}"
            raise ForbiddenPathError(msg)

        try:
            os.lstat(abs_path)
        except FileNotFoundError as e:
            msg = f"no such file or directory: {abs_path}"
            raise NotFoundError(msg) from e

        backend = self._select_backend(abs_path)
        backend.put(abs_path)
        logger.debug("Put %s into %s trash", abs_path, backend.type.value)
        return backend.info()

    def put_many(self, paths: Iterable[str | Path]) -> list[TrashActionResult]:
        """Trash several paths independently.

        A failure for one path never stops the others.

        Returns:
            One result per input path, in order.
        """
        results: list[TrashActionResult] = []
        for path in paths:
            raw = os.fspath(path)
            try:
                info = self.put(raw)
            except (TrashError, OSError) as e:
                logger.debug("Failed to trash %s: %s", raw, e)
                results.append(TrashActionResult(path=raw, success=False, error=str(e)))
                continue
            results.append(TrashActionResult(path=raw, success=True, storage=info))
        return results

    def list(self, *, filtered: bool = True, now: datetime | None = None) -> list[TrashedEntry]:
        """List entries from all backends, newest first.

        A backend that fails to list is logged and skipped.

        Args:
            filtered: Apply the configured history filters.
            now: Reference time for the age filter.
        """
        entries: list[TrashedEntry] = []
        for backend in self._backends:
            try:
                entries.extend(backend.list())
            except (TrashError, OSError) as e:
                logger.warning("Skipping %s storage that failed to list: %s", backend.type.value, e)

        if filtered:
            entries = apply_filters(entries, self._history, now)
        entries.sort(key=lambda e: _sort_key(e.deleted_at), reverse=True)
        return entries

    def find(self, query: str) -> list[TrashedEntry]:
        """Find entries by original name, original path or trash path.

        Returns:
            Matching entries, newest first.
        """
        target = os.path.abspath(query)
        return [
            entry
            for entry in self.list(filtered=False)
            if query == entry.name or target in (entry.original_path, entry.trash_path)
        ]

    def restore(self, entry: TrashedEntry, dest: str | Path | None = None) -> None:
        """Move an entry back out of the trash.

        Args:
            entry: Entry returned by list().
            dest: Target path (default: the original path).

        Raises:
            MissingBackendError: If the entry carries no backend.
            DestinationExistsError: If the target already exists.
            StorageError: If the backend fails.
        """
        backend = _backend_of(entry)
        target = os.path.abspath(dest or entry.original_path)
        if os.path.lexists(target):
            msg = f"destination already exists: {target}"
            raise DestinationExistsError(msg)
        backend.restore(entry, target)

    def remove(self, entry: TrashedEntry) -> None:
        """Permanently delete an entry.

        Raises:
            MissingBackendError: If the entry carries no backend.
            StorageError: If the backend fails.
        """
        _backend_of(entry).remove(entry)

    def remove_many(self, entries: Iterable[TrashedEntry]) -> list[TrashActionResult]:
        """Permanently delete several entries independently."""
        results: list[TrashActionResult] = []
        for entry in entries:
            try:
                self.remove(entry)
            except TrashError as e:
                logger.error("Failed to remove %s: %s", entry.trash_path, e)
                results.append(TrashActionResult(path=entry.trash_path, success=False, error=str(e)))
                continue
            results.append(TrashActionResult(path=entry.trash_path, success=True))
        return results

    def prune_candidates(
        self,
        older_than: timedelta,
        newer_than: timedelta | None = None,
        now: datetime | None = None,
    ) -> list[TrashedEntry]:
        """Select entries by age.

        With only older_than, entries trashed more than older_than ago are
        selected. With both bounds, entries whose age lies within
        [newer_than, older_than] are selected.
        """
        now = now or datetime.now().astimezone()
        selected: list[TrashedEntry] = []
        for entry in self.list(now=now):
            age = now - _sort_key(entry.deleted_at)
            if newer_than is None:
                if age > older_than:
                    selected.append(entry)
            elif newer_than <= age <= older_than:
                selected.append(entry)
        return selected

    def prune(
        self,
        older_than: timedelta,
        newer_than: timedelta | None = None,
        now: datetime | None = None,
    ) -> list[TrashActionResult]:
        """Permanently delete entries selected by prune_candidates()."""
        return self.remove_many(self.prune_candidates(older_than, newer_than, now))

    def find_orphans(self) -> OrphanReport:
        """Collect orphaned sidecars and payloads from xdg backends."""
        report = OrphanReport()
        for backend in self._backends:
            if isinstance(backend, SpecBackend):
                found = backend.find_orphans()
                report.sidecars.extend(found.sidecars)
                report.payloads.extend(found.payloads)
        return report

    def prune_orphans(self) -> list[str]:
        """Delete orphaned sidecars from xdg backends."""
        removed: list[str] = []
        for backend in self._backends:
            if isinstance(backend, SpecBackend):
                removed.extend(backend.prune_orphans())
        return removed

    def _select_backend(self, path: str) -> Backend:
        for backend in self._backends:
            if backend.same_device(path):
                return backend

        if self.home_fallback:
            for backend in self._backends:
                if backend.info().location is StorageLocation.HOME:
                    logger.debug("No backend on the device of %s, using %s", path, backend.type.value)
                    return backend

        msg = f"no trash backend on the same device as {path}"
        raise CrossDeviceError(msg)


def _backend_of(entry: TrashedEntry) -> Backend:
    if entry.backend is None:
        msg = f"entry has no originating backend: {entry.trash_path}"
        raise MissingBackendError(msg)
    return entry.backend


def _sort_key(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.astimezone()
    return value
