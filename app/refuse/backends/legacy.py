"""Single-directory legacy trash backend.

Payloads live under ``<root>/YYYY/MM/DD/<run_id>/<name>.<id>`` and the
bookkeeping is kept in ``<root>/history.json``. Every put, restore and
remove runs inside a Journal transaction so the document survives a
crash at any point of the operation.
"""

from __future__ import annotations

import logging
import os
import stat
import uuid
from datetime import timedelta
from pathlib import Path

from refuse.core.errors import NotFoundError, StorageError, StorageNotReadyError, storage_error
from refuse.core.paths import get_legacy_trash_dir
from refuse.filesystem.mounts import device_probe, same_device
from refuse.filesystem.mover import move, remove_path
from refuse.journal import DEFAULT_STALE_AFTER, Journal, JournalError, Transaction
from refuse.models.entry import StorageInfo, StorageLocation, StorageType, TrashedEntry
from refuse.models.history import HistoryRecord, create_history_record

logger = logging.getLogger(__name__)


class LegacyBackend:
    """Trash backend keeping everything in one directory.

    Args:
        root: Trash root (default: ~/.refuse).
        stale_after: Age after which interrupted transactions are rolled
            back when the journal is opened.
        run_id: Groups records trashed by this instance (default: random).

    Raises:
        StorageNotReadyError: If the root or its journal cannot be opened.
    """

    def __init__(
        self,
        root: str | Path | None = None,
        *,
        stale_after: timedelta = DEFAULT_STALE_AFTER,
        run_id: str | None = None,
    ) -> None:
        self.root = os.path.abspath(root or get_legacy_trash_dir())
        self.run_id = run_id or uuid.uuid4().hex
        try:
            self.journal = Journal(self.root, stale_after=stale_after)
        except JournalError as e:
            msg = f"Failed to open legacy trash {self.root}: {e}"
            raise StorageNotReadyError(msg) from e
        logger.info("Initialized legacy storage at %s", self.root)

    @property
    def type(self) -> StorageType:
        return StorageType.LEGACY

    def info(self) -> StorageInfo:
        return StorageInfo(
            location=StorageLocation.HOME,
            root=self.root,
            available=True,
            type=StorageType.LEGACY,
        )

    def same_device(self, path: str | Path) -> bool:
        try:
            return same_device(device_probe(path), self.root)
        except OSError as e:
            logger.debug("Device check %s vs %s failed: %s", path, self.root, e)
            return False

    def put(self, path: str | Path) -> None:
        """Move an object into the trash under a journal transaction.

        Raises:
            StorageError: If the object is missing or any step fails. A
                failed move is rolled back before raising.
        """
        src = os.path.abspath(path)
        if not os.path.lexists(src):
            msg = f"no such file or directory: {src}"
            raise StorageError("put", src, NotFoundError(msg))

        is_dir = os.path.isdir(src) and not os.path.islink(src)
        record = create_history_record(src, self.run_id, is_dir=is_dir)
        dst = record.resolve_to(self.root)

        try:
            tx = self.journal.prepare_move(record)
        except JournalError as e:
            raise StorageError("put", src, e) from e

        try:
            move(src, dst, allow_cross_device=True)
        except OSError as e:
            try:
                self.journal.rollback_move(tx)
            except JournalError as rb_err:
                logger.error("Failed to roll back put of %s: %s", src, rb_err)
            self._prune_empty_parents(dst)
            raise storage_error("put", src, e) from e

        try:
            self.journal.commit_move(tx)
        except JournalError as e:
            # every payload under root has a record
            self._move_back(dst, src)
            self._prune_empty_parents(dst)
            raise StorageError("put", src, e) from e

        logger.debug("Trashed %s as %s", src, dst)

    def list(self) -> list[TrashedEntry]:
        """List every record, whether or not its payload still exists."""
        return [self._to_entry(record) for record in self.journal.list()]

    def restore(self, entry: TrashedEntry, dest: str | Path | None = None) -> None:
        """Move an entry back out of the trash under a journal transaction.

        Raises:
            StorageError: If the entry is unknown or any step fails.
        """
        record = self._record_for(entry, "restore")
        target = os.path.abspath(dest or record.from_path)
        payload = record.resolve_to(self.root)

        try:
            tx = self.journal.prepare_restore(record)
        except JournalError as e:
            raise StorageError("restore", target, e) from e

        try:
            move(payload, target, allow_cross_device=True)
        except OSError as e:
            try:
                self.journal.rollback_restore(tx)
            except JournalError as rb_err:
                logger.error("Failed to roll back restore of %s: %s", payload, rb_err)
            raise storage_error("restore", target, e) from e

        try:
            self.journal.commit_restore(tx)
        except JournalError as e:
            # every record keeps its payload
            self._move_back(target, payload)
            raise StorageError("restore", target, e) from e

        self._prune_empty_parents(payload)
        logger.debug("Restored %s to %s", payload, target)

    def remove(self, entry: TrashedEntry) -> None:
        """Permanently delete an entry under a journal transaction.

        A record whose payload has already vanished is simply forgotten.

        Raises:
            StorageError: If the entry is unknown or any step fails.
        """
        record = self._record_for(entry, "remove")
        payload = record.resolve_to(self.root)

        if not os.path.lexists(payload):
            try:
                self.journal.remove(record.id)
            except JournalError as e:
                raise StorageError("remove", payload, e) from e
            logger.debug("Forgot record %s with missing payload %s", record.id, payload)
            return

        try:
            tx = self.journal.prepare_restore(record)
        except JournalError as e:
            raise StorageError("remove", payload, e) from e

        try:
            remove_path(payload)
        except OSError as e:
            try:
                self.journal.rollback_restore(tx)
            except JournalError as rb_err:
                logger.error("Failed to roll back removal of %s: %s", payload, rb_err)
            raise storage_error("remove", payload, e) from e

        try:
            self.journal.commit_restore(tx)
        except JournalError as e:
            self._restore_backup(tx, payload)
            raise StorageError("remove", payload, e) from e

        self._prune_empty_parents(payload)
        logger.debug("Removed %s", payload)

    def _move_back(self, current: str, original: str) -> None:
        """Undo a move whose journal commit failed."""
        try:
            move(current, original, allow_cross_device=True)
        except OSError as e:
            logger.error("Failed to move %s back to %s after failed commit: %s", current, original, e)
        else:
            logger.info("Moved %s back to %s after failed commit", current, original)

    def _restore_backup(self, tx: Transaction, payload: str) -> None:
        """Bring back a deleted payload from the backup a failed commit keeps."""
        try:
            tx.restore_from_backup()
        except OSError as e:
            logger.error("Failed to restore %s from backup after failed commit: %s", payload, e)
        else:
            logger.info("Restored %s from backup after failed commit", payload)

    def _record_for(self, entry: TrashedEntry, op: str) -> HistoryRecord:
        record = self.journal.find_by_trash_path(entry.trash_path)
        if record is None:
            err = NotFoundError(f"not in legacy trash history: {entry.trash_path}")
            raise StorageError(op, entry.trash_path, err)
        return record

    def _to_entry(self, record: HistoryRecord) -> TrashedEntry:
        trash_path = record.resolve_to(self.root)
        deleted_at = record.timestamp
        if deleted_at.tzinfo is None:
            deleted_at = deleted_at.astimezone()

        size, is_dir, mode = 0, record.is_dir, 0
        try:
            st = os.lstat(trash_path)
        except OSError:
            logger.debug("Payload %s of record %s is missing", trash_path, record.id)
        else:
            size, is_dir, mode = st.st_size, stat.S_ISDIR(st.st_mode), st.st_mode

        return TrashedEntry(
            name=record.name,
            original_path=record.from_path,
            trash_path=trash_path,
            deleted_at=deleted_at,
            size=size,
            is_dir=is_dir,
            file_mode=mode,
            backend=self,
        )

    def _prune_empty_parents(self, path: str) -> None:
        """Remove empty date/run directories between path and the root."""
        parent = os.path.dirname(path)
        root = os.path.normpath(self.root)
        while parent.startswith(root + os.sep):
            try:
                os.rmdir(parent)
            except OSError:
                break
            parent = os.path.dirname(parent)
