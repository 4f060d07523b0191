"""Crash-safe history document store.

The Journal keeps the legacy trash's ``history.json`` and mutates it
only through two-phase transactions: prepare stages the new document and
backs up the affected object, commit atomically replaces the live
document, rollback puts the backup back. Transactions interrupted by a
crash are found and resolved the next time a Journal is opened.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from datetime import timedelta
from pathlib import Path

from refuse.journal.migration import HISTORY_FILENAME, migrate_inventory
from refuse.journal.state import (
    InvalidStateTransitionError,
    JournalError,
    TransactionState,
)
from refuse.journal.transaction import Transaction, TransactionType, load_descriptors
from refuse.models.history import HistoryDocument, HistoryRecord

logger = logging.getLogger(__name__)

DEFAULT_STALE_AFTER = timedelta(hours=1)


class Journal:
    """Transactional store for the history document.

    Storage layout inside root::

        history.json          live document
        temp/tx_<id>.json     transaction descriptors
        temp/history_<id>.json  staged documents
        temp/backup_<id>      backups of affected objects

    Every public method holds one re-entrant lock for its whole duration.

    Attributes:
        root: Directory holding the document.
        stale_after: Age after which an interrupted prepared transaction
            is rolled back during recovery.
    """

    TEMP_DIRNAME = "temp"

    def __init__(self, root: str | Path, *, stale_after: timedelta = DEFAULT_STALE_AFTER) -> None:
        """Open (and if needed create) the journal and recover pending transactions.

        Args:
            root: Legacy trash root directory.
            stale_after: Recovery staleness threshold.

        Raises:
            JournalError: If the directories cannot be created or the
                document cannot be read.
        """
        self.root = Path(root)
        self.stale_after = stale_after
        self._lock = threading.RLock()
        self._document = HistoryDocument()
        # staged documents of transactions prepared by this instance
        self._staged: dict[str, HistoryDocument] = {}

        try:
            self.root.mkdir(mode=0o700, parents=True, exist_ok=True)
            self.temp_dir.mkdir(mode=0o700, exist_ok=True)
            migrate_inventory(self.root)
        except OSError as e:
            msg = f"Failed to initialize journal at {self.root}: {e}"
            raise JournalError(msg) from e

        self._document = self._read_document()
        self.recover()

    @property
    def history_path(self) -> Path:
        """Path to the live history document."""
        return self.root / HISTORY_FILENAME

    @property
    def temp_dir(self) -> Path:
        """Directory holding transaction staging artifacts."""
        return self.root / self.TEMP_DIRNAME

    @property
    def version(self) -> int:
        """Schema version of the loaded document."""
        with self._lock:
            return self._document.version

    # -- queries -------------------------------------------------------

    def list(self) -> list[HistoryRecord]:
        """Return a copy of all records in insertion order."""
        with self._lock:
            return list(self._document.files)

    def get(self, record_id: str) -> HistoryRecord | None:
        """Find a record by ID.

        Args:
            record_id: Record ID to look up.

        Returns:
            Matching record, or None if absent.
        """
        with self._lock:
            for record in self._document.files:
                if record.id == record_id:
                    return record
            return None

    def find_by_trash_path(self, path: str | Path) -> HistoryRecord | None:
        """Find the record whose payload lives at path.

        Args:
            path: Absolute location inside the trash root.

        Returns:
            Matching record, or None if absent.
        """
        target = os.path.normpath(path)
        with self._lock:
            for record in self._document.files:
                if os.path.normpath(record.resolve_to(self.root)) == target:
                    return record
            return None

    # -- move (object enters the trash) ---------------------------------

    def prepare_move(self, record: HistoryRecord) -> Transaction:
        """Stage a document that adds record and back up its source.

        Args:
            record: Record for the object about to be trashed.

        Returns:
            Transaction in the PREPARED state.

        Raises:
            JournalError: If the record ID is already present or any
                staging step fails (staging artifacts are removed).
        """
        with self._lock:
            if record.id in self._document.ids():
                msg = f"Record {record.id} already exists in history"
                raise JournalError(msg)

            staged = self._document.copy()
            staged.files.append(record)
            return self._prepare(TransactionType.MOVE, record, staged, record.from_path)

    def commit_move(self, tx: Transaction) -> None:
        """Publish the staged document of a prepared move.

        Raises:
            TransactionAlreadyCompletedError: If tx is terminal.
            InvalidStateTransitionError: If tx is not prepared.
            JournalError: If the document cannot be replaced; tx is
                marked failed and its backup kept.
        """
        with self._lock:
            self._commit(tx)

    def rollback_move(self, tx: Transaction) -> None:
        """Abort a prepared move, restoring the backup if the source is gone.

        Raises:
            TransactionAlreadyCompletedError: If tx is terminal.
            InvalidStateTransitionError: If tx is not prepared.
            JournalError: If the backup cannot be restored.
        """
        with self._lock:
            self._rollback(tx)

    # -- restore (object leaves the trash) -------------------------------

    def prepare_restore(self, record: HistoryRecord) -> Transaction:
        """Stage a document without record and back up its payload.

        For directory records every record whose source lies strictly
        below the directory is dropped as well.

        Args:
            record: Record for the object leaving the trash.

        Returns:
            Transaction in the PREPARED state.

        Raises:
            JournalError: If any staging step fails.
        """
        with self._lock:
            staged = HistoryDocument(
                version=self._document.version,
                files=[f for f in self._document.files if not _is_dropped(f, record)],
            )
            return self._prepare(TransactionType.RESTORE, record, staged, record.resolve_to(self.root))

    def commit_restore(self, tx: Transaction) -> None:
        """Publish the staged document of a prepared restore.

        Raises:
            TransactionAlreadyCompletedError: If tx is terminal.
            InvalidStateTransitionError: If tx is not prepared.
            JournalError: If the document cannot be replaced.
        """
        with self._lock:
            self._commit(tx)

    def rollback_restore(self, tx: Transaction) -> None:
        """Abort a prepared restore, restoring the backup if the payload is gone.

        Raises:
            TransactionAlreadyCompletedError: If tx is terminal.
            InvalidStateTransitionError: If tx is not prepared.
            JournalError: If the backup cannot be restored.
        """
        with self._lock:
            self._rollback(tx)

    def remove(self, record_id: str) -> bool:
        """Drop one record directly, without a backup.

        Used to forget records whose payload has already vanished.

        Args:
            record_id: Record to drop.

        Returns:
            True if the record was present.

        Raises:
            JournalError: If the document cannot be written.
        """
        with self._lock:
            kept = [f for f in self._document.files if f.id != record_id]
            if len(kept) == len(self._document.files):
                return False

            staged = HistoryDocument(version=self._document.version, files=kept)
            temp_path = self.temp_dir / f"history_{uuid.uuid4().hex}.json"
            try:
                self._write_document(staged, temp_path)
                os.replace(temp_path, self.history_path)
            except OSError as e:
                if temp_path.exists():
                    temp_path.unlink()
                msg = f"Failed to remove record {record_id}: {e}"
                raise JournalError(msg) from e

            self._document = staged
            logger.debug("Removed record %s from history", record_id)
            return True

    # -- recovery ------------------------------------------------------

    def recover(self) -> int:
        """Resolve transactions left behind by an interrupted process.

        Prepared transactions older than stale_after are rolled back.
        Younger prepared transactions are left alone. Everything else is
        cleaned up.

        Returns:
            Number of transactions acted upon.
        """
        with self._lock:
            handled = 0
            for tx in load_descriptors(self.temp_dir):
                age = tx.metadata.age_seconds
                logger.info(
                    "Found pending transaction %s (%s, %s, %.0fs old)",
                    tx.id,
                    tx.type.value,
                    tx.state.value,
                    age,
                )

                if tx.state is TransactionState.PREPARED:
                    if age <= self.stale_after.total_seconds():
                        continue
                    try:
                        self._rollback(tx)
                    except JournalError as e:
                        logger.error("Failed to roll back transaction %s: %s", tx.id, e)
                        continue
                else:
                    self._cleanup(tx)
                handled += 1
            return handled

    # -- internals -----------------------------------------------------

    def _prepare(
        self,
        tx_type: TransactionType,
        record: HistoryRecord,
        staged: HistoryDocument,
        backup_source: str,
    ) -> Transaction:
        tx: Transaction | None = None
        try:
            tx = Transaction.create(tx_type, record, self.temp_dir, backup_source)
            self._write_document(staged, Path(tx.history_temp_path))
            tx.backup()
            tx.prepare()
        except (OSError, JournalError) as e:
            if tx is not None:
                self._cleanup(tx)
            msg = f"Failed to prepare {tx_type.value} of {record.name}: {e}"
            raise JournalError(msg) from e
        self._staged[tx.id] = staged
        logger.debug("Prepared %s transaction %s", tx_type.value, tx.id)
        return tx

    def _commit(self, tx: Transaction) -> None:
        tx.metadata.ensure_active()
        _require_prepared(tx)
        staged = self._staged.pop(tx.id, None)

        try:
            os.replace(tx.history_temp_path, self.history_path)
        except OSError as e:
            try:
                tx.fail(e)
            except OSError as save_err:
                logger.error("Failed to record failure of transaction %s: %s", tx.id, save_err)
            msg = f"Failed to commit {tx.type.value} transaction {tx.id}: {e}"
            raise JournalError(msg) from e

        try:
            tx.discard_backup()
        except OSError as e:
            logger.warning("Failed to remove backup %s: %s", tx.backup_path, e)

        try:
            tx.complete()
        except OSError as e:
            logger.warning("Failed to record completion of transaction %s: %s", tx.id, e)

        try:
            self._document = self._read_document()
        except JournalError as e:
            logger.error("Failed to reload history after commit: %s", e)
            if staged is not None:
                self._document = staged

        self._cleanup(tx)
        logger.debug("Committed %s transaction %s", tx.type.value, tx.id)

    def _rollback(self, tx: Transaction) -> None:
        tx.metadata.ensure_active()
        _require_prepared(tx)
        self._staged.pop(tx.id, None)

        try:
            if tx.restore_from_backup():
                logger.info("Restored %s from backup", tx.backup_source)
        except OSError as e:
            logger.error("Failed to restore backup for transaction %s: %s", tx.id, e)
            try:
                tx.fail(e)
            except OSError as save_err:
                logger.error("Failed to record failure of transaction %s: %s", tx.id, save_err)
            msg = f"Failed to roll back {tx.type.value} transaction {tx.id}: {e}"
            raise JournalError(msg) from e

        try:
            tx.roll_back()
        except OSError as e:
            logger.warning("Failed to record rollback of transaction %s: %s", tx.id, e)

        self._cleanup(tx)
        logger.debug("Rolled back %s transaction %s", tx.type.value, tx.id)

    def _cleanup(self, tx: Transaction) -> None:
        for error in tx.cleanup():
            logger.warning("Transaction %s cleanup: %s", tx.id, error)

    def _read_document(self) -> HistoryDocument:
        path = self.history_path
        if not path.exists():
            return HistoryDocument()

        try:
            text = path.read_text(encoding="utf-8")
            if not text.strip():
                return HistoryDocument()
            return HistoryDocument.from_dict(json.loads(text))
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            msg = f"Failed to read history document {path}: {e}"
            raise JournalError(msg) from e

    def _write_document(self, document: HistoryDocument, path: Path) -> None:
        with path.open("w", encoding="utf-8") as f:
            json.dump(document.to_dict(), f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        path.chmod(0o600)


def _require_prepared(tx: Transaction) -> None:
    if tx.state is not TransactionState.PREPARED:
        msg = f"Transaction {tx.id} is not prepared (state: {tx.state.value})"
        raise InvalidStateTransitionError(msg)


def _is_dropped(candidate: HistoryRecord, target: HistoryRecord) -> bool:
    """Check if candidate leaves the document together with target."""
    if candidate.id == target.id:
        return True
    if not target.is_dir:
        return False
    parent = target.from_path.rstrip(os.sep) + os.sep
    return candidate.from_path.startswith(parent)
