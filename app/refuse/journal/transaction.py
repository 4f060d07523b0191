"""Journal transactions and their staging artifacts.

A transaction owns three staging artifacts inside the journal's temp
directory: its JSON descriptor (``tx_<id>.json``), the staged history
document (``history_<id>.json``) and a backup of the affected file or
directory (``backup_<id>``). The descriptor is rewritten on every state
change so that a crashed process leaves enough behind for recovery.
"""

import json
import logging
import os
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from refuse.filesystem.mover import copy_path, remove_path
from refuse.journal.state import TransactionMetadata, TransactionState
from refuse.models.history import HistoryRecord

logger = logging.getLogger(__name__)

TX_PREFIX = "tx_"
TX_SUFFIX = ".json"


class TransactionType(str, Enum):
    """Kind of document mutation.

    Attributes:
        MOVE: A record is added (object moved into the trash).
        RESTORE: A record is dropped (object restored or purged).
    """

    MOVE = "move"
    RESTORE = "restore"


@dataclass(slots=True)
class Transaction:
    """A single two-phase mutation of the history document.

    Attributes:
        id: Unique identifier (UUID hex).
        type: Kind of mutation.
        record: History record being added or dropped.
        metadata: State machine and timestamps.
        backup_source: Path that was (or will be) backed up.
        temp_path: Descriptor file.
        history_temp_path: Staged history document.
        backup_path: Backup copy of backup_source.
    """

    id: str
    type: TransactionType
    record: HistoryRecord
    metadata: TransactionMetadata
    backup_source: str
    temp_path: str
    history_temp_path: str
    backup_path: str

    @classmethod
    def create(
        cls,
        tx_type: TransactionType,
        record: HistoryRecord,
        temp_dir: str | Path,
        backup_source: str,
    ) -> "Transaction":
        """Create a transaction and persist its initial descriptor.

        Args:
            tx_type: Kind of mutation.
            record: Record being added or dropped.
            temp_dir: Journal staging directory.
            backup_source: Path to back up during prepare.

        Returns:
            New transaction in the INITIAL state.

        Raises:
            OSError: If the staging directory or descriptor cannot be written.
        """
        tx_id = uuid.uuid4().hex
        temp_dir = os.fspath(temp_dir)
        os.makedirs(temp_dir, mode=0o700, exist_ok=True)

        tx = cls(
            id=tx_id,
            type=tx_type,
            record=record,
            metadata=TransactionMetadata(description=f"{tx_type.value} operation for {record.name}"),
            backup_source=backup_source,
            temp_path=os.path.join(temp_dir, f"{TX_PREFIX}{tx_id}{TX_SUFFIX}"),
            history_temp_path=os.path.join(temp_dir, f"history_{tx_id}.json"),
            backup_path=os.path.join(temp_dir, f"backup_{tx_id}"),
        )
        tx.save()
        return tx

    @property
    def state(self) -> TransactionState:
        """Current lifecycle state."""
        return self.metadata.state

    def save(self) -> None:
        """Write the descriptor, replacing any previous version atomically.

        Raises:
            OSError: If the descriptor cannot be written.
        """
        tmp_path = self.temp_path + ".tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.temp_path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    @classmethod
    def load(cls, path: str | Path) -> "Transaction":
        """Read a descriptor from disk.

        Raises:
            OSError: If the file cannot be read.
            json.JSONDecodeError: If the file is not valid JSON.
            KeyError, ValueError: If the descriptor is malformed.
        """
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        tx = cls.from_dict(data)
        tx.temp_path = os.fspath(path)
        return tx

    def prepare(self) -> None:
        """Mark the transaction PREPARED and persist it."""
        self.metadata.transition(TransactionState.PREPARED)
        self.save()

    def complete(self) -> None:
        """Mark the transaction COMMITTED and persist it."""
        self.metadata.transition(TransactionState.COMMITTED)
        self.save()

    def roll_back(self) -> None:
        """Mark the transaction ROLLED_BACK and persist it."""
        self.metadata.transition(TransactionState.ROLLED_BACK)
        self.save()

    def fail(self, error: BaseException | str) -> None:
        """Mark the transaction FAILED and persist it."""
        self.metadata.fail(error)
        self.save()

    def backup(self) -> None:
        """Copy backup_source to the backup location.

        Raises:
            OSError: If the copy fails.
        """
        os.makedirs(os.path.dirname(self.backup_path), mode=0o700, exist_ok=True)
        copy_path(self.backup_source, self.backup_path)

    def restore_from_backup(self) -> bool:
        """Put the backup back at backup_source if the original is gone.

        An existing backup_source is left alone: the object is still
        where it was and copying over it would only duplicate data.

        Returns:
            True if the backup was copied back.

        Raises:
            FileNotFoundError: If the original is gone and no backup exists.
            OSError: If the copy fails.
        """
        if os.path.lexists(self.backup_source):
            logger.debug("Backup source %s still present, nothing to restore", self.backup_source)
            return False
        if not os.path.lexists(self.backup_path):
            msg = f"backup does not exist: {self.backup_path}"
            raise FileNotFoundError(msg)

        os.makedirs(os.path.dirname(self.backup_source) or ".", mode=0o755, exist_ok=True)
        copy_path(self.backup_path, self.backup_source)
        return True

    def discard_backup(self) -> None:
        """Delete the backup copy if it exists.

        Raises:
            OSError: If the backup exists but cannot be deleted.
        """
        if os.path.lexists(self.backup_path):
            remove_path(self.backup_path)

    def cleanup(self) -> list[str]:
        """Remove every staging artifact, tolerating missing files.

        Returns:
            Error messages for artifacts that could not be removed
            (empty on full success).
        """
        errors: list[str] = []
        for label, path in (
            ("transaction file", self.temp_path),
            ("transaction temp file", self.temp_path + ".tmp"),
            ("history file", self.history_temp_path),
            ("backup", self.backup_path),
        ):
            if not os.path.lexists(path):
                continue
            try:
                remove_path(path)
            except OSError as e:
                errors.append(f"remove {label}: {e}")
        return errors

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "id": self.id,
            "type": self.type.value,
            "file": self.record.to_dict(),
            "metadata": self.metadata.to_dict(),
            "backup_source": self.backup_source,
            "temp_path": self.temp_path,
            "history_temp_path": self.history_temp_path,
            "backup_path": self.backup_path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If a value is invalid.
        """
        record = HistoryRecord.from_dict(data["file"])
        tx_type = TransactionType(data["type"])
        default_source = record.from_path if tx_type is TransactionType.MOVE else record.to_path
        return cls(
            id=data["id"],
            type=tx_type,
            record=record,
            metadata=TransactionMetadata.from_dict(data["metadata"]),
            backup_source=data.get("backup_source") or default_source,
            temp_path=data["temp_path"],
            history_temp_path=data["history_temp_path"],
            backup_path=data["backup_path"],
        )


def is_descriptor_name(name: str) -> bool:
    """Check if a file name looks like a transaction descriptor."""
    return name.startswith(TX_PREFIX) and name.endswith(TX_SUFFIX) and len(name) > len(TX_PREFIX) + len(TX_SUFFIX)


def load_descriptors(temp_dir: str | Path) -> list[Transaction]:
    """Load every readable transaction descriptor from a staging directory.

    Unreadable or malformed descriptors are logged and skipped.

    Args:
        temp_dir: Journal staging directory.

    Returns:
        Loaded transactions, sorted by file name.
    """
    try:
        names = sorted(os.listdir(temp_dir))
    except FileNotFoundError:
        return []

    transactions: list[Transaction] = []
    for name in names:
        path = os.path.join(temp_dir, name)
        if not is_descriptor_name(name) or not os.path.isfile(path):
            continue
        try:
            transactions.append(Transaction.load(path))
        except (OSError, json.JSONDecodeError, KeyError, ValueError) as e:
            logger.warning("Skipping unreadable transaction file %s: %s", path, e)
    return transactions
