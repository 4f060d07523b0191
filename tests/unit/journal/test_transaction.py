"""Unit tests for transactions and their staging artifacts."""

import json
import os
from pathlib import Path

import pytest
from refuse.journal.state import TransactionState
from refuse.journal.transaction import (
    Transaction,
    TransactionType,
    is_descriptor_name,
    load_descriptors,
)
from refuse.models.history import create_history_record


@pytest.fixture
def source(tmp_path: Path) -> Path:
    path = tmp_path / "doc.txt"
    path.write_text("payload")
    return path


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    return tmp_path / "temp"


def _create(source: Path, temp_dir: Path) -> Transaction:
    record = create_history_record(str(source), "run")
    return Transaction.create(TransactionType.MOVE, record, temp_dir, str(source))


class TestTransaction:
    """Tests for Transaction."""

    def test_create_writes_descriptor(self, source: Path, temp_dir: Path) -> None:
        """The initial descriptor is persisted with private permissions."""
        tx = _create(source, temp_dir)

        assert tx.state is TransactionState.INITIAL
        assert Path(tx.temp_path).name == f"tx_{tx.id}.json"
        assert os.stat(tx.temp_path).st_mode & 0o777 == 0o600
        data = json.loads(Path(tx.temp_path).read_text())
        assert data["type"] == "move"
        assert data["file"]["from"] == str(source)

    def test_load_matches_saved(self, source: Path, temp_dir: Path) -> None:
        """A loaded descriptor reflects the last saved state."""
        tx = _create(source, temp_dir)
        tx.prepare()

        loaded = Transaction.load(tx.temp_path)

        assert loaded.id == tx.id
        assert loaded.state is TransactionState.PREPARED
        assert loaded.record == tx.record
        assert loaded.backup_path == tx.backup_path

    def test_backup_and_restore(self, source: Path, temp_dir: Path) -> None:
        """The backup is copied back once the source is gone."""
        tx = _create(source, temp_dir)
        tx.backup()
        source.unlink()

        assert tx.restore_from_backup() is True
        assert source.read_text() == "payload"

    def test_restore_skipped_when_source_present(self, source: Path, temp_dir: Path) -> None:
        """An intact source is never overwritten by the backup."""
        tx = _create(source, temp_dir)
        tx.backup()
        source.write_text("newer")

        assert tx.restore_from_backup() is False
        assert source.read_text() == "newer"

    def test_restore_without_backup(self, source: Path, temp_dir: Path) -> None:
        """A missing source with no backup raises FileNotFoundError."""
        tx = _create(source, temp_dir)
        source.unlink()

        with pytest.raises(FileNotFoundError):
            tx.restore_from_backup()

    def test_cleanup_tolerates_missing(self, source: Path, temp_dir: Path) -> None:
        """cleanup removes what exists and ignores the rest."""
        tx = _create(source, temp_dir)
        tx.backup()

        assert tx.cleanup() == []
        assert list(temp_dir.iterdir()) == []
        assert tx.cleanup() == []


class TestDescriptors:
    """Tests for descriptor discovery."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("tx_abc.json", True),
            ("tx_.json", False),
            ("history_abc.json", False),
            ("tx_abc.json.tmp", False),
        ],
    )
    def test_is_descriptor_name(self, name: str, expected: bool) -> None:
        """Only tx_<id>.json files are descriptors."""
        assert is_descriptor_name(name) is expected

    def test_load_skips_corrupt(self, source: Path, temp_dir: Path) -> None:
        """Corrupt descriptors are skipped."""
        tx = _create(source, temp_dir)
        (temp_dir / "tx_broken.json").write_text("{not json")

        loaded = load_descriptors(temp_dir)

        assert [t.id for t in loaded] == [tx.id]

    def test_load_missing_dir(self, tmp_path: Path) -> None:
        """A missing staging directory yields nothing."""
        assert load_descriptors(tmp_path / "nope") == []
