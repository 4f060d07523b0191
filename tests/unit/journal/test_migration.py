"""Unit tests for the inventory.json rename."""

from pathlib import Path

from refuse.journal.migration import migrate_inventory


class TestMigrateInventory:
    """Tests for migrate_inventory function."""

    def test_renames_old_document(self, tmp_path: Path) -> None:
        """inventory.json becomes history.json with the same content."""
        (tmp_path / "inventory.json").write_text('{"version": 1, "files": []}')

        assert migrate_inventory(tmp_path) is True
        assert (tmp_path / "history.json").read_text() == '{"version": 1, "files": []}'
        assert not (tmp_path / "inventory.json").exists()

    def test_nothing_to_do(self, tmp_path: Path) -> None:
        """Without an old document nothing happens."""
        assert migrate_inventory(tmp_path) is False
        assert not (tmp_path / "history.json").exists()

    def test_new_document_wins(self, tmp_path: Path) -> None:
        """When both exist the new document is kept untouched."""
        (tmp_path / "inventory.json").write_text("old")
        (tmp_path / "history.json").write_text("new")

        assert migrate_inventory(tmp_path) is False
        assert (tmp_path / "history.json").read_text() == "new"
        assert (tmp_path / "inventory.json").read_text() == "old"
