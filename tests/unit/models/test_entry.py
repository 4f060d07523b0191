"""Unit tests for the trashed entry model."""

from datetime import datetime
from pathlib import Path

import pytest
from refuse.models.entry import StorageLocation, StorageType, TrashedEntry


def _entry(trash_path: str) -> TrashedEntry:
    return TrashedEntry(
        name="a.txt",
        original_path="/home/u/a.txt",
        trash_path=trash_path,
        deleted_at=datetime.now().astimezone(),
    )


class TestTrashedEntry:
    """Tests for TrashedEntry dataclass."""

    def test_empty_trash_path_rejected(self) -> None:
        """An entry must point somewhere inside the trash."""
        with pytest.raises(ValueError, match="Trash path cannot be empty"):
            _entry("")

    def test_exists(self, tmp_path: Path) -> None:
        """exists() reflects whether the payload is present."""
        payload = tmp_path / "a.txt"
        entry = _entry(str(payload))
        assert entry.exists() is False

        payload.write_text("x")
        assert entry.exists() is True

    def test_requires_admin_for_read_only_payload(self, tmp_path: Path) -> None:
        """A payload without owner write permission needs elevation."""
        payload = tmp_path / "a.txt"
        payload.write_text("x")
        payload.chmod(0o444)

        assert _entry(str(payload)).requires_admin() is True

        payload.chmod(0o644)
        assert _entry(str(payload)).requires_admin() is False

    def test_backend_not_compared(self, tmp_path: Path) -> None:
        """Entries compare by data, not by the backend that listed them."""
        a = _entry(str(tmp_path / "a"))
        b = _entry(str(tmp_path / "a"))
        b.deleted_at = a.deleted_at
        b.backend = object()  # type: ignore[assignment]

        assert a == b


class TestEnums:
    """Tests for storage enums."""

    def test_values(self) -> None:
        """Enum values are the names used in output."""
        assert StorageType.XDG.value == "xdg"
        assert StorageType.LEGACY.value == "legacy"
        assert StorageLocation.HOME.value == "home"
