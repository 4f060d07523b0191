"""Unit tests for the freedesktop.org trash backend."""

import os
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from refuse.backends.base import Backend
from refuse.backends.trashinfo import load_trashinfo
from refuse.backends.xdg import SpecBackend
from refuse.core.errors import (
    CrossDeviceError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    error_is,
)
from refuse.filesystem.mounts import MountIndex
from refuse.models.entry import StorageLocation, StorageType

SIDECAR = "[Trash Info]\nPath={path}\nDeletionDate=2024-05-01T12:30:05\n"


@pytest.fixture
def backend(home_trash: Path) -> SpecBackend:
    return SpecBackend(home_trash, force_home_trash=True)


class TestSpecBackendInit:
    """Tests for SpecBackend construction."""

    def test_creates_home_layout(self, backend: SpecBackend, home_trash: Path) -> None:
        """files/ and info/ are created with private permissions."""
        assert (home_trash / "files").is_dir()
        assert os.stat(home_trash / "info").st_mode & 0o777 == 0o700

    def test_info(self, backend: SpecBackend, home_trash: Path) -> None:
        """info() describes the home trash."""
        info = backend.info()

        assert info.type is StorageType.XDG
        assert info.location is StorageLocation.HOME
        assert info.root == str(home_trash)
        assert info.available is True

    def test_satisfies_protocol(self, backend: SpecBackend) -> None:
        """SpecBackend is a Backend."""
        assert isinstance(backend, Backend)

    def test_defaults_to_xdg_data_home(self, isolated_home: Path) -> None:
        """Without an override the trash lives under XDG_DATA_HOME."""
        backend = SpecBackend(force_home_trash=True)

        assert backend.home.root == str(isolated_home / ".local" / "share" / "Trash")

    def test_discovers_device_trash(self, tmp_path: Path, home_trash: Path) -> None:
        """A valid $topdir/.Trash-$uid on a mount is picked up."""
        mount = tmp_path / "mnt"
        device_trash = mount / ".Trash-4242"
        (device_trash / "files").mkdir(parents=True)
        (device_trash / "info").mkdir()
        index = MountIndex(lambda: [SimpleNamespace(mountpoint=str(mount), fstype="ext4", opts="rw")])

        backend = SpecBackend(home_trash, mounts=index, uid=4242)

        assert [loc.root for loc in backend.external] == [str(device_trash)]
        assert backend.external[0].mount == str(mount)

    def test_shared_trash_requires_sticky_bit(self, tmp_path: Path, home_trash: Path) -> None:
        """$topdir/.Trash/$uid is ignored unless .Trash has the sticky bit."""
        mount = tmp_path / "mnt"
        shared = mount / ".Trash"
        (shared / "4242" / "files").mkdir(parents=True)
        (shared / "4242" / "info").mkdir()
        index = MountIndex(lambda: [SimpleNamespace(mountpoint=str(mount), fstype="ext4", opts="rw")])

        assert SpecBackend(home_trash, mounts=index, uid=4242).external == []

        shared.chmod(0o1777)
        backend = SpecBackend(home_trash, mounts=index, uid=4242)

        assert [loc.root for loc in backend.external] == [str(shared / "4242")]


class TestPut:
    """Tests for SpecBackend.put."""

    def test_put_writes_payload_and_sidecar(
        self, backend: SpecBackend, home_trash: Path, work_dir: Path
    ) -> None:
        """The payload moves to files/ and the sidecar records its origin."""
        src = work_dir / "my report.txt"
        src.write_text("content")

        backend.put(src)

        assert not src.exists()
        assert (home_trash / "files" / "my report.txt").read_text() == "content"
        sidecar = home_trash / "info" / "my report.txt.trashinfo"
        assert sidecar.read_text().startswith("[Trash Info]\n")
        assert "/my%20report.txt\n" in sidecar.read_text()
        assert load_trashinfo(sidecar).path == str(src)

    def test_name_collision_gets_suffix(
        self, backend: SpecBackend, home_trash: Path, work_dir: Path
    ) -> None:
        """A second object with the same name gets a counter suffix."""
        for sub in ("one", "two", "three"):
            (work_dir / sub).mkdir()
            (work_dir / sub / "a.txt").write_text(sub)
            backend.put(work_dir / sub / "a.txt")

        names = sorted(os.listdir(home_trash / "files"))
        assert names == ["a.txt", "a.txt_1", "a.txt_2"]
        assert (home_trash / "files" / "a.txt_1").read_text() == "two"

    def test_put_directory(self, backend: SpecBackend, home_trash: Path, work_dir: Path) -> None:
        """Directories are trashed whole."""
        src = work_dir / "project"
        (src / "src").mkdir(parents=True)
        (src / "src" / "main.py").write_text("print()")

        backend.put(src)

        assert (home_trash / "files" / "project" / "src" / "main.py").exists()

    def test_put_missing(self, backend: SpecBackend, work_dir: Path) -> None:
        """A missing path raises a StorageError wrapping NotFoundError."""
        with pytest.raises(StorageError) as exc_info:
            backend.put(work_dir / "ghost")

        assert exc_info.value.op == "put"
        assert error_is(exc_info.value, NotFoundError)

    def test_failed_move_removes_sidecar(
        self, backend: SpecBackend, home_trash: Path, work_dir: Path
    ) -> None:
        """No sidecar is left behind when the payload cannot be moved."""
        src = work_dir / "a.txt"
        src.write_text("x")

        with patch("refuse.backends.xdg.move", side_effect=PermissionError("denied")):
            with pytest.raises(StorageError) as exc_info:
                backend.put(src)

        assert error_is(exc_info.value, PermissionDeniedError)
        assert error_is(exc_info.value, PermissionError)
        assert src.exists()
        assert os.listdir(home_trash / "info") == []

    def test_cross_device_without_fallback(self, home_trash: Path, work_dir: Path) -> None:
        """With fallback disabled a foreign device is an error."""
        backend = SpecBackend(home_trash, force_home_trash=True, home_fallback=False)
        src = work_dir / "a.txt"
        src.write_text("x")

        with patch("refuse.backends.xdg.same_device", return_value=False):
            with pytest.raises(StorageError) as exc_info:
                backend.put(src)

        assert error_is(exc_info.value, CrossDeviceError)
        assert src.exists()

    def test_cross_device_falls_back_to_home(
        self, backend: SpecBackend, home_trash: Path, work_dir: Path
    ) -> None:
        """With fallback enabled a foreign device goes to the home trash."""
        src = work_dir / "a.txt"
        src.write_text("x")

        with patch("refuse.backends.xdg.same_device", return_value=False):
            backend.put(src)

        assert (home_trash / "files" / "a.txt").exists()


class TestListRestoreRemove:
    """Tests for listing, restoring and removing entries."""

    def test_list_entries(self, backend: SpecBackend, work_dir: Path) -> None:
        """Listed entries carry original location, size and backend."""
        src = work_dir / "a b.txt"
        src.write_text("12345")
        backend.put(src)

        entries = backend.list()

        assert len(entries) == 1
        entry = entries[0]
        assert entry.name == "a b.txt"
        assert entry.original_path == str(src)
        assert entry.size == 5
        assert entry.is_dir is False
        assert entry.backend is backend

    def test_list_skips_unpaired_and_invalid(self, backend: SpecBackend, home_trash: Path) -> None:
        """Payloads without a valid sidecar are not listed."""
        (home_trash / "files" / "stray").write_text("x")
        (home_trash / "files" / "broken").write_text("x")
        (home_trash / "info" / "broken.trashinfo").write_text("not a sidecar")
        (home_trash / "files" / "good").write_text("x")
        (home_trash / "info" / "good.trashinfo").write_text(SIDECAR.format(path="/home/u/good"))

        assert [e.name for e in backend.list()] == ["good"]

    def test_list_resolves_relative_paths_on_device(self, tmp_path: Path, home_trash: Path) -> None:
        """Device trash sidecars with relative paths resolve against the mount."""
        mount = tmp_path / "mnt"
        device_trash = mount / ".Trash-4242"
        (device_trash / "files").mkdir(parents=True)
        (device_trash / "info").mkdir()
        (device_trash / "files" / "doc.txt").write_text("x")
        (device_trash / "info" / "doc.txt.trashinfo").write_text(SIDECAR.format(path="docs/doc.txt"))
        index = MountIndex(lambda: [SimpleNamespace(mountpoint=str(mount), fstype="ext4", opts="rw")])

        entries = SpecBackend(home_trash, mounts=index, uid=4242).list()

        assert [e.original_path for e in entries] == [str(mount / "docs" / "doc.txt")]

    def test_restore_to_original(self, backend: SpecBackend, home_trash: Path, work_dir: Path) -> None:
        """Restoring moves the payload back and deletes the sidecar."""
        src = work_dir / "a.txt"
        src.write_text("x")
        backend.put(src)

        backend.restore(backend.list()[0])

        assert src.read_text() == "x"
        assert os.listdir(home_trash / "files") == []
        assert os.listdir(home_trash / "info") == []

    def test_restore_to_other_path(self, backend: SpecBackend, work_dir: Path) -> None:
        """A destination overrides the original path."""
        src = work_dir / "a.txt"
        src.write_text("x")
        backend.put(src)
        dest = work_dir / "restored" / "b.txt"

        backend.restore(backend.list()[0], dest)

        assert dest.read_text() == "x"
        assert not src.exists()

    def test_remove(self, backend: SpecBackend, home_trash: Path, work_dir: Path) -> None:
        """Removing deletes payload and sidecar."""
        src = work_dir / "dir"
        (src / "inner").mkdir(parents=True)
        backend.put(src)

        backend.remove(backend.list()[0])

        assert backend.list() == []
        assert os.listdir(home_trash / "info") == []

    def test_round_trip_preserves_mode_and_content(
        self, backend: SpecBackend, home_trash: Path, work_dir: Path
    ) -> None:
        """Put then restore to a fresh path keeps bytes and mode and empties the trash."""
        src = work_dir / "report.bin"
        data = bytes(range(256)) * 4
        src.write_bytes(data)
        src.chmod(0o640)
        dest = work_dir / "restored" / "report.bin"

        backend.put(src)
        backend.restore(backend.list()[0], dest)

        assert dest.read_bytes() == data
        assert dest.stat().st_mode & 0o777 == 0o640
        assert os.listdir(home_trash / "files") == []
        assert os.listdir(home_trash / "info") == []


class TestOrphans:
    """Tests for orphan detection and pruning."""

    def test_find_and_prune(self, backend: SpecBackend, home_trash: Path) -> None:
        """Orphaned sidecars are pruned; orphaned payloads are only reported."""
        (home_trash / "info" / "ghost.trashinfo").write_text(SIDECAR.format(path="/x/ghost"))
        (home_trash / "info" / "._ghost.trashinfo").write_text("resource fork")
        (home_trash / "files" / "stray").write_text("x")

        report = backend.find_orphans()

        assert report.sidecars == [str(home_trash / "info" / "ghost.trashinfo")]
        assert report.payloads == [str(home_trash / "files" / "stray")]

        removed = backend.prune_orphans()

        assert removed == [str(home_trash / "info" / "ghost.trashinfo")]
        assert (home_trash / "files" / "stray").exists()
        assert backend.find_orphans().sidecars == []

    def test_clean_trash_has_no_orphans(self, backend: SpecBackend, work_dir: Path) -> None:
        """Paired entries are never reported."""
        src = work_dir / "a.txt"
        src.write_text("x")
        backend.put(src)

        assert backend.find_orphans().is_empty
