"""Unit tests for the trash CLI commands.

Runs every command against a real home trash in a temporary directory.
"""

import json
from pathlib import Path

import pytest
from refuse import __version__
from refuse.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def trash(config_path: Path, home_trash: Path) -> Path:
    """Home trash used by the CLI (config written first)."""
    return home_trash


def _put(*paths: Path) -> None:
    result = runner.invoke(app, ["put", *[str(p) for p in paths]])
    assert result.exit_code == 0, result.output


def _list_json() -> list[dict[str, object]]:
    result = runner.invoke(app, ["list", "--format", "json"])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestMain:
    """Tests for global options."""

    def test_version(self) -> None:
        """--version prints the version and exits."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"refuse {__version__}" in result.stdout

    def test_no_args_shows_help(self) -> None:
        """Running without a command prints usage."""
        result = runner.invoke(app, [])

        assert "Usage" in result.output


class TestPut:
    """Tests for the put command."""

    def test_put_files(self, trash: Path, work_dir: Path) -> None:
        """Files move into the home trash."""
        a = work_dir / "a.txt"
        b = work_dir / "b.txt"
        a.write_text("a")
        b.write_text("b")

        _put(a, b)

        assert not a.exists()
        assert not b.exists()
        assert sorted(p.name for p in (trash / "files").iterdir()) == ["a.txt", "b.txt"]

    def test_put_missing_fails(self, trash: Path, work_dir: Path) -> None:
        """A missing path gives exit code 1 but others still go."""
        good = work_dir / "good.txt"
        good.write_text("x")

        result = runner.invoke(app, ["put", str(work_dir / "ghost"), str(good)])

        assert result.exit_code == 1
        assert not good.exists()

    def test_put_dot_refused(self, trash: Path) -> None:
        """The current directory is never trashed."""
        result = runner.invoke(app, ["put", "."])

        assert result.exit_code == 1

    def test_quiet(self, trash: Path, work_dir: Path) -> None:
        """--quiet suppresses success messages."""
        src = work_dir / "a.txt"
        src.write_text("x")

        result = runner.invoke(app, ["--quiet", "put", str(src)])

        assert result.exit_code == 0
        assert result.stdout == ""


class TestList:
    """Tests for the list command."""

    def test_empty(self, trash: Path) -> None:
        """An empty trash says so."""
        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "Trash is empty." in result.stdout

    def test_json(self, trash: Path, work_dir: Path) -> None:
        """JSON output describes every entry."""
        src = work_dir / "a.txt"
        src.write_text("hello")
        _put(src)

        (entry,) = _list_json()

        assert entry["name"] == "a.txt"
        assert entry["original_path"] == str(src)
        assert entry["size"] == 5
        assert entry["storage"] == "xdg"

    def test_table(self, trash: Path, work_dir: Path) -> None:
        """The table output has a title."""
        src = work_dir / "a.txt"
        src.write_text("hello")
        _put(src)

        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "Trash" in result.stdout

    def test_filters_and_all(self, config_path: Path, home_trash: Path, work_dir: Path) -> None:
        """[history] filters apply unless --all is given."""
        config_path.write_text(
            '[core]\nstrategy = "xdg"\nforce_home_trash = true\n\n[history.exclude]\nglobs = ["*.log"]\n'
        )
        log = work_dir / "debug.log"
        log.write_text("x")
        _put(log)

        assert _list_json() == []
        result = runner.invoke(app, ["list", "--all", "--format", "json"])
        assert [e["name"] for e in json.loads(result.stdout)] == ["debug.log"]


class TestRestore:
    """Tests for the restore command."""

    def test_restore_by_name(self, trash: Path, work_dir: Path) -> None:
        """An entry is restored by its original name."""
        src = work_dir / "a.txt"
        src.write_text("hello")
        _put(src)

        result = runner.invoke(app, ["restore", "a.txt"])

        assert result.exit_code == 0
        assert src.read_text() == "hello"
        assert _list_json() == []

    def test_restore_to(self, trash: Path, work_dir: Path) -> None:
        """--to restores to another location."""
        src = work_dir / "a.txt"
        src.write_text("hello")
        _put(src)
        dest = work_dir / "b.txt"

        result = runner.invoke(app, ["restore", str(src), "--to", str(dest)])

        assert result.exit_code == 0
        assert dest.read_text() == "hello"
        assert not src.exists()

    def test_restore_unknown(self, trash: Path) -> None:
        """Unknown entries give exit code 1."""
        result = runner.invoke(app, ["restore", "nothing.txt"])

        assert result.exit_code == 1

    def test_restore_occupied(self, trash: Path, work_dir: Path) -> None:
        """An occupied original path is not overwritten."""
        src = work_dir / "a.txt"
        src.write_text("old")
        _put(src)
        src.write_text("new")

        result = runner.invoke(app, ["restore", "a.txt"])

        assert result.exit_code == 1
        assert src.read_text() == "new"
        assert len(_list_json()) == 1


class TestRemove:
    """Tests for the remove command."""

    def test_remove_yes(self, trash: Path, work_dir: Path) -> None:
        """--yes deletes without asking."""
        src = work_dir / "a.txt"
        src.write_text("x")
        _put(src)

        result = runner.invoke(app, ["remove", "a.txt", "--yes"])

        assert result.exit_code == 0
        assert list((trash / "files").iterdir()) == []
        assert list((trash / "info").iterdir()) == []

    def test_remove_declined(self, trash: Path, work_dir: Path) -> None:
        """Answering no keeps the entry."""
        src = work_dir / "a.txt"
        src.write_text("x")
        _put(src)

        result = runner.invoke(app, ["remove", "a.txt"], input="n\n")

        assert result.exit_code == 0
        assert len(_list_json()) == 1


class TestPrune:
    """Tests for the prune command."""

    def test_nothing_old_enough(self, trash: Path, work_dir: Path) -> None:
        """Fresh entries survive a 30 day prune."""
        src = work_dir / "a.txt"
        src.write_text("x")
        _put(src)

        result = runner.invoke(app, ["prune", "30d", "--yes"])

        assert result.exit_code == 0
        assert "No entries to prune." in result.stdout
        assert len(_list_json()) == 1

    def test_prune_all(self, trash: Path, work_dir: Path) -> None:
        """A zero age selects everything."""
        src = work_dir / "a.txt"
        src.write_text("x")
        _put(src)

        result = runner.invoke(app, ["prune", "0h", "--yes"])

        assert result.exit_code == 0
        assert _list_json() == []

    def test_dry_run(self, trash: Path, work_dir: Path) -> None:
        """--dry-run deletes nothing."""
        src = work_dir / "a.txt"
        src.write_text("x")
        _put(src)

        result = runner.invoke(app, ["prune", "0h", "--dry-run"])

        assert result.exit_code == 0
        assert len(_list_json()) == 1

    @pytest.mark.parametrize("args", [["soon"], ["1d", "2d", "3d"]])
    def test_bad_durations(self, trash: Path, args: list[str]) -> None:
        """Unparseable or too many durations give exit code 1."""
        result = runner.invoke(app, ["prune", *args])

        assert result.exit_code == 1


class TestOrphans:
    """Tests for the orphans command."""

    def test_none(self, trash: Path) -> None:
        """A consistent trash has no orphans."""
        result = runner.invoke(app, ["orphans"])

        assert result.exit_code == 0
        assert "No orphaned files found." in result.stdout

    def test_prune(self, trash: Path) -> None:
        """--prune deletes sidecars without payload."""
        sidecar = trash / "info" / "ghost.trashinfo"
        sidecar.parent.mkdir(mode=0o700, parents=True)
        sidecar.write_text("[Trash Info]\nPath=/x/ghost\nDeletionDate=2024-01-01T00:00:00\n")

        result = runner.invoke(app, ["orphans", "--prune", "--yes"])

        assert result.exit_code == 0
        assert not sidecar.exists()


class TestConfigCommands:
    """Tests for the config sub-commands."""

    def test_path(self, config_path: Path) -> None:
        """config path prints the active file."""
        result = runner.invoke(app, ["config", "path"])

        assert result.exit_code == 0
        assert result.stdout.strip() == str(config_path)

    def test_show(self, config_path: Path) -> None:
        """config show prints the effective settings."""
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        assert 'strategy = "xdg"' in result.stdout
        assert "force_home_trash = true" in result.stdout

    def test_init(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """config init writes defaults once, then needs --force."""
        path = tmp_path / "new" / "config.toml"
        monkeypatch.setenv("REFUSE_CONFIG_PATH", str(path))

        first = runner.invoke(app, ["config", "init"])
        second = runner.invoke(app, ["config", "init"])
        forced = runner.invoke(app, ["config", "init", "--force"])

        assert first.exit_code == 0
        assert path.exists()
        assert second.exit_code == 1
        assert forced.exit_code == 0

    def test_invalid_config(self, config_path: Path) -> None:
        """A broken config file gives exit code 1."""
        config_path.write_text("[core\n")

        result = runner.invoke(app, ["list"])

        assert result.exit_code == 1
