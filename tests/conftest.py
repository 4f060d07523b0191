"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME and the XDG directories at a throwaway tree.

    Keeps every test away from the real trash and configuration.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.delenv("REFUSE_CONFIG_PATH", raising=False)
    return home


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    """Directory holding files that tests move to the trash."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def home_trash(tmp_path: Path) -> Path:
    """Root of a freedesktop.org home trash for SpecBackend tests."""
    return tmp_path / "home" / ".local" / "share" / "Trash"


@pytest.fixture
def legacy_root(tmp_path: Path) -> Path:
    """Root of a legacy single-directory trash."""
    return tmp_path / "legacy"


@pytest.fixture
def config_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Write a config that uses only the home xdg trash."""
    path = tmp_path / "config.toml"
    path.write_text('[core]\nstrategy = "xdg"\nforce_home_trash = true\n')
    monkeypatch.setenv("REFUSE_CONFIG_PATH", str(path))
    return path
