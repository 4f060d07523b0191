"""XDG-compliant path management for refuse.

This module provides standardized paths following the XDG Base Directory
Specification for configuration and trash storage.

XDG defaults:
- Config: ~/.config/refuse/config.toml
- Home trash: ~/.local/share/Trash/
- Legacy trash: ~/.refuse/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "refuse"

# Environment variable overriding the config file location
CONFIG_PATH_ENV = "REFUSE_CONFIG_PATH"


def _get_xdg_base(env_var: str, default_subdir: str) -> Path:
    """Get an XDG base directory respecting the environment override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_DATA_HOME").
        default_subdir: Default subdirectory under home (e.g., ".local/share").

    Returns:
        Path to the base directory (without the application name).
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base)
    return Path.home() / default_subdir


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/refuse/ (or XDG_CONFIG_HOME/refuse/).
    """
    return _get_xdg_base("XDG_CONFIG_HOME", ".config") / APP_NAME


def get_config_path() -> Path:
    """Get the configuration file path.

    The REFUSE_CONFIG_PATH environment variable takes precedence over
    the XDG location.

    Returns:
        Path to the config.toml file.
    """
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return get_config_dir() / "config.toml"


def get_data_home() -> Path:
    """Get the XDG data home directory.

    Returns:
        Path to ~/.local/share (or XDG_DATA_HOME).
    """
    return _get_xdg_base("XDG_DATA_HOME", ".local/share")


def get_home_trash_dir() -> Path:
    """Get the home trash directory of the freedesktop.org trash layout.

    Returns:
        Path to ~/.local/share/Trash (or XDG_DATA_HOME/Trash).
    """
    return get_data_home() / "Trash"


def get_legacy_trash_dir() -> Path:
    """Get the legacy single-directory trash root.

    Returns:
        Path to ~/.refuse.
    """
    return Path.home() / f".{APP_NAME}"
