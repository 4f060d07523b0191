"""Configuration model and TOML I/O.

This module defines the single configuration surface for refuse: which
trash backends to use, where they live, and how listings are filtered.

Configuration is stored in ~/.config/refuse/config.toml (or the file
named by REFUSE_CONFIG_PATH). A missing file means all defaults.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any, Literal

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from refuse.core.paths import get_config_path
from refuse.utils.units import parse_size

logger = logging.getLogger(__name__)

# "auto" uses xdg, plus legacy when the legacy root already exists
Strategy = Literal["auto", "xdg", "legacy"]


class CoreConfig(BaseModel):
    """Backend selection and locations.

    Attributes:
        strategy: Which backends to enable.
        home_trash_dir: Override for the xdg home trash directory.
        legacy_dir: Override for the legacy trash root.
        force_home_trash: Never use per-device trash directories.
        home_fallback: Trash into the home location (copying across
            devices) when no backend shares the object's device.
        stale_transaction_minutes: Age after which interrupted legacy
            transactions are rolled back.
    """

    model_config = ConfigDict(extra="forbid")

    strategy: Annotated[Strategy, Field(description="Trash backends to use")] = "auto"
    home_trash_dir: Annotated[
        str | None,
        Field(description="Home trash directory (None = $XDG_DATA_HOME/Trash)"),
    ] = None
    legacy_dir: Annotated[
        str | None,
        Field(description="Legacy trash root (None = ~/.refuse)"),
    ] = None
    force_home_trash: Annotated[bool, Field(description="Ignore per-device trash directories")] = False
    home_fallback: Annotated[bool, Field(description="Fall back to the home trash across devices")] = True
    stale_transaction_minutes: Annotated[
        int,
        Field(ge=1, le=10080, description="Recovery staleness threshold in minutes"),
    ] = 60

    @field_validator("home_trash_dir", "legacy_dir")
    @classmethod
    def expand_dir(cls, v: str | None) -> str | None:
        """Expand ~ and reject relative directories."""
        if v is None or not v.strip():
            return None
        expanded = os.path.expanduser(v.strip())
        if not os.path.isabs(expanded):
            msg = f"directory must be absolute: {v}"
            raise ValueError(msg)
        return expanded


class IncludeConfig(BaseModel):
    """Entries to keep in listings.

    Attributes:
        within_days: Only list entries trashed within this many days (0 = all).
    """

    model_config = ConfigDict(extra="forbid")

    within_days: Annotated[int, Field(ge=0)] = 0


class SizeConfig(BaseModel):
    """Size range outside of which entries are hidden.

    Attributes:
        min: Entries at or below this size are hidden ("" = no bound).
        max: Entries at or above this size are hidden ("" = no bound).
    """

    model_config = ConfigDict(extra="forbid")

    min: str = ""
    max: str = ""

    @field_validator("min", "max")
    @classmethod
    def validate_size(cls, v: str) -> str:
        """Validate that a bound is a human-readable size."""
        v = v.strip()
        if v:
            parse_size(v)
        return v

    @property
    def min_bytes(self) -> int | None:
        return parse_size(self.min) if self.min else None

    @property
    def max_bytes(self) -> int | None:
        return parse_size(self.max) if self.max else None


class ExcludeConfig(BaseModel):
    """Entries to hide from listings.

    Attributes:
        files: Exact base names.
        patterns: Regular expressions matched anywhere in the name.
        globs: Shell-style patterns matched against the whole name.
        size: Size range bounds.
    """

    model_config = ConfigDict(extra="forbid")

    files: list[str] = Field(default_factory=list)
    patterns: list[str] = Field(default_factory=list)
    globs: list[str] = Field(default_factory=list)
    size: SizeConfig = Field(default_factory=SizeConfig)


class HistoryConfig(BaseModel):
    """Listing filters."""

    model_config = ConfigDict(extra="forbid")

    include: IncludeConfig = Field(default_factory=IncludeConfig)
    exclude: ExcludeConfig = Field(default_factory=ExcludeConfig)


class RefuseConfig(BaseModel):
    """Complete refuse configuration."""

    model_config = ConfigDict(extra="forbid")

    core: CoreConfig = Field(default_factory=CoreConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the config file is not valid TOML."""


def load_config(path: Path | None = None) -> RefuseConfig:
    """Load configuration from a TOML file.

    Args:
        path: Config file. If None, uses the default config path.

    Returns:
        Validated configuration (defaults if the file does not exist).

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read or does not match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        logger.debug("No config file at %s, using defaults", config_path)
        return RefuseConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML syntax in {config_path}: {e}"
        raise ConfigParseError(msg) from e
    except OSError as e:
        msg = f"Failed to read config {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return RefuseConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        msg = f"Invalid config content in {config_path}: {e}"
        raise ConfigError(msg) from e


def save_config(config: RefuseConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written to a temporary file in the same directory and
    moved into place with os.replace().

    Args:
        config: Configuration to save.
        path: Target file. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(mode="wb", dir=config_path.parent, delete=False, suffix=".tmp") as f:
            tmp_path = Path(f.name)
            tomli_w.dump(config_to_dict(config), f)
        os.replace(tmp_path, config_path)
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        msg = f"Failed to write config {config_path}: {e}"
        raise ConfigError(msg) from e

    return config_path


def config_to_dict(config: RefuseConfig) -> dict[str, Any]:
    """Convert configuration to a TOML-serializable dictionary.

    Unset optional directories are omitted since TOML has no null.
    """
    return config.model_dump(exclude_none=True)
