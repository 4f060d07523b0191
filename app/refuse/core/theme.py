"""Color theme for the refuse CLI.

Colors come from the bundled ``data/theme.toml``; a ``theme.toml`` in
the config directory may override any subset of them.
"""

import logging
import re
import tomllib
from functools import lru_cache
from importlib import resources
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.theme import Theme

from refuse.core.paths import get_config_dir

logger = logging.getLogger(__name__)

_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class ThemeColors(BaseModel):
    """Hex colors (#RGB or #RRGGBB) used by CLI output."""

    model_config = ConfigDict(extra="forbid")

    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"

    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    # Trash listing
    entry_file: str = "#ffffff"
    entry_dir: str = "#0e8ac8"
    entry_missing: str = "#d44ebc"
    entry_age: str = "#faf870"

    @field_validator("*", mode="before")
    @classmethod
    def check_hex(cls, v: object) -> str:
        """Reject anything that is not a hex color."""
        if not isinstance(v, str) or not _HEX_COLOR_RE.match(v.strip()):
            msg = f"expected a #RGB or #RRGGBB color, got {v!r}"
            raise ValueError(msg)
        return v.strip()


def get_user_theme_path() -> Path:
    """Path of the optional user override, ~/.config/refuse/theme.toml."""
    return get_config_dir() / "theme.toml"


def get_bundled_theme_path() -> Path:
    """Path of the theme shipped inside the package."""
    return Path(str(resources.files("refuse.data").joinpath("theme.toml")))


def _read_colors(path: Path) -> dict[str, str] | None:
    """Read the [colors] table of a theme file.

    Returns:
        The string values of the table, or None if the file is absent
        or unreadable.
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return None

    table = data.get("colors")
    if not isinstance(table, dict):
        logger.warning("Theme file %s has no [colors] table", path)
        return None
    return {str(k): v for k, v in table.items() if isinstance(v, str)}


def load_theme() -> ThemeColors:
    """Merge user overrides onto the bundled colors.

    Falls back to the built-in defaults if the merged colors are invalid.
    """
    colors = _read_colors(get_bundled_theme_path()) or {}
    overrides = _read_colors(get_user_theme_path())
    if overrides:
        colors.update(overrides)

    try:
        return ThemeColors(**colors)
    except ValidationError as e:
        logger.warning("Invalid theme colors, using defaults: %s", e)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build the Rich theme whose style names the CLI markup refers to."""
    c = colors or load_theme()
    return Theme(
        {
            "text": c.text,
            "muted": c.muted,
            "header": c.header,
            "bold_header": f"bold {c.header}",
            "border": c.border,
            "success": c.success,
            "warning": c.warning,
            "error": f"bold {c.error}",
            "info": c.info,
            "entry.file": c.entry_file,
            "entry.dir": f"bold {c.entry_dir}",
            "entry.missing": f"strike {c.entry_missing}",
            "entry.age": c.entry_age,
        }
    )


@lru_cache(maxsize=1)
def get_theme() -> Theme:
    """Rich theme loaded once per process."""
    return get_rich_theme()
