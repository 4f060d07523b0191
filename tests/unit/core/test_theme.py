"""Unit tests for theme module.

Tests for theme loading, validation, and Rich theme generation.
"""

# pyright: reportPrivateUsage=false

from pathlib import Path

import pytest
from refuse.core.theme import (
    ThemeColors,
    _read_colors,
    get_bundled_theme_path,
    get_rich_theme,
    get_user_theme_path,
    load_theme,
)
from rich.theme import Theme


class TestThemeColors:
    """Tests for ThemeColors Pydantic model."""

    def test_default_values(self) -> None:
        """ThemeColors has sensible defaults."""
        colors = ThemeColors()
        assert colors.text == "#ffffff"
        assert colors.entry_dir == "#0e8ac8"

    def test_short_hex_accepted(self) -> None:
        """#RGB colors are accepted."""
        assert ThemeColors(muted="#abc").muted == "#abc"

    @pytest.mark.parametrize("value", ["ffffff", "#12", "#gggggg"])
    def test_invalid_hex(self, value: str) -> None:
        """Malformed colors are rejected."""
        with pytest.raises(ValueError):
            ThemeColors(text=value)


class TestLoadTheme:
    """Tests for theme loading."""

    def test_bundled_theme_readable(self) -> None:
        """The packaged theme file parses."""
        colors = _read_colors(Path(get_bundled_theme_path()))

        assert colors is not None
        assert "entry_missing" in colors

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file yields None."""
        assert _read_colors(tmp_path / "none.toml") is None

    def test_user_override(self, isolated_home: Path) -> None:
        """User colors override bundled ones."""
        path = get_user_theme_path()
        path.parent.mkdir(parents=True)
        path.write_text('[colors]\nerror = "#ff0000"\n')

        colors = load_theme()

        assert colors.error == "#ff0000"
        assert colors.text == ThemeColors().text

    def test_invalid_override_falls_back(self, isolated_home: Path) -> None:
        """Invalid user colors fall back to the defaults."""
        path = get_user_theme_path()
        path.parent.mkdir(parents=True)
        path.write_text('[colors]\nerror = "red"\n')

        assert load_theme() == ThemeColors()


class TestRichTheme:
    """Tests for get_rich_theme function."""

    def test_styles(self) -> None:
        """Entry styles are registered."""
        theme = get_rich_theme(ThemeColors())

        assert isinstance(theme, Theme)
        for name in ("entry.file", "entry.dir", "entry.missing", "entry.age", "bold_header"):
            assert name in theme.styles
