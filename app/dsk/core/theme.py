"""Theme management for dsk output.

Provides color theming from bundled TOML palettes (dark, light, ansi) with
user override support.
"""

import logging
import sys
import tomllib
from importlib import resources
from pathlib import Path
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, field_validator
from rich.theme import Theme

from dsk.core.paths import get_theme_path

logger = logging.getLogger(__name__)


class ThemeColors(BaseModel):
    """Color configuration for dsk output.

    All colors must be valid hex codes (#RRGGBB or #RGB).
    """

    model_config = ConfigDict(extra="forbid")

    # Base colors
    text: str = "#ffffff"
    muted: str = "#b9bfca"
    header: str = "#71bef2"
    border: str = "#29526d"

    # Semantic colors
    success: str = "#a8cc8c"
    warning: str = "#dbab79"
    error: str = "#e88388"
    info: str = "#66c2cd"

    # Mount table
    mountpoint: str = "#71bef2"
    usage_low: str = "#a8cc8c"
    usage_medium: str = "#dbab79"
    usage_high: str = "#e88388"
    bar_empty: str = "#5c6370"

    # Trend sparkline
    trend_up: str = "#dbab79"
    trend_down: str = "#a8cc8c"

    @field_validator("*", mode="before")
    @classmethod
    def validate_hex_color(cls, v: object, info: Any) -> str:
        """Validate that all color values are valid hex codes."""
        if not isinstance(v, str):
            msg = f"{info.field_name}: color must be a string"
            raise ValueError(msg)
        color = v.strip()
        if not color.startswith("#"):
            msg = f"{info.field_name}: color must start with '#'"
            raise ValueError(msg)
        color_part = color[1:]
        if len(color_part) not in (3, 6):
            msg = f"{info.field_name}: color must be #RGB or #RRGGBB format"
            raise ValueError(msg)
        try:
            int(color_part, 16)
        except ValueError:
            msg = f"{info.field_name}: invalid hex color '{color}'"
            raise ValueError(msg) from None
        return color


DEFAULT_THEME = "dark"
THEME_NAMES = ("dark", "light", "ansi")


def resolve_theme_name(name: str | None) -> str:
    """Normalize a palette name, falling back to the default for unknown names."""
    if not name:
        return DEFAULT_THEME
    normalized = name.strip().lower()
    if normalized not in THEME_NAMES:
        logger.debug("Unknown theme %r, using %s", name, DEFAULT_THEME)
        return DEFAULT_THEME
    return normalized


def get_bundled_theme_path(name: str | None = DEFAULT_THEME) -> Path:
    """Get the path of a bundled palette.

    Args:
        name: Palette name. Unknown names resolve to the dark palette.

    Returns:
        Path to the bundled data/themes/<name>.toml
    """
    filename = f"{resolve_theme_name(name)}.toml"
    return resources.files("dsk.data").joinpath("themes", filename)  # type: ignore[return-value]


def _load_toml_colors(path: Path) -> dict[str, str] | None:
    """Load colors section from a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Dictionary of color name to hex value, or None if loading failed.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
        colors_raw: object = data.get("colors", {})
        if not isinstance(colors_raw, dict):
            logger.warning("Invalid 'colors' section in %s", path)
            return None
        result: dict[str, str] = {}
        for key, value in cast(dict[str, object], colors_raw).items():
            if isinstance(value, str):
                result[key] = value
        return result
    except FileNotFoundError:
        return None
    except tomllib.TOMLDecodeError as e:
        logger.warning("Failed to parse TOML file %s: %s", path, e)
        return None
    except OSError as e:
        logger.warning("Failed to read theme file %s: %s", path, e)
        return None


def load_theme(name: str | None = DEFAULT_THEME) -> ThemeColors:
    """Load theme colors with user override support.

    Priority:
    1. User theme (~/.config/dsk/theme.toml) - partial or full override
    2. Bundled palette (data/themes/<name>.toml)

    Args:
        name: Bundled palette to start from (dark, light or ansi).

    Returns:
        ThemeColors instance with merged configuration.
    """
    bundled_colors = _load_toml_colors(Path(get_bundled_theme_path(name)))
    if bundled_colors is None:
        logger.error("Failed to load bundled theme - installation may be corrupted")
        bundled_colors = {}

    user_path = get_theme_path()
    user_colors = _load_toml_colors(user_path)

    if user_colors is not None:
        logger.debug("Loaded user theme overrides from %s", user_path)
        merged_colors = {**bundled_colors, **user_colors}
    else:
        merged_colors = bundled_colors

    try:
        return ThemeColors(**merged_colors)
    except ValueError as e:
        logger.warning("Theme validation failed, using defaults: %s", e)
        print(f"Warning: Invalid theme configuration: {e}", file=sys.stderr)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Convert ThemeColors to a Rich Theme.

    Args:
        colors: ThemeColors instance to convert. If None, loads theme automatically.

    Returns:
        Rich Theme instance configured with the color scheme.
    """
    if colors is None:
        colors = load_theme()

    styles: dict[str, str] = {
        "text": colors.text,
        "muted": colors.muted,
        "header": colors.header,
        "border": colors.border,
        "success": colors.success,
        "warning": colors.warning,
        "error": f"bold {colors.error}",
        "info": colors.info,
        "mountpoint": colors.mountpoint,
        "usage_low": colors.usage_low,
        "usage_medium": colors.usage_medium,
        "usage_high": colors.usage_high,
        "bar_empty": colors.bar_empty,
        "trend_up": colors.trend_up,
        "trend_down": colors.trend_down,
        # Convenience styles
        "bold_header": f"bold {colors.header}",
        "dim": colors.muted,
    }

    return Theme(styles)


# Rich themes by resolved palette name
_cached_themes: dict[str, Theme] = {}


def get_theme(name: str | None = DEFAULT_THEME) -> Theme:
    """Get the Rich theme for a palette, loading and caching it if necessary.

    Args:
        name: Palette name. Unknown names resolve to the dark palette.

    Returns:
        Cached Rich Theme instance.
    """
    resolved = resolve_theme_name(name)
    if resolved not in _cached_themes:
        _cached_themes[resolved] = get_rich_theme(load_theme(resolved))
    return _cached_themes[resolved]
