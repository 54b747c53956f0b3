"""User configuration for dsk.

Optional defaults for the command line, read from
``~/.config/dsk/config.toml``. Every key mirrors a CLI option; options
given on the command line always win.

Example config.toml::

    all = false
    hide_fs = ["tmpfs", "devtmpfs"]
    only_mp = ["/", "/home*"]
    output = ["mountpoint", "size", "avail", "usage", "trend"]
    sort = "usage"
    style = "ascii"
    theme = "light"
"""

import tomllib
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from dsk.core.paths import get_config_path

BarStyle = Literal["unicode", "ascii"]


class DskConfig(BaseModel):
    """Configuration defaults for the dsk command.

    Attributes:
        all: Include pseudo, duplicate and inaccessible filesystems.
        hide: Device types to hide.
        hide_fs: Filesystem types to hide.
        hide_mp: Mountpoint patterns to hide.
        only: Device types to show exclusively.
        only_fs: Filesystem types to show exclusively.
        only_mp: Mountpoint patterns to show exclusively.
        output: Columns to display.
        sort: Column to sort by.
        style: Usage bar style.
        theme: Color palette (dark, light or ansi).
        avail_threshold: Byte thresholds for coloring available space.
        usage_threshold: Ratio thresholds for coloring usage.
        inodes: Show inode columns instead of block columns.
        save_history: Record a usage snapshot on each table run.
    """

    model_config = ConfigDict(extra="forbid")

    all: bool = False
    hide: list[str] = Field(default_factory=list)
    hide_fs: list[str] = Field(default_factory=list)
    hide_mp: list[str] = Field(default_factory=list)
    only: list[str] = Field(default_factory=list)
    only_fs: list[str] = Field(default_factory=list)
    only_mp: list[str] = Field(default_factory=list)
    output: list[str] = Field(default_factory=list)
    sort: Annotated[str, Field(description="Column to sort by")] = "mountpoint"
    style: Annotated[BarStyle, Field(description="Usage bar style")] = "unicode"
    theme: Annotated[str, Field(description="Color palette: dark, light or ansi")] = "dark"
    avail_threshold: Annotated[
        str,
        Field(description="Warning and danger thresholds for available space"),
    ] = "10G,1G"
    usage_threshold: Annotated[
        str,
        Field(description="Warning and danger thresholds for usage ratio"),
    ] = "0.5,0.9"
    inodes: bool = False
    save_history: bool = True


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> DskConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated DskConfig. Defaults if the file does not exist.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read or doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        return DskConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return DskConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content in {config_path}: {e}") from e
