"""Unit tests for config loading."""

from pathlib import Path

import pytest
from dsk.core.config import ConfigError, ConfigParseError, DskConfig, load_config


class TestDskConfig:
    """Tests for DskConfig model."""

    def test_defaults(self) -> None:
        """Defaults match the command line defaults."""
        config = DskConfig()
        assert config.all is False
        assert config.hide == []
        assert config.sort == "mountpoint"
        assert config.style == "unicode"
        assert config.theme == "dark"
        assert config.avail_threshold == "10G,1G"
        assert config.usage_threshold == "0.5,0.9"
        assert config.save_history is True

    def test_unknown_key_rejected(self) -> None:
        """Unknown keys are a validation error."""
        with pytest.raises(ValueError):
            DskConfig.model_validate({"colour": "red"})

    def test_bad_style_rejected(self) -> None:
        """style must be unicode or ascii."""
        with pytest.raises(ValueError):
            DskConfig.model_validate({"style": "emoji"})


class TestLoadConfig:
    """Tests for load_config function."""

    def test_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        """A missing file is not an error."""
        assert load_config(tmp_path / "config.toml") == DskConfig()

    def test_default_path(self, isolated_xdg_dirs: Path) -> None:
        """Without a path the XDG config file is read."""
        config_file = isolated_xdg_dirs / "config" / "dsk" / "config.toml"
        config_file.parent.mkdir(parents=True)
        config_file.write_text('sort = "usage"\n')

        assert load_config().sort == "usage"

    def test_loads_values(self, tmp_path: Path) -> None:
        """Values in the file override defaults."""
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            'all = true\nhide_fs = ["tmpfs", "devtmpfs"]\nonly_mp = ["/", "/home*"]\nstyle = "ascii"\ntheme = "light"\n'
        )

        config = load_config(config_file)

        assert config.all is True
        assert config.hide_fs == ["tmpfs", "devtmpfs"]
        assert config.only_mp == ["/", "/home*"]
        assert config.style == "ascii"
        assert config.theme == "light"

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Broken TOML raises ConfigParseError."""
        config_file = tmp_path / "config.toml"
        config_file.write_text("all = [")

        with pytest.raises(ConfigParseError, match="Invalid TOML syntax"):
            load_config(config_file)

    def test_invalid_content(self, tmp_path: Path) -> None:
        """Schema violations raise ConfigError."""
        config_file = tmp_path / "config.toml"
        config_file.write_text('hide = "local"\n')

        with pytest.raises(ConfigError, match="Invalid config content"):
            load_config(config_file)
