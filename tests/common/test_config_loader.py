"""Tests for the multi-source configuration loader."""

import os

import pytest

from iwd_trim.common import ConfigLoader, ConfigurationError
from iwd_trim.config import TrimConfig


@pytest.fixture
def isolated_loader(tmp_path, monkeypatch):
    """Loader that sees no system, user or working-directory config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(
        "iwd_trim.common.config.platformdirs.user_config_dir",
        lambda **kwargs: str(tmp_path / "user-config"),
    )
    monkeypatch.setattr(ConfigLoader, "_load_system_config", lambda self: None)
    for key in list(os.environ):
        if key.startswith("IWD_TRIM_"):
            monkeypatch.delenv(key)
    return ConfigLoader(app_name="iwd-trim", config_class=TrimConfig)


class TestConfigLoader:
    """Tests for ConfigLoader.load."""

    def test_defaults_without_any_source(self, isolated_loader):
        config = isolated_loader.load()

        assert config.processing.directories == ["main", "iw4x"]
        assert config.policy.extensions == ["iwi", "mp3"]
        assert config.logging.level == "INFO"

    def test_explicit_config_file(self, isolated_loader, tmp_path):
        config_file = tmp_path / "custom.toml"
        config_file.write_text(
            '[policy]\n'
            'directories = ["images"]\n'
            '\n'
            '[processing]\n'
            'dry_run = true\n'
        )

        config = isolated_loader.load(defaults_path=config_file)

        assert config.policy.directories == ["images"]
        assert config.policy.extensions == ["iwi", "mp3"]
        assert config.processing.dry_run is True

    def test_working_directory_defaults(self, isolated_loader, tmp_path):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "defaults.toml").write_text('[processing]\nbase_dir = "/games/mw2"\n')

        config = isolated_loader.load()

        assert config.processing.base_dir == "/games/mw2"

    def test_user_config_overrides_defaults(self, isolated_loader, tmp_path):
        config_file = tmp_path / "custom.toml"
        config_file.write_text('[processing]\nstrict = true\nbase_dir = "/a"\n')
        user_dir = tmp_path / "user-config"
        user_dir.mkdir()
        (user_dir / "config.toml").write_text('[processing]\nbase_dir = "/b"\n')

        config = isolated_loader.load(defaults_path=config_file)

        assert config.processing.base_dir == "/b"
        assert config.processing.strict is True

    def test_environment_overrides(self, isolated_loader, monkeypatch):
        monkeypatch.setenv("IWD_TRIM_PROCESSING__DRY_RUN", "true")
        monkeypatch.setenv("IWD_TRIM_PROCESSING__REPLACE_MODE", "delete_then_rename")
        monkeypatch.setenv("IWD_TRIM_POLICY__EXTENSIONS", "iwi,wav")
        monkeypatch.setenv("IWD_TRIM_LOGGING__LEVEL", "DEBUG")

        config = isolated_loader.load()

        assert config.processing.dry_run is True
        assert config.processing.replace_mode == "delete_then_rename"
        assert config.policy.extensions == ["iwi", "wav"]
        assert config.logging.level == "DEBUG"

    def test_single_value_list_override(self, isolated_loader, monkeypatch):
        monkeypatch.setenv("IWD_TRIM_PROCESSING__DIRECTORIES", "main")

        config = isolated_loader.load()

        assert config.processing.directories == ["main"]

    def test_numeric_list_override(self, isolated_loader, monkeypatch):
        """A list value that looks like a number still ends up as a list of strings."""
        monkeypatch.setenv("IWD_TRIM_POLICY__EXTENSIONS", "3")
        monkeypatch.setenv("IWD_TRIM_PROCESSING__BULK_REMOVE_DIRECTORIES", "2024")

        config = isolated_loader.load()

        assert config.policy.extensions == ["3"]
        assert config.processing.bulk_remove_directories == ["2024"]

    def test_missing_explicit_file(self, isolated_loader, tmp_path):
        with pytest.raises(ConfigurationError):
            isolated_loader.load(defaults_path=tmp_path / "nope.toml")

    def test_malformed_toml(self, isolated_loader, tmp_path):
        config_file = tmp_path / "broken.toml"
        config_file.write_text("[processing\ndry_run = ")

        with pytest.raises(ConfigurationError):
            isolated_loader.load(defaults_path=config_file)

    def test_invalid_values(self, isolated_loader, tmp_path):
        config_file = tmp_path / "invalid.toml"
        config_file.write_text('[processing]\nreplace_mode = "in_place"\n')

        with pytest.raises(ConfigurationError) as exc_info:
            isolated_loader.load(defaults_path=config_file)

        assert exc_info.value.context["app_name"] == "iwd-trim"


class TestEnvValueConversion:
    """Tests for environment value conversion."""

    @pytest.mark.parametrize("raw, expected", [
        ("true", True),
        ("No", False),
        ("42", 42),
        ("1.5", 1.5),
        ("a, b", ["a", "b"]),
        ("iwd", "iwd"),
    ])
    def test_convert(self, raw, expected):
        loader = ConfigLoader(app_name="iwd-trim", config_class=TrimConfig)
        assert loader._convert_env_value(raw) == expected
