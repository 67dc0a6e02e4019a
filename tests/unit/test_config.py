"""
Unit tests for the configuration system.

Tests defaults, JSON and YAML loading, environment overrides, validation
and the global configuration accessors.
"""

import json

import pytest
import yaml

from altt4.utils.config import Altt4Config, get_config, load_config, set_config
from altt4.utils.exceptions import ConfigurationError


class TestDefaults:
    """Test default configuration values."""

    def test_defaults_without_file(self, config):
        """A missing file yields the defaults."""
        assert config.template.template_extension == ".sgtt"
        assert config.template.include_extension == ".ttinc"
        assert config.template.output_extension == ".cs"
        assert config.compilation.optimize == 1
        assert config.compilation.check_imports is True
        assert config.runtime.isolation == "namespace"
        assert config.runtime.culture is None
        assert config.is_debug_enabled() is False


class TestLoading:
    """Test loading configuration files."""

    def test_json_file(self, tmp_path):
        """JSON files are loaded."""
        path = tmp_path / "altt4.json"
        path.write_text(json.dumps({"template": {"output_extension": ".txt"}, "compilation": {"optimize": 0}}))

        config = Altt4Config(str(path))

        assert config.template.output_extension == ".txt"
        assert config.compilation.optimize == 0

    def test_yaml_file(self, tmp_path):
        """YAML files are loaded."""
        path = tmp_path / "altt4.yaml"
        path.write_text(yaml.safe_dump({"runtime": {"isolation": "subprocess", "culture": "de_DE"}}))

        config = Altt4Config(str(path))

        assert config.runtime.isolation == "subprocess"
        assert config.runtime.culture == "de_DE"

    def test_invalid_file_falls_back_to_defaults(self, tmp_path):
        """Unparseable files are ignored."""
        path = tmp_path / "altt4.json"
        path.write_text("{not json")

        assert Altt4Config(str(path)).compilation.optimize == 1

    def test_non_mapping_ignored(self, tmp_path):
        """A file that is not a mapping is ignored."""
        path = tmp_path / "altt4.yaml"
        path.write_text("- a\n- b\n")

        assert Altt4Config(str(path)).runtime.isolation == "namespace"

    def test_config_file_from_environment(self, tmp_path, monkeypatch):
        """ALTT4_CONFIG selects the file."""
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"runtime": {"timeout_seconds": 5}}))
        monkeypatch.setenv("ALTT4_CONFIG", str(path))

        assert Altt4Config().runtime.timeout_seconds == 5

    def test_save_round_trip(self, tmp_path):
        """Saved configuration loads back."""
        path = tmp_path / "altt4.yaml"
        path.write_text(yaml.safe_dump({"debug": {"enabled": True, "artifact_dir": "dbg"}}))
        config = Altt4Config(str(path))
        config.save_config()

        reloaded = load_config(str(path))
        assert reloaded.to_dict() == config.to_dict()


class TestOverridesAndValidation:
    """Test environment overrides and validation."""

    def test_environment_overrides(self, tmp_path, monkeypatch):
        """Environment variables override the file."""
        path = tmp_path / "altt4.json"
        path.write_text(json.dumps({"runtime": {"isolation": "namespace", "culture": "fr_FR"}}))
        monkeypatch.setenv("ALTT4_ISOLATION", "subprocess")
        monkeypatch.setenv("ALTT4_CULTURE", "ja_JP")
        monkeypatch.setenv("ALTT4_DEBUG", "1")

        config = Altt4Config(str(path))

        assert config.runtime.isolation == "subprocess"
        assert config.runtime.culture == "ja_JP"
        assert config.is_debug_enabled()

    def test_blank_culture_is_none(self, tmp_path, monkeypatch):
        """A blank culture means the invariant locale."""
        monkeypatch.setenv("ALTT4_CULTURE", "  ")

        assert Altt4Config(str(tmp_path / "none.json")).runtime.culture is None

    def test_invalid_isolation(self, tmp_path):
        """Unknown isolation modes are rejected."""
        path = tmp_path / "altt4.json"
        path.write_text(json.dumps({"runtime": {"isolation": "thread"}}))

        with pytest.raises(ConfigurationError):
            Altt4Config(str(path))

    def test_invalid_optimize(self, tmp_path):
        """Unknown optimization levels are rejected."""
        path = tmp_path / "altt4.json"
        path.write_text(json.dumps({"compilation": {"optimize": 7}}))

        with pytest.raises(ConfigurationError):
            Altt4Config(str(path))


class TestGlobalConfig:
    """Test the global configuration accessors."""

    def test_set_and_get(self, config):
        """set_config replaces the global instance."""
        set_config(config)

        assert get_config() is config

    def test_get_creates_instance(self, tmp_path, monkeypatch):
        """get_config creates an instance on first use."""
        monkeypatch.chdir(tmp_path)

        assert isinstance(get_config(), Altt4Config)
        assert get_config() is get_config()
