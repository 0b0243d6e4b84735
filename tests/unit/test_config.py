"""Unit tests for the configuration manager."""

import pytest

from config import CONFIG_ENV_VAR, ConfigurationManager, get_config


def test_get_dot_notation() -> None:
    """Test nested lookups and defaults."""
    assert get_config("classification.ambiguity_threshold") == 25
    assert get_config("extraction.vendor") == "Amazon"
    assert get_config("nonexistent.key", "fallback") == "fallback"
    assert get_config("classification.ambiguity_threshold.deeper", 7) == 7


def test_singleton() -> None:
    """Test that every call shares one instance."""
    assert ConfigurationManager() is ConfigurationManager()


def test_override_merges_deeply() -> None:
    """Test that overrides replace single keys and keep their siblings."""
    config = ConfigurationManager()
    config.override({"validation": {"price_sanity": {"high": 500}}})

    assert get_config("validation.price_sanity.high") == 500
    assert get_config("validation.price_sanity.very_high") == 5000


def test_overrides_survive_reload() -> None:
    """Test that reloading keeps overrides until they are cleared."""
    config = ConfigurationManager()
    config.override({"recovery": {"min_overall_confidence": 0.9}})
    config.reload()

    assert get_config("recovery.min_overall_confidence") == 0.9

    config.clear_overrides()
    assert get_config("recovery.min_overall_confidence") == 0.3


def test_reset_discards_overrides() -> None:
    """Test that reset creates a fresh instance on next use."""
    first = ConfigurationManager()
    first.override({"extraction": {"vendor": "Other"}})
    ConfigurationManager.reset()

    assert ConfigurationManager() is not first
    assert get_config("extraction.vendor") == "Amazon"


def test_paths_are_absolute() -> None:
    """Test that relative paths are resolved against the project root."""
    assert get_config("paths.logs").endswith("logs")
    assert ConfigurationManager().config_path.name == "settings.yaml"


def test_settings_path_from_environment(tmp_path, monkeypatch) -> None:
    """Test that the environment variable selects another settings file."""
    settings = tmp_path / "settings.yaml"
    settings.write_text("extraction:\n  vendor: Example\npaths:\n  logs: /var/log/parser\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(settings))
    ConfigurationManager.reset()

    assert get_config("extraction.vendor") == "Example"
    assert get_config("paths.logs") == "/var/log/parser"
    assert get_config("classification.ambiguity_threshold", 25) == 25


def test_non_mapping_settings_file_is_rejected(tmp_path) -> None:
    """Test that a YAML list is not accepted as configuration."""
    settings = tmp_path / "settings.yaml"
    settings.write_text("- a\n- b\n", encoding="utf-8")
    ConfigurationManager.reset()

    with pytest.raises(ValueError):
        ConfigurationManager(str(settings))
