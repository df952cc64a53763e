"""Tests for settings and persisted preferences."""

import pytest
from pydantic import ValidationError

from pickllm.core.config import (
    ComparisonSettings,
    Settings,
    get_settings,
    reload_settings,
)
from pickllm.core.errors import PreferencesError
from pickllm.core.models import DEFAULT_TARGETS, RunOverrides, Target
from pickllm.core.preferences import Preferences, PreferencesStore
from pickllm.providers.pricing import LITELLM_PRICES_URL


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.forwarding.endpoint_url == "http://localhost:3000/api/openai"
        assert settings.forwarding.timeout_seconds == 120.0
        assert settings.pricing.url == LITELLM_PRICES_URL
        assert settings.comparison.default_targets == list(DEFAULT_TARGETS)
        assert settings.comparison.log_format == "console"
        assert settings.openai_api_key is None

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PICKLLM_FORWARDING_TIMEOUT_SECONDS", "15")
        monkeypatch.setenv("PICKLLM_PRICING_REFRESH_INTERVAL_SECONDS", "60")
        monkeypatch.setenv("PICKLLM_LOG_LEVEL", "debug")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")

        settings = reload_settings()

        assert settings.forwarding.timeout_seconds == 15.0
        assert settings.pricing.refresh_interval_seconds == 60.0
        assert settings.comparison.log_level == "DEBUG"
        assert settings.openai_api_key.get_secret_value() == "sk-env"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            ComparisonSettings(log_level="LOUD")

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError):
            ComparisonSettings(log_format="xml")

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()
        assert reload_settings() is not None

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "pickllm.yaml"
        path.write_text(
            "forwarding:\n"
            "  endpoint_url: https://forward.test/api\n"
            "comparison:\n"
            "  default_targets: [alpha, beta]\n"
        )

        settings = Settings.from_yaml(path)

        assert settings.forwarding.endpoint_url == "https://forward.test/api"
        assert settings.comparison.default_targets == ["alpha", "beta"]

    def test_from_yaml_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "absent.yaml")


class TestPreferencesStore:
    """Tests for PreferencesStore."""

    def test_missing_file_gives_defaults(self, tmp_path):
        prefs = PreferencesStore(tmp_path / "none.yaml").load()
        assert prefs.credential is None
        assert prefs.targets is None
        assert prefs.overrides == RunOverrides()

    def test_save_and_load(self, tmp_path):
        store = PreferencesStore(tmp_path / "nested" / "prefs.yaml")
        prefs = Preferences(
            credential="sk-saved",
            targets=[Target(id="a"), Target(id="b", enabled=False)],
            overrides=RunOverrides(temperature=0.3),
        )

        store.save(prefs)
        loaded = store.load()

        assert loaded == prefs

    def test_forget_credential(self, tmp_path):
        store = PreferencesStore(tmp_path / "prefs.yaml")
        store.save(Preferences(credential="sk-secret"), remember_credential=False)

        assert "sk-secret" not in store.path.read_text()
        assert store.load().credential is None

    def test_unset_overrides_not_written(self, tmp_path):
        store = PreferencesStore(tmp_path / "prefs.yaml")
        store.save(Preferences(overrides=RunOverrides(max_tokens=50)))

        text = store.path.read_text()
        assert "max_tokens: 50" in text
        assert "temperature" not in text

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "prefs.yaml"
        path.write_text("targets: [unclosed\n")
        with pytest.raises(PreferencesError):
            PreferencesStore(path).load()

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "prefs.yaml"
        path.write_text("overrides:\n  temperature: 9\n")
        with pytest.raises(PreferencesError):
            PreferencesStore(path).load()
