"""Unit tests for configuration module."""

from pathlib import Path

import pytest

from emailmaster.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("GEMINI_API_KEY", "EMAILMASTER_GEMINI_API_KEY", "EMAILMASTER_AI_PROVIDER"):
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the defaults.
    monkeypatch.chdir(tmp_path)


class TestSettings:
    """Test suite for Settings class."""

    def test_default_settings(self) -> None:
        """Test that default settings are properly initialized."""
        settings = Settings()

        assert settings.ai_provider == "gemini"
        assert settings.ollama_host == "http://localhost:11434"
        assert settings.data_dir == Path("temp")
        assert settings.inbox_query == "in:inbox"
        assert settings.fetch_max_results == 10
        assert settings.ai_batch_size == 20
        assert settings.log_level == "WARNING"
        assert settings.debug is False
        assert settings.max_retries == 3
        assert settings.gemini_api_key is None

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test loading settings from environment variables."""
        monkeypatch.setenv("EMAILMASTER_OLLAMA_HOST", "http://custom:8080")
        monkeypatch.setenv("EMAILMASTER_AI_PROVIDER", "ollama")
        monkeypatch.setenv("EMAILMASTER_DATA_DIR", "/var/lib/emailmaster")
        monkeypatch.setenv("EMAILMASTER_DEBUG", "true")

        get_settings.cache_clear()
        settings = get_settings()

        assert settings.ollama_host == "http://custom:8080"
        assert settings.ai_provider == "ollama"
        assert settings.data_dir == Path("/var/lib/emailmaster")
        assert settings.debug is True

        get_settings.cache_clear()

    def test_bare_gemini_key_env_is_accepted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "secret-key")

        settings = Settings()

        assert settings.gemini_api_key is not None
        assert settings.gemini_api_key.get_secret_value() == "secret-key"
        assert "secret-key" not in repr(settings)

    def test_invalid_batch_size_rejected(self) -> None:
        with pytest.raises(ValueError):
            Settings(ai_batch_size=0)

    def test_get_settings_returns_cached_instance(self) -> None:
        """Test that get_settings returns the same cached instance."""
        get_settings.cache_clear()

        settings1 = get_settings()
        settings2 = get_settings()

        assert settings1 is settings2

        get_settings.cache_clear()
