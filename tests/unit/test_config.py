"""
Unit Tests for Settings
=======================

Tests for environment-driven configuration.
"""

import pytest

from dq_analysis.config import DEFAULT_MODEL, Settings
from dq_analysis.exceptions import ConfigurationError

ENV_VARS = [
    "GEMINI_API_KEY",
    "API_KEY",
    "DQ_MODEL",
    "DQ_MAX_CONCURRENCY",
    "DQ_RETRY_ATTEMPTS",
    "DQ_RETRY_BASE_DELAY",
    "DQ_REQUEST_TIMEOUT",
    "DQ_SEED",
    "DQ_USE_MOCK_LLM",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every setting from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    """Tests for Settings.from_env."""

    def test_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test default values."""
        settings = Settings.from_env(load_env_file=False)
        assert settings.api_key is None
        assert settings.model == DEFAULT_MODEL
        assert settings.max_concurrency == 8
        assert settings.retry_attempts == 3
        assert settings.retry_base_delay == 4.0
        assert settings.request_timeout == 120.0
        assert settings.seed == 42
        assert settings.use_mock_llm is False

    def test_overrides(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test values read from the environment."""
        clean_env.setenv("API_KEY", "secret")
        clean_env.setenv("DQ_MAX_CONCURRENCY", "0")
        clean_env.setenv("DQ_REQUEST_TIMEOUT", "0")
        clean_env.setenv("DQ_USE_MOCK_LLM", "true")

        settings = Settings.from_env(load_env_file=False)

        assert settings.api_key == "secret"
        assert settings.max_concurrency is None
        assert settings.request_timeout is None
        assert settings.use_mock_llm is True

    def test_gemini_key_preferred(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test that GEMINI_API_KEY wins over API_KEY."""
        clean_env.setenv("API_KEY", "old")
        clean_env.setenv("GEMINI_API_KEY", "new")
        assert Settings.from_env(load_env_file=False).api_key == "new"

    def test_invalid_number(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test that non-numeric values are configuration errors."""
        clean_env.setenv("DQ_RETRY_ATTEMPTS", "three")
        with pytest.raises(ConfigurationError):
            Settings.from_env(load_env_file=False)

    def test_zero_attempts_rejected(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test that at least one attempt is required."""
        clean_env.setenv("DQ_RETRY_ATTEMPTS", "0")
        with pytest.raises(ConfigurationError):
            Settings.from_env(load_env_file=False)

    def test_require_api_key(self) -> None:
        """Test the startup check for the API key."""
        with pytest.raises(ConfigurationError):
            Settings().require_api_key()
        assert Settings(api_key="k").require_api_key() == "k"
