"""
Configuration
=============

Runtime settings read from the environment (and a local ``.env`` file).
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from dq_analysis.exceptions import ConfigurationError

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_SEED = 42


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Application settings."""

    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    max_concurrency: Optional[int] = 8
    retry_attempts: int = 3
    retry_base_delay: float = 4.0
    request_timeout: Optional[float] = 120.0
    seed: int = DEFAULT_SEED
    log_level: str = "INFO"
    log_format: str = ""
    environment: str = "development"
    use_mock_llm: bool = False

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            load_env_file: Whether to load a ``.env`` file first

        Returns:
            Settings populated from the environment
        """
        if load_env_file:
            load_dotenv()

        try:
            max_concurrency = int(os.getenv("DQ_MAX_CONCURRENCY", "8"))
            timeout = float(os.getenv("DQ_REQUEST_TIMEOUT", "120"))
            settings = cls(
                api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or None,
                model=os.getenv("DQ_MODEL", DEFAULT_MODEL),
                # 0 or less means unbounded fan-out
                max_concurrency=max_concurrency if max_concurrency > 0 else None,
                retry_attempts=int(os.getenv("DQ_RETRY_ATTEMPTS", "3")),
                retry_base_delay=float(os.getenv("DQ_RETRY_BASE_DELAY", "4.0")),
                request_timeout=timeout if timeout > 0 else None,
                seed=int(os.getenv("DQ_SEED", str(DEFAULT_SEED))),
                log_level=os.getenv("LOG_LEVEL", "INFO"),
                log_format=os.getenv("LOG_FORMAT", ""),
                environment=os.getenv("ENVIRONMENT", "development"),
                use_mock_llm=_env_bool("DQ_USE_MOCK_LLM"),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        if settings.retry_attempts < 1:
            raise ConfigurationError("DQ_RETRY_ATTEMPTS must be at least 1")
        return settings

    def require_api_key(self) -> str:
        """Return the API key or fail at startup when it is missing."""
        if not self.api_key:
            raise ConfigurationError(
                "GEMINI_API_KEY (or API_KEY) environment variable is not set."
            )
        return self.api_key
