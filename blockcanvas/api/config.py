"""
config.py — Environment configuration for the API.

Settings are read from environment variables once per process. A ``.env``
file at the project root is loaded first; variables already set in the
environment win.
"""

import os
from functools import lru_cache
from pathlib import Path


def _load_dotenv():
    env_path = Path(__file__).parent.parent.parent / ".env"
    if env_path.exists():
        with open(env_path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip().strip('"').strip("'")
                    if key and value and key not in os.environ:
                        os.environ[key] = value

_load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        # Application
        self.app_name: str = os.environ.get("APP_NAME", "BlockCanvas")
        self.app_version: str = os.environ.get("APP_VERSION", "1.0.0")
        self.api_prefix: str = os.environ.get("API_PREFIX", "/api")
        self.host: str = os.environ.get("HOST", "0.0.0.0")
        self.port: int = int(os.environ.get("PORT", "8000"))
        self.debug: bool = _flag("DEBUG", "false")
        self.log_level: str = os.environ.get("LOG_LEVEL", "DEBUG" if self.debug else "INFO")

        # CORS
        self.cors_origins: list = [
            origin.strip()
            for origin in os.environ.get(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
            ).split(",")
            if origin.strip()
        ]

        # Text-analysis provider
        self.llm_provider: str = os.environ.get("LLM_PROVIDER", "anthropic").lower()
        self.anthropic_api_key: str = os.environ.get("ANTHROPIC_API_KEY", "")
        self.openai_api_key: str = os.environ.get("OPENAI_API_KEY", "")
        self.default_model: str = os.environ.get(
            "DEFAULT_MODEL",
            "gpt-4o-mini" if self.llm_provider == "openai" else "claude-3-haiku-20240307",
        )
        self.max_tokens: int = int(os.environ.get("MAX_TOKENS", "2048"))
        self.provider_timeout_seconds: float = float(os.environ.get("PROVIDER_TIMEOUT_SECONDS", "30"))
        self.use_llm: bool = _flag("USE_LLM", "true")

    @property
    def provider_api_key(self) -> str:
        """Key for the configured provider, empty when unset."""
        if self.llm_provider == "openai":
            return self.openai_api_key
        return self.anthropic_api_key

    @property
    def has_provider_key(self) -> bool:
        """Check if the configured provider has a key."""
        return bool(self.provider_api_key)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
