"""Pelican intake configuration settings.

Loads configuration from environment variables with sensible defaults.
API keys are read lazily so a missing key only disables the provider that needs it.
"""

import os
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file for local development (provider keys, feature flags, etc.)
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    Every component that reads these values also accepts explicit constructor
    overrides, so tests can run without touching the environment.
    """

    # Research providers (non-secrets)
    openai_model: str = field(default_factory=lambda: os.getenv("OPENAI_RESEARCH_MODEL", "gpt-4o-mini"))
    anthropic_model: str = field(
        default_factory=lambda: os.getenv("ANTHROPIC_RESEARCH_MODEL", "claude-3-5-sonnet-latest")
    )
    llm_temperature: float = field(default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.2")))
    llm_max_tokens: int = field(default_factory=lambda: int(os.getenv("LLM_MAX_TOKENS", "800")))

    # Research service
    research_enabled: bool = field(default_factory=lambda: _env_bool("RESEARCH_ENABLED", "true"))
    research_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("RESEARCH_TIMEOUT_SECONDS", "12"))
    )
    research_cache_ttl_seconds: int = field(
        default_factory=lambda: int(os.getenv("RESEARCH_CACHE_TTL_SECONDS", "3600"))
    )
    research_cache_capacity: int = field(
        default_factory=lambda: int(os.getenv("RESEARCH_CACHE_CAPACITY", "256"))
    )

    # Intake defaults
    default_jurisdiction: str = field(default_factory=lambda: os.getenv("DEFAULT_JURISDICTION", "Louisiana"))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: os.getenv("LOG_FORMAT", "console"))

    # Internal: cached key values (use the properties instead)
    _openai_api_key: Optional[str] = field(default=None, repr=False)
    _anthropic_api_key: Optional[str] = field(default=None, repr=False)

    @property
    def openai_api_key(self) -> Optional[str]:
        """Get the OpenAI API key from the environment."""
        if self._openai_api_key is None:
            self._openai_api_key = os.getenv("OPENAI_API_KEY")
        return self._openai_api_key

    @property
    def anthropic_api_key(self) -> Optional[str]:
        """Get the Anthropic API key from the environment."""
        if self._anthropic_api_key is None:
            self._anthropic_api_key = os.getenv("ANTHROPIC_API_KEY")
        return self._anthropic_api_key


# Singleton settings instance
settings = Settings()
