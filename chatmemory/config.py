"""
Application settings loaded from environment variables (and a local .env).

All credentials, limits and timeouts are centralized here so the API layer
can inject them with FastAPI's Depends and tests can override them.
"""
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional
import os

from dotenv import load_dotenv

from .errors import ConfigurationError


load_dotenv()


DEFAULT_CORS_ORIGINS = (
    "https://botchatsai.netlify.app,"
    "http://localhost:5500,"
    "http://127.0.0.1:5500"
)


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


@dataclass
class Settings:
    """
    Runtime configuration.

    Memory policy:
        recent_limit: messages kept verbatim; older ones are summarized
        max_context_tokens: hard ceiling enforced by the trim loop
        memory_max_sessions / memory_retain_sessions: store compaction bounds
    """

    # Credentials / provider
    api_key: Optional[str] = field(default_factory=lambda: os.getenv("API_KEY"))
    llm_provider: str = field(default_factory=lambda: os.getenv("LLM_PROVIDER", "openrouter"))
    llm_model: Optional[str] = field(default_factory=lambda: os.getenv("LLM_MODEL"))
    llm_base_url: Optional[str] = field(default_factory=lambda: os.getenv("LLM_BASE_URL"))
    app_url: str = field(default_factory=lambda: os.getenv("APP_URL", "https://botchatsai.netlify.app"))
    app_title: str = field(default_factory=lambda: os.getenv("APP_TITLE", "Varta AI"))

    # Transport
    cors_origins: List[str] = field(
        default_factory=lambda: [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
            if origin.strip()
        ]
    )
    port: int = field(default_factory=lambda: _env_int("PORT", 3000))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG") == "true")

    # Memory policy
    recent_limit: int = field(default_factory=lambda: _env_int("RECENT_LIMIT", 100))
    max_context_tokens: int = field(default_factory=lambda: _env_int("MAX_CONTEXT_TOKENS", 100_000))
    summary_max_tokens: int = field(default_factory=lambda: _env_int("SUMMARY_MAX_TOKENS", 1000))
    summary_input_token_limit: int = field(
        default_factory=lambda: _env_int("SUMMARY_INPUT_TOKEN_LIMIT", 60_000)
    )
    summary_timeout_seconds: float = field(
        default_factory=lambda: _env_float("SUMMARY_TIMEOUT_SECONDS", 30.0)
    )
    reply_timeout_seconds: float = field(
        default_factory=lambda: _env_float("REPLY_TIMEOUT_SECONDS", 120.0)
    )

    # Session memory store
    memory_backend: str = field(default_factory=lambda: os.getenv("MEMORY_BACKEND", "memory"))
    memory_max_sessions: int = field(default_factory=lambda: _env_int("MEMORY_MAX_SESSIONS", 1000))
    memory_retain_sessions: int = field(
        default_factory=lambda: _env_int("MEMORY_RETAIN_SESSIONS", 500)
    )
    memory_compact_interval_seconds: float = field(
        default_factory=lambda: _env_float("MEMORY_COMPACT_INTERVAL_SECONDS", 3600.0)
    )
    mongo_uri: str = field(default_factory=lambda: os.getenv("MONGO_URI", "mongodb://localhost:27017"))
    mongo_db_name: str = field(default_factory=lambda: os.getenv("MONGO_DB_NAME", "varta_memory"))

    def require_api_key(self) -> str:
        """
        Return the LLM credential.

        Raises:
            ConfigurationError: If API_KEY is not set (mock provider needs none)
        """
        if self.llm_provider == "mock":
            return self.api_key or ""
        if not self.api_key:
            raise ConfigurationError("API_KEY is not set in environment variables")
        return self.api_key


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
