"""
Configuration settings for the Message Analysis Layer.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Message Analysis Layer"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Ollama Configuration ===
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "qwen3:4b-instruct"  # Loaded once, shared read-only by all channels
    OLLAMA_TIMEOUT: int = 120  # seconds, per HTTP call
    OLLAMA_MAX_RETRIES: int = 2  # Connection-level retries only

    # === LLM Generation Parameters ===
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 1024
    LLM_CONTEXT_SIZE: int = 4096  # Process-wide, immutable after startup
    LLM_TOP_P: Optional[float] = None
    LLM_SEED: Optional[int] = None
    FACET_MAX_TOKENS: dict[str, int] = {"alternatives": 2048}  # Per-facet max token overrides

    # === Prompts ===
    PROMPT_TEMPLATES_DIR: Optional[str] = None  # None = templates shipped with the package

    # === Input ===
    MAX_MESSAGE_LENGTH: int = 5000  # chars

    # === Sessions (in-memory, process lifetime) ===
    SESSION_TTL_SECONDS: int = 1800  # Idle sessions evicted after 30 minutes
    SESSION_MAX_INTERACTIONS: int = 10
    SESSION_SWEEP_INTERVAL_SECONDS: int = 60
    CONTEXT_PREVIEW_CHARS: int = 280  # Per prior message in the formatted context blob

    # === Transcript Log ===
    TRANSCRIPT_LOG_ENABLED: bool = False
    TRANSCRIPT_LOG_DIR: str = "logs"
    TRANSCRIPT_RETENTION_DAYS: int = 30  # Older transcript files are deleted by the sweeper

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True

    def max_tokens_for(self, facet: str) -> int:
        """Max output tokens for a facet (override or global default)."""
        return self.FACET_MAX_TOKENS.get(facet, self.LLM_MAX_TOKENS)


# Global settings instance (app entry point only; the core receives Settings explicitly)
settings = Settings()
