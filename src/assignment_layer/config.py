"""
Configuration settings for the LLM Assignment Layer.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.

Only the application edge (API dependencies) reads these settings; the core
components receive their tunables explicitly at construction time.
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
    APP_NAME: str = "LLM Assignment Layer"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Anthropic Configuration ===
    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_BASE_URL: str = "https://api.anthropic.com"
    ANTHROPIC_VERSION: str = "2023-06-01"
    LLM_MODEL: str = "claude-3-5-haiku-latest"
    LLM_TIMEOUT: int = 30  # seconds

    # === LLM Generation Parameters ===
    LLM_MAX_TOKENS: int = 1024
    LLM_TEMPERATURE: float = 0.2  # Low for consistent labels
    LLM_TOP_P: Optional[float] = None
    LLM_TOP_K: Optional[int] = None

    # === Dispatch ===
    BATCH_SIZE: int = 10  # Request units per sequential group
    MAX_CONCURRENT: int = 3  # Hard ceiling on in-flight provider calls
    RECORDS_PER_REQUEST: int = 10  # Transactions listed in one prompt

    # === Retry & Backoff ===
    MAX_RETRIES: int = 3  # Total attempts per request unit
    RETRY_DELAY_MS: int = 1500
    MAX_RETRY_DELAY_MS: int = 32000

    # === Rate Limiting (token bucket) ===
    RATE_LIMIT_CAPACITY: int = 50000
    RATE_LIMIT_REFILL_INTERVAL_MS: int = 60000

    # === Circuit Breaker ===
    CIRCUIT_FAILURE_THRESHOLD: int = 5
    CIRCUIT_RESET_TIMEOUT_MS: int = 60000
    CIRCUIT_HALF_OPEN_TIMEOUT_MS: int = 30000

    # === Validation ===
    FUZZY_MATCH_THRESHOLD: float = 0.7

    # === Prompts ===
    PROMPT_TEMPLATES_DIR: Optional[str] = None  # None = bundled templates

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True


# Global settings instance
settings = Settings()
