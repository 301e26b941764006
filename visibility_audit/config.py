"""Application configuration management."""
import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Anthropic API Configuration
    anthropic_api_key: str = ""  # Required for the Claude analyzer - set via ANTHROPIC_API_KEY

    # Ollama Configuration
    ollama_host: str = "http://localhost:11434"
    ollama_api_key: str = ""  # Only needed for Ollama Cloud
    ollama_model: str = "kimi-k2:1t-cloud"

    # LLM Provider Selection ("claude" or "ollama")
    llm_provider: str = "claude"
    analysis_model: str = "claude-sonnet-4-20250514"

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = True

    # Storage Configuration (analysis records + single-page cache)
    storage_base_path: str = "/tmp/data" if os.getenv("SPACE_ID") else "./data"

    # Fetch Configuration
    default_timeout: int = 30

    # Multi-page orchestration
    max_pages: int = 5
    page_attempt_timeout: float = 120.0  # seconds, per attempt in multi-page mode
    single_page_timeout: float = 180.0  # seconds, single-page mode
    max_retries: int = 2  # additional attempts after the first
    retry_base_delay: float = 1.0  # delay = attempt_number * base

    # Double-check analysis
    variance_threshold: float = 10.0

    # Session lifecycle
    session_ttl_minutes: int = 30
    sweep_interval_seconds: int = 60

    # Single-page cache
    cache_ttl_hours: int = 24

    # Client polling
    poll_interval: float = 3.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def storage_path(self) -> Path:
        """Get the resolved storage path."""
        return Path(self.storage_base_path).expanduser().resolve()


# Global settings instance
settings = Settings()
