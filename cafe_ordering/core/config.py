"""Application configuration."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"

    # Database
    database_url: str

    # Cafe
    cafe_name: str = "Cafe Delicia"
    menu_file: Optional[str] = None

    # Admin panel (X-API-Key header). Empty disables every admin route.
    admin_api_key: str = ""

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    base_url: str = ""
    log_level: str = "INFO"

    # Voice transport
    speech_language: str = "es-MX"
    speech_voice: str = "Polly.Lupe"
    gather_timeout_seconds: int = 3

    # Oracle (item/intent extractor)
    oracle_max_attempts: int = 3
    oracle_base_delay_seconds: float = 1.0
    oracle_backoff_multiplier: float = 2.0
    oracle_jitter_seconds: float = 1.0
    oracle_timeout_seconds: float = 10.0
    oracle_temperature: float = 0.2
    oracle_response_word_limit: int = 40

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
