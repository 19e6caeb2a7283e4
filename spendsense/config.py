"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./spendsense.db"
    db_max_retries: int = 3
    db_backoff_base: float = 1.0  # Exponential backoff base in seconds

    # Service
    service_name: str = "spendsense"
    log_level: str = "INFO"

    # Text generation collaborator (OpenAI-compatible chat completions)
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    copy_timeout_seconds: float = 5.0
    copy_max_attempts: int = 1
    copy_backoff_base: float = 0.5
    copy_title_max_chars: int = 60
    copy_rationale_max_chars: int = 320


settings = Settings()
