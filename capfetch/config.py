"""Configuration settings for capfetch."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from CAPFETCH_* environment variables or .env.

    - CAPFETCH_APP_BACKEND_URL: application registry (registration lookup)
    - CAPFETCH_LOGS_BACKEND_URL: audit log sink
    - CAPFETCH_ATTESTOR_URL: proof collaborator endpoint handed to generators
    """

    # Collaborators
    app_backend_url: str = "https://api.capfetch.dev"
    logs_backend_url: str = "https://logs.capfetch.dev"
    attestor_url: str = "wss://attestor.capfetch.dev/ws"
    http_timeout: float = 10.0

    # Local state
    key_store_service: str = "capfetch"

    log_level: str = "INFO"

    class Config:
        env_prefix = "CAPFETCH_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
