"""Application configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

from dblp_masterfile.constants import (
    DBLP_BASE_URL,
    DBLP_SPARQL_URL,
    DEFAULT_CACHE_DIR,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_TIMEOUT,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Endpoints
    sparql_endpoint: str = DBLP_SPARQL_URL
    dblp_base_url: str = DBLP_BASE_URL

    # Storage
    cache_dir: Path = DEFAULT_CACHE_DIR
    output_dir: Path = DEFAULT_OUTPUT_DIR

    # Requests
    request_timeout: float = DEFAULT_TIMEOUT
    batch_delay_seconds: float = 1.0

    # App Settings
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "MASTERFILE_"
        frozen = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
