from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import ConfigDict


class Settings(BaseSettings):
    TMDB_API_KEY: str
    SUMMARY_API_URL: Optional[str] = None
    SUMMARY_FALLBACK_URL: str = "http://127.0.0.1:8000"
    REDIS_URL: Optional[str] = None
    HTTP_TIMEOUT: float = 10.0
    SUGGESTION_DEBOUNCE_MS: int = 300
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
