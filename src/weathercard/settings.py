from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="WEATHERCARD_", extra="ignore")

    geocoding_url: str = "https://geocoding-api.open-meteo.com/v1/search"
    forecast_url: str = "https://api.open-meteo.com/v1/forecast"
    language: str = "en"
    cache_expire_seconds: int = 600
    retries: int = 3
    backoff_factor: float = 0.2
    data_dir: Path = Path(".weathercard")
    log_level: str = "WARNING"


@lru_cache
def get_settings() -> Settings:
    load_dotenv()
    return Settings()
