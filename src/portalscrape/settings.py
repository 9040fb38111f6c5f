from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    service_name: str = "portalscrape"
    version: str = "0.1.0"
    environment: str = "development"
    canonical_uri: str = "http://localhost:8000"
    tier: str = "integration"

    database_url: str = "sqlite:///./portalscrape.db"
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    browser_headless: bool = True
    navigation_timeout_ms: int = 30_000

    log_dir: str = ""
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="PORTALSCRAPE_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
