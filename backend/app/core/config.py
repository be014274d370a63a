# backend/app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ---- Core ----
    PROJECT_NAME: str = "Contact Directory Sync"
    ENV: str = "dev"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ---- Database / CORS ----
    # Use a SYNC sqlite URL (e.g. sqlite:///./data/app.sqlite3)
    DATABASE_URL: str = "sqlite:///./app.db"
    # Comma-separated allowed origins
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # ---- Remote user directory ----
    DIRECTORY_BASE_URL: str = "https://dummyjson.com"
    # Optional bearer token; leave empty for an open directory
    DIRECTORY_API_TOKEN: str | None = None
    DIRECTORY_CONNECT_TIMEOUT: float = 5
    DIRECTORY_READ_TIMEOUT: float = 20

    # ---- Sync hooks / background jobs ----
    SYNC_HOOKS_ENABLED: bool = True
    SYNC_MAX_WORKERS: int = 4

    # pydantic-settings v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",         # ignore unknown env vars
    )

    # Convenience: parse CORS list
    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def directory_timeout(self) -> tuple[float, float]:
        return (self.DIRECTORY_CONNECT_TIMEOUT, self.DIRECTORY_READ_TIMEOUT)


@lru_cache
def get_settings() -> Settings:
    return Settings()


# singleton (import this everywhere)
settings = get_settings()
