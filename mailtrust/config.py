# mailtrust/config.py
from pydantic_settings import BaseSettings
import os
from .verifier import score_engine


class Settings(BaseSettings):
    APP_NAME: str = "mailtrust"

    # storage: "memory" keeps everything in-process, "sql" uses DATABASE_URL
    STORAGE_BACKEND: str = os.environ.get("STORAGE_BACKEND", "memory")

    POSTGRES_USER: str = os.environ.get("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.environ.get("POSTGRES_PASSWORD", "postgres")
    POSTGRES_DB: str = os.environ.get("POSTGRES_DB", "mailtrust")
    POSTGRES_HOST: str = os.environ.get("POSTGRES_HOST", "db")
    POSTGRES_PORT: str = os.environ.get("POSTGRES_PORT", "5432")

    DATABASE_URL: str = os.environ.get(
        "DATABASE_URL",
        f"postgresql+asyncpg://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}"
    )

    # verification cache: "memory" or "redis"
    CACHE_BACKEND: str = os.environ.get("CACHE_BACKEND", "memory")
    REDIS_URL: str = os.environ.get("REDIS_URL", "redis://redis:6379/0")
    CACHE_TTL_SECONDS: int = int(os.environ.get("CACHE_TTL_SECONDS", 15 * 60))
    CACHE_SWEEP_INTERVAL_SECONDS: int = int(os.environ.get("CACHE_SWEEP_INTERVAL_SECONDS", 60))

    # scoring
    MX_TIMEOUT_SECONDS: float = float(os.environ.get("MX_TIMEOUT_SECONDS", 2.0))
    TEMP_EMAIL_THRESHOLD: int = int(os.environ.get("TEMP_EMAIL_THRESHOLD", 40))

    # bulk requests and quota costs; defaults are the costs the engine publishes
    MAX_BULK_EMAILS: int = int(os.environ.get("MAX_BULK_EMAILS", score_engine.MAX_BULK_EMAILS))
    VERIFY_COST: int = int(os.environ.get("VERIFY_COST", score_engine.VERIFY_COST))
    BULK_VERIFY_COST: int = int(os.environ.get("BULK_VERIFY_COST", score_engine.BULK_VERIFY_COST))

    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    DEBUG: bool = os.environ.get("DEBUG", "False").lower() in ("1", "true", "yes")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
