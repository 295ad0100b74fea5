# backend/mailbulk/config.py
from pydantic_settings import BaseSettings
from typing import List
import os

class Settings(BaseSettings):
    APP_NAME: str = "mailbulk"

    POSTGRES_USER: str = os.environ.get("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.environ.get("POSTGRES_PASSWORD", "postgres")
    POSTGRES_DB: str = os.environ.get("POSTGRES_DB", "mailbulk")
    POSTGRES_HOST: str = os.environ.get("POSTGRES_HOST", "db")
    POSTGRES_PORT: str = os.environ.get("POSTGRES_PORT", "5432")

    DATABASE_URL: str = os.environ.get(
        "DATABASE_URL",
        f"postgresql+asyncpg://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}"
    )

    # pool sizing (ignored for sqlite urls)
    DB_POOL_SIZE: int = int(os.environ.get("DB_POOL_SIZE", 5))
    DB_MAX_OVERFLOW: int = int(os.environ.get("DB_MAX_OVERFLOW", 10))

    # probe the database from the lifespan hook before serving
    WAIT_FOR_DB: bool = os.environ.get("WAIT_FOR_DB", "True").lower() in ("1", "true", "yes")

    # download pagination defaults
    JSON_DEFAULT_LIMIT: int = int(os.environ.get("JSON_DEFAULT_LIMIT", 50))
    CSV_DEFAULT_LIMIT: int = int(os.environ.get("CSV_DEFAULT_LIMIT", 5000))

    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    DEBUG: bool = os.environ.get("DEBUG", "False").lower() in ("1", "true", "yes")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
