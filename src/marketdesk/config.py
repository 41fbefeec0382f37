# src/marketdesk/config.py
"""
Application settings, loaded from the environment and an optional `.env` file.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment / DB
    ENV: str = Field(default="dev")
    DATABASE_URL: str = Field(default="sqlite:///./dev.db")
    AUTO_CREATE_TABLES: bool = True

    # API / Security
    JWT_SECRET: str = "change-me-please"
    JWT_ALG: str = "HS256"
    JWT_EXPIRE_MIN: int = 43200  # 30 days
    JWT_REFRESH_EXPIRE_MIN: int = 86400
    CORS_ORIGINS: str = "*"

    # Realtime
    SOCKETIO_PATH: str = "socket.io"

    # Trading
    DEFAULT_CURRENCY: str = "USDT"

    # Chat
    CHAT_PAGE_LIMIT_DEFAULT: int = 50
    CHAT_PAGE_LIMIT_MAX: int = 100

    # Observability
    METRICS_ENABLED: bool = True

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _normalize_db_url(cls, v):
        url = (v or "").strip()
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql+psycopg://", 1)
        return url

    @property
    def cors_origins(self) -> list[str]:
        origins = [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]
        return origins or ["*"]


settings = Settings()
