"""
Конфигурация приложения Hassh
"""

import secrets
from typing import Any

import pydantic
from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Основные настройки приложения"""

    # Application
    PROJECT_NAME: str = "Hassh"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"  # nosec B104
    PORT: int = 8080

    # Home Assistant
    HOME_ASSISTANT_URL: str | None = None
    HA_TOKEN: str | None = None
    HA_REQUEST_TIMEOUT: float = 10.0
    REFRESH_INTERVAL: int = 30

    @field_validator("REFRESH_INTERVAL")
    @classmethod
    def validate_refresh_interval(cls, v: int) -> int:
        """Интервал обновления должен быть положительным"""
        if v <= 0:
            raise ValueError("REFRESH_INTERVAL должен быть больше нуля")
        return v

    @field_validator("HOME_ASSISTANT_URL", mode="before")
    @classmethod
    def strip_home_assistant_url(cls, v: str | None) -> str | None:
        """Убираем завершающий слэш у адреса хаба"""
        if isinstance(v, str):
            v = v.strip().rstrip("/")
            return v or None
        return v

    # Security
    JWT_SECRET: str = Field(default_factory=lambda: secrets.token_hex(32))
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    OTP_ISSUER: str = "Hassh"

    # Database
    DB_PATH: str = "hassh.db"
    DATABASE_URL: str | None = Field(default=None, validate_default=True)

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_connection(
        cls, v: str | None, info: pydantic.ValidationInfo
    ) -> Any:
        """Сборка URL базы данных из DB_PATH, если он не задан явно"""
        if isinstance(v, str) and v:
            return v
        values = info.data or {}
        return f"sqlite+aiosqlite:///{values.get('DB_PATH', 'hassh.db')}"

    # Redis (опционально, для rate limiting)
    REDIS_URL: str | None = None
    RATE_LIMIT_ENABLED: bool = True

    # CORS
    BACKEND_CORS_ORIGINS: list[AnyHttpUrl] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: str | list[str]) -> list[str] | str:
        """Валидация CORS origins"""
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, list | str):
            return v
        raise ValueError(v)

    # Pagination
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 200

    model_config = {"extra": "ignore", "env_file": ".env", "case_sensitive": True}


# Создание экземпляра настроек
settings = Settings()


def get_settings() -> Settings:
    """Получить экземпляр настроек"""
    return settings
