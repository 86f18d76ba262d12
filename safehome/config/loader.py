# safehome/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины: config/config.json.
Секретные данные и адреса переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации (можно переопределить SAFEHOME_CONFIG)."""
    override = os.getenv("SAFEHOME_CONFIG")
    if override:
        return Path(override)
    return get_project_root() / "config" / "config.json"


def load_config_json(path: Path | None = None) -> dict[str, Any]:
    """Загружает config.json и возвращает словарь без ключей-комментариев."""
    config_path = path or get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return {k: v for k, v in data.items() if not k.startswith("_comment_")}


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "safehome"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"


class DeploymentSettings(BaseModel):
    """Настройки развертывания API."""
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 5000
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, v: str | list[str]) -> list[str]:
        """Разрешает задавать список origin строкой через запятую."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "DEBUG"
    LOG_FORMAT: str = "colored"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_MAX_BYTES: int = 10485760


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL."""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "safehome"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 5
    DB_MAX_POOL_SIZE: int = 20
    DB_COMMAND_TIMEOUT: int = 60

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        """Возвращает DSN для подключения к PostgreSQL."""
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class SecuritySettings(BaseModel):
    """Настройки аутентификации и CSRF."""
    JWT_SECRET: str = "unsafe-dev-secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_DAYS: int = 7
    COOKIE_NAME: str = "safehome_token"
    COOKIE_SECURE: bool = False
    CSRF_COOKIE_NAME: str = "safehome_csrf"
    CSRF_HEADER_NAME: str = "X-CSRF-Token"
    CSRF_EXEMPT_PATHS: list[str] = Field(default_factory=lambda: ["/auth/login", "/auth/signup"])

    @field_validator("JWT_SECRET", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает секрет из переменных окружения."""
        env_secret = os.getenv("JWT_SECRET", "")
        if env_secret:
            return env_secret
        return v


class LocationSettings(BaseModel):
    """Настройки приёма и хранения геолокации."""
    RETENTION_DAYS_DEFAULT: int = Field(30, ge=1)
    RETENTION_SWEEP_INTERVAL_SECONDS: int = Field(0, ge=0)
    HISTORY_WINDOW_HOURS: int = Field(24, ge=1)
    HISTORY_LIMIT: int = Field(500, ge=1)
    LATEST_LOCATION_MONOTONIC: bool = False


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    location: LocationSettings = Field(default_factory=LocationSettings)

    @classmethod
    def from_config_json(cls, path: Path | None = None) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Секреты и адреса переопределяются из переменных окружения.
        """
        data = load_config_json(path)

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "safehome"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", False),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
            ),
            deployment=DeploymentSettings(
                API_HOST=os.getenv("API_HOST", data.get("API_HOST", "0.0.0.0")),
                API_PORT=int(os.getenv("PORT", data.get("API_PORT", 5000))),
                CORS_ORIGINS=os.getenv("CORS_ORIGIN", data.get("CORS_ORIGINS", ["http://localhost:3000"])),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=data.get("LOG_LEVEL", "DEBUG"),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
            ),
            database=DatabaseSettings(
                DB_HOST=os.getenv("DB_HOST", data.get("DB_HOST", "localhost")),
                DB_PORT=int(os.getenv("DB_PORT", data.get("DB_PORT", 5432))),
                DB_NAME=os.getenv("DB_NAME", data.get("DB_NAME", "safehome")),
                DB_USER=os.getenv("DB_USER", data.get("DB_USER", "postgres")),
                DB_PASSWORD=os.getenv("DB_PASSWORD", data.get("DB_PASSWORD", "")),
                DB_MIN_POOL_SIZE=data.get("DB_MIN_POOL_SIZE", 5),
                DB_MAX_POOL_SIZE=data.get("DB_MAX_POOL_SIZE", 20),
                DB_COMMAND_TIMEOUT=data.get("DB_COMMAND_TIMEOUT", 60),
            ),
            security=SecuritySettings(
                JWT_SECRET=data.get("JWT_SECRET", "unsafe-dev-secret"),
                JWT_ALGORITHM=data.get("JWT_ALGORITHM", "HS256"),
                JWT_EXPIRES_DAYS=data.get("JWT_EXPIRES_DAYS", 7),
                COOKIE_NAME=data.get("COOKIE_NAME", "safehome_token"),
                COOKIE_SECURE=data.get("COOKIE_SECURE", False),
                CSRF_COOKIE_NAME=data.get("CSRF_COOKIE_NAME", "safehome_csrf"),
                CSRF_HEADER_NAME=data.get("CSRF_HEADER_NAME", "X-CSRF-Token"),
                CSRF_EXEMPT_PATHS=data.get("CSRF_EXEMPT_PATHS", ["/auth/login", "/auth/signup"]),
            ),
            location=LocationSettings(
                RETENTION_DAYS_DEFAULT=int(
                    os.getenv("LOCATION_RETENTION_DAYS", data.get("RETENTION_DAYS_DEFAULT", 30))
                ),
                RETENTION_SWEEP_INTERVAL_SECONDS=data.get("RETENTION_SWEEP_INTERVAL_SECONDS", 0),
                HISTORY_WINDOW_HOURS=data.get("HISTORY_WINDOW_HOURS", 24),
                HISTORY_LIMIT=data.get("HISTORY_LIMIT", 500),
                LATEST_LOCATION_MONOTONIC=data.get("LATEST_LOCATION_MONOTONIC", False),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Перед чтением config.json подгружает .env из корня проекта.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


settings = get_settings()
