# src/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины — config/config.json.
Секретные данные переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "car_showroom"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    LOG_LEVEL: str = "DEBUG"
    ENVIRONMENT: str = "development"
    COMPONENT_MODE: str = "all"


class DeploymentSettings(BaseModel):
    """Настройки развертывания компонентов."""
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_PREFIX: str = "/api"
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])
    REALTIME_WS_HOST: str = "0.0.0.0"
    REALTIME_WS_PORT: int = 8089


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "DEBUG"
    LOG_TO_FILE: bool = True
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760
    LOG_BACKUP_COUNT: int = 5


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL."""
    DATABASE_URL: str = ""
    DB_SERVICE_KEY: str = ""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "car_showroom"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 5
    DB_MAX_POOL_SIZE: int = 20
    DB_COMMAND_TIMEOUT: int = 60
    DB_RETRY_ATTEMPTS: int = 3
    DB_RETRY_DELAY: float = 1.0

    @field_validator("DB_PASSWORD", "DATABASE_URL", "DB_SERVICE_KEY", mode="before")
    @classmethod
    def get_from_env(cls, v: str, info) -> str:
        """Получает секрет из переменных окружения, если не задан."""
        if not v:
            return os.getenv(info.field_name, "")
        return v

    @property
    def dsn(self) -> str:
        """Возвращает DSN для подключения к PostgreSQL."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class RedisSettings(BaseModel):
    """Настройки Redis."""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    REDIS_NAMESPACE: str = "showroom"
    REDIS_MAX_CONNECTIONS: int = 50

    @field_validator("REDIS_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("REDIS_PASSWORD", "")
        return v

    @property
    def url(self) -> str:
        """Возвращает URL для подключения к Redis."""
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


class AuthSettings(BaseModel):
    """Настройки аутентификации."""
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_DAYS: int = 7
    SUPERADMIN_SETUP_KEY: str = ""
    PASSWORD_MIN_LENGTH: int = 6
    PASSWORD_RESET_TTL_MINUTES: int = 60
    APP_BASE_URL: str = "http://localhost:3000"

    @field_validator("JWT_SECRET", "SUPERADMIN_SETUP_KEY", mode="before")
    @classmethod
    def get_from_env(cls, v: str, info) -> str:
        """Получает секрет из переменных окружения, если не задан."""
        if not v:
            return os.getenv(info.field_name, "")
        return v


class OtpSettings(BaseModel):
    """Настройки одноразовых кодов."""
    OTP_LENGTH: int = 6
    OTP_TTL_MINUTES: int = 10
    OTP_RESEND_COOLDOWN_SECONDS: int = 60


class RealtimeSettings(BaseModel):
    """Настройки Pub/Sub для realtime-уведомлений."""
    REALTIME_APP_ID: str = ""
    REALTIME_KEY: str = ""
    REALTIME_SECRET: str = ""
    REALTIME_CLUSTER: str = ""

    @field_validator(
        "REALTIME_APP_ID",
        "REALTIME_KEY",
        "REALTIME_SECRET",
        "REALTIME_CLUSTER",
        mode="before",
    )
    @classmethod
    def get_from_env(cls, v: str, info) -> str:
        """Получает ключи из переменных окружения, если не заданы."""
        if not v:
            return os.getenv(info.field_name, "")
        return v

    @property
    def channel_prefix(self) -> str:
        """Префикс каналов Redis для данного приложения."""
        return f"realtime:{self.REALTIME_CLUSTER}:{self.REALTIME_APP_ID}"


class PushSettings(BaseModel):
    """Настройки push-уведомлений (OneSignal)."""
    ONESIGNAL_APP_ID: str = ""
    ONESIGNAL_API_KEY: str = ""
    ONESIGNAL_API_URL: str = "https://onesignal.com/api/v1"
    PUSH_TIMEOUT: float = 10.0

    @field_validator("ONESIGNAL_APP_ID", "ONESIGNAL_API_KEY", mode="before")
    @classmethod
    def get_from_env(cls, v: str, info) -> str:
        """Получает ключи из переменных окружения, если не заданы."""
        if not v:
            return os.getenv(info.field_name, "")
        return v


class EmailSettings(BaseModel):
    """Настройки отправки e-mail через HTTP API почтового провайдера."""
    MAIL_API_URL: str = ""
    MAIL_API_KEY: str = ""
    MAIL_FROM: str = "no-reply@car-showroom.local"
    MAIL_FROM_NAME: str = "CarSelling Platform"
    MAIL_TIMEOUT: float = 10.0

    @field_validator("MAIL_API_URL", "MAIL_API_KEY", mode="before")
    @classmethod
    def get_from_env(cls, v: str, info) -> str:
        """Получает параметры из переменных окружения, если не заданы."""
        if not v:
            return os.getenv(info.field_name, "")
        return v


class DispatcherSettings(BaseModel):
    """Настройки очереди фоновых задач."""
    DISPATCHER_QUEUE_SIZE: int = 1000
    DISPATCHER_WORKERS: int = 2
    DISPATCHER_MAX_ATTEMPTS: int = 3
    DISPATCHER_RETRY_DELAY: float = 1.0


class ApiLogSettings(BaseModel):
    """Настройки журнала API-запросов."""
    API_LOG_RETENTION_DAYS: int = 30
    API_LOG_MAX_PAYLOAD_BYTES: int = 10000
    API_LOG_EXCLUDED_PATHS: list[str] = Field(default_factory=lambda: ["/health", "/docs", "/openapi.json"])


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    otp: OtpSettings = Field(default_factory=OtpSettings)
    realtime: RealtimeSettings = Field(default_factory=RealtimeSettings)
    push: PushSettings = Field(default_factory=PushSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    dispatcher: DispatcherSettings = Field(default_factory=DispatcherSettings)
    api_logs: ApiLogSettings = Field(default_factory=ApiLogSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def missing_required(self) -> list[str]:
        """
        Возвращает список обязательных секретов, которые не заданы.
        Без них API не стартует.
        """
        required = {
            "DATABASE_URL": self.database.DATABASE_URL or self.database.DB_PASSWORD,
            "DB_SERVICE_KEY": self.database.DB_SERVICE_KEY,
            "JWT_SECRET": self.auth.JWT_SECRET,
            "SUPERADMIN_SETUP_KEY": self.auth.SUPERADMIN_SETUP_KEY,
            "REALTIME_APP_ID": self.realtime.REALTIME_APP_ID,
            "REALTIME_KEY": self.realtime.REALTIME_KEY,
            "REALTIME_SECRET": self.realtime.REALTIME_SECRET,
            "REALTIME_CLUSTER": self.realtime.REALTIME_CLUSTER,
            "ONESIGNAL_APP_ID": self.push.ONESIGNAL_APP_ID,
            "ONESIGNAL_API_KEY": self.push.ONESIGNAL_API_KEY,
        }
        return [name for name, value in required.items() if not value]

    @classmethod
    def from_config_json(cls) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Секреты переопределяются из переменных окружения.
        """
        config_data = load_config_json()

        # Фильтруем комментарии (ключи, начинающиеся с _comment_)
        data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "car_showroom"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", True),
                LOG_LEVEL=data.get("LOG_LEVEL", "DEBUG"),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
                COMPONENT_MODE=os.getenv("COMPONENT_MODE", data.get("COMPONENT_MODE", "all")),
            ),
            deployment=DeploymentSettings(
                API_HOST=data.get("API_HOST", "0.0.0.0"),
                API_PORT=int(os.getenv("API_PORT", data.get("API_PORT", 8000))),
                API_PREFIX=data.get("API_PREFIX", "/api"),
                CORS_ORIGINS=data.get("CORS_ORIGINS", ["*"]),
                REALTIME_WS_HOST=data.get("REALTIME_WS_HOST", "0.0.0.0"),
                REALTIME_WS_PORT=int(os.getenv("REALTIME_WS_PORT", data.get("REALTIME_WS_PORT", 8089))),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=data.get("LOG_LEVEL", "DEBUG"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", True),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_FORMAT=data.get("LOG_FORMAT", "json"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
                LOG_BACKUP_COUNT=data.get("LOG_BACKUP_COUNT", 5),
            ),
            database=DatabaseSettings(
                DATABASE_URL=os.getenv("DATABASE_URL", data.get("DATABASE_URL", "")),
                DB_SERVICE_KEY=os.getenv("DB_SERVICE_KEY", data.get("DB_SERVICE_KEY", "")),
                DB_HOST=os.getenv("DB_HOST", data.get("DB_HOST", "localhost")),
                DB_PORT=int(os.getenv("DB_PORT", data.get("DB_PORT", 5432))),
                DB_NAME=os.getenv("DB_NAME", data.get("DB_NAME", "car_showroom")),
                DB_USER=os.getenv("DB_USER", data.get("DB_USER", "postgres")),
                DB_PASSWORD=os.getenv("DB_PASSWORD", data.get("DB_PASSWORD", "")),
                DB_MIN_POOL_SIZE=data.get("DB_MIN_POOL_SIZE", 5),
                DB_MAX_POOL_SIZE=data.get("DB_MAX_POOL_SIZE", 20),
                DB_COMMAND_TIMEOUT=data.get("DB_COMMAND_TIMEOUT", 60),
                DB_RETRY_ATTEMPTS=data.get("DB_RETRY_ATTEMPTS", 3),
                DB_RETRY_DELAY=data.get("DB_RETRY_DELAY", 1.0),
            ),
            redis=RedisSettings(
                REDIS_HOST=os.getenv("REDIS_HOST", data.get("REDIS_HOST", "localhost")),
                REDIS_PORT=int(os.getenv("REDIS_PORT", data.get("REDIS_PORT", 6379))),
                REDIS_DB=data.get("REDIS_DB", 0),
                REDIS_PASSWORD=os.getenv("REDIS_PASSWORD", data.get("REDIS_PASSWORD", "")),
                REDIS_NAMESPACE=data.get("REDIS_NAMESPACE", "showroom"),
                REDIS_MAX_CONNECTIONS=data.get("REDIS_MAX_CONNECTIONS", 50),
            ),
            auth=AuthSettings(
                JWT_SECRET=os.getenv("JWT_SECRET", data.get("JWT_SECRET", "")),
                JWT_ALGORITHM=data.get("JWT_ALGORITHM", "HS256"),
                JWT_EXPIRE_DAYS=data.get("JWT_EXPIRE_DAYS", 7),
                SUPERADMIN_SETUP_KEY=os.getenv("SUPERADMIN_SETUP_KEY", data.get("SUPERADMIN_SETUP_KEY", "")),
                PASSWORD_MIN_LENGTH=data.get("PASSWORD_MIN_LENGTH", 6),
                PASSWORD_RESET_TTL_MINUTES=data.get("PASSWORD_RESET_TTL_MINUTES", 60),
                APP_BASE_URL=os.getenv("APP_BASE_URL", data.get("APP_BASE_URL", "http://localhost:3000")),
            ),
            otp=OtpSettings(
                OTP_LENGTH=data.get("OTP_LENGTH", 6),
                OTP_TTL_MINUTES=data.get("OTP_TTL_MINUTES", 10),
                OTP_RESEND_COOLDOWN_SECONDS=data.get("OTP_RESEND_COOLDOWN_SECONDS", 60),
            ),
            realtime=RealtimeSettings(
                REALTIME_APP_ID=os.getenv("REALTIME_APP_ID", data.get("REALTIME_APP_ID", "")),
                REALTIME_KEY=os.getenv("REALTIME_KEY", data.get("REALTIME_KEY", "")),
                REALTIME_SECRET=os.getenv("REALTIME_SECRET", data.get("REALTIME_SECRET", "")),
                REALTIME_CLUSTER=os.getenv("REALTIME_CLUSTER", data.get("REALTIME_CLUSTER", "")),
            ),
            push=PushSettings(
                ONESIGNAL_APP_ID=os.getenv("ONESIGNAL_APP_ID", data.get("ONESIGNAL_APP_ID", "")),
                ONESIGNAL_API_KEY=os.getenv("ONESIGNAL_API_KEY", data.get("ONESIGNAL_API_KEY", "")),
                ONESIGNAL_API_URL=data.get("ONESIGNAL_API_URL", "https://onesignal.com/api/v1"),
                PUSH_TIMEOUT=data.get("PUSH_TIMEOUT", 10.0),
            ),
            email=EmailSettings(
                MAIL_API_URL=os.getenv("MAIL_API_URL", data.get("MAIL_API_URL", "")),
                MAIL_API_KEY=os.getenv("MAIL_API_KEY", data.get("MAIL_API_KEY", "")),
                MAIL_FROM=data.get("MAIL_FROM", "no-reply@car-showroom.local"),
                MAIL_FROM_NAME=data.get("MAIL_FROM_NAME", "CarSelling Platform"),
                MAIL_TIMEOUT=data.get("MAIL_TIMEOUT", 10.0),
            ),
            dispatcher=DispatcherSettings(
                DISPATCHER_QUEUE_SIZE=data.get("DISPATCHER_QUEUE_SIZE", 1000),
                DISPATCHER_WORKERS=data.get("DISPATCHER_WORKERS", 2),
                DISPATCHER_MAX_ATTEMPTS=data.get("DISPATCHER_MAX_ATTEMPTS", 3),
                DISPATCHER_RETRY_DELAY=data.get("DISPATCHER_RETRY_DELAY", 1.0),
            ),
            api_logs=ApiLogSettings(
                API_LOG_RETENTION_DAYS=data.get("API_LOG_RETENTION_DAYS", 30),
                API_LOG_MAX_PAYLOAD_BYTES=data.get("API_LOG_MAX_PAYLOAD_BYTES", 10000),
                API_LOG_EXCLUDED_PATHS=data.get("API_LOG_EXCLUDED_PATHS", ["/health", "/docs", "/openapi.json"]),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Использует кэширование для производительности.
    """
    from dotenv import load_dotenv

    # Загружаем .env файл
    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
