# tests/config/test_loader.py
"""
Тесты для модуля загрузки конфигурации.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from src.config.loader import (
    AuthSettings,
    DatabaseSettings,
    RealtimeSettings,
    RedisSettings,
    Settings,
    get_config_path,
    get_project_root,
    load_config_json,
)


class TestPaths:
    """Тесты для путей проекта."""

    def test_project_root(self) -> None:
        root = get_project_root()

        assert isinstance(root, Path)
        assert (root / "src").exists()
        assert (root / "migrations" / "init.sql").exists()

    def test_config_path(self) -> None:
        assert get_config_path().name == "config.json"

    def test_load_config_json(self) -> None:
        data = load_config_json()

        assert data["PROJECT_NAME"] == "car_showroom"
        assert data["JWT_EXPIRE_DAYS"] == 7


class TestDatabaseSettings:
    """Тесты для DatabaseSettings."""

    def test_dsn_from_url(self) -> None:
        settings = DatabaseSettings(DATABASE_URL="postgresql://u:p@db:5432/app")
        assert settings.dsn == "postgresql://u:p@db:5432/app"

    def test_dsn_from_parts(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)

        settings = DatabaseSettings(DATABASE_URL="", DB_PASSWORD="secret", DB_HOST="db", DB_NAME="shop")

        assert settings.dsn == "postgresql://postgres:secret@db:5432/shop"

    def test_secret_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_SERVICE_KEY", "from_env")
        assert DatabaseSettings(DB_SERVICE_KEY="").DB_SERVICE_KEY == "from_env"


class TestRedisSettings:
    def test_url_without_password(self) -> None:
        assert RedisSettings(REDIS_PASSWORD="x").url == "redis://:x@localhost:6379/0"

    def test_url_plain(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("REDIS_PASSWORD", raising=False)
        assert RedisSettings(REDIS_PASSWORD="").url == "redis://localhost:6379/0"


class TestRealtimeSettings:
    def test_channel_prefix(self) -> None:
        settings = RealtimeSettings(REALTIME_APP_ID="app", REALTIME_CLUSTER="eu")
        assert settings.channel_prefix == "realtime:eu:app"


class TestSettings:
    """Тесты для главного класса настроек."""

    def test_from_config_json(self) -> None:
        settings = Settings.from_config_json()

        assert settings.deployment.API_PREFIX == "/api"
        assert settings.auth.JWT_EXPIRE_DAYS == 7
        assert settings.auth.JWT_SECRET == "test_jwt_secret"
        assert "/health" in settings.api_logs.API_LOG_EXCLUDED_PATHS

    def test_env_overrides_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("API_PORT", "9000")
        monkeypatch.setenv("COMPONENT_MODE", "api")

        settings = Settings.from_config_json()

        assert settings.deployment.API_PORT == 9000
        assert settings.system.COMPONENT_MODE == "api"

    def test_nothing_missing_with_full_env(self) -> None:
        assert Settings.from_config_json().missing_required() == []

    def test_missing_required(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Незаданные секреты перечисляются по имени."""
        monkeypatch.delenv("JWT_SECRET", raising=False)
        monkeypatch.delenv("SUPERADMIN_SETUP_KEY", raising=False)

        settings = Settings.from_config_json()

        assert settings.missing_required() == ["JWT_SECRET", "SUPERADMIN_SETUP_KEY"]

    def test_auth_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("JWT_SECRET", raising=False)

        auth = AuthSettings(JWT_SECRET="")

        assert auth.JWT_SECRET == ""
        assert auth.JWT_ALGORITHM == "HS256"
