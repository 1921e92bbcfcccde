# tests/services/test_marketplace_api_routes.py
"""
Тесты HTTP-слоя API маркетплейса: аутентификация, роли, формат ошибок.
Сервисы подменяются через dependency_overrides, lifespan не запускается.
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from src.common.errors import NotFoundError
from src.core.auth.tokens import encode_token
from src.services.marketplace_api.app import create_app
from src.services.marketplace_api.dependencies import get_room_service, get_settings_service


def _auth(role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {encode_token(str(uuid.uuid4()), role)}"}


@pytest.fixture
def room_service() -> MagicMock:
    service = MagicMock()
    service.list_active = AsyncMock(return_value=[])
    service.get = AsyncMock(side_effect=NotFoundError("Room not found"))
    service.create = AsyncMock()
    return service


@pytest.fixture
def settings_service() -> MagicMock:
    service = MagicMock()
    service.is_api_logging_enabled = AsyncMock(return_value=True)
    return service


@pytest.fixture
def client(room_service: MagicMock, settings_service: MagicMock) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_room_service] = lambda: room_service
    app.dependency_overrides[get_settings_service] = lambda: settings_service
    return TestClient(app, raise_server_exceptions=False)


class TestPublicRoutes:
    """Публичные маршруты доступны без токена."""

    def test_list_rooms(self, client: TestClient) -> None:
        response = client.get("/api/rooms")

        assert response.status_code == 200
        assert response.json() == {"rooms": []}

    def test_not_found_error_body(self, client: TestClient) -> None:
        response = client.get(f"/api/rooms/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json() == {"error": "Room not found"}

    def test_bad_uuid_is_400(self, client: TestClient, room_service: MagicMock) -> None:
        """Некорректный id в пути отклоняется до обращения к сервису."""
        response = client.get("/api/rooms/not-a-uuid")

        assert response.status_code == 400
        assert "error" in response.json()
        room_service.get.assert_not_awaited()

    def test_health_degraded_without_infra(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"


class TestAuthentication:
    """Проверка токена и ролей."""

    def test_missing_token(self, client: TestClient, room_service: MagicMock) -> None:
        response = client.post("/api/rooms", json={"name": "Premium Motors"})

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        room_service.create.assert_not_awaited()

    def test_invalid_token(self, client: TestClient) -> None:
        response = client.post(
            "/api/rooms",
            json={"name": "Premium Motors"},
            headers={"Authorization": "Bearer garbage"},
        )
        assert response.status_code == 401

    def test_wrong_role(self, client: TestClient) -> None:
        response = client.post("/api/rooms", json={"name": "Premium Motors"}, headers=_auth("user"))

        assert response.status_code == 403
        assert response.json() == {"error": "Access denied"}

    def test_superadmin_only_route(self, client: TestClient) -> None:
        assert client.get("/api/admin/api-logging-toggle", headers=_auth("admin")).status_code == 403

        response = client.get("/api/admin/api-logging-toggle", headers=_auth("superadmin"))

        assert response.status_code == 200
        assert response.json() == {"enabled": True}


class TestErrorHandling:
    def test_unhandled_error_is_500(self, client: TestClient, room_service: MagicMock) -> None:
        room_service.list_active.side_effect = RuntimeError("connection reset")

        response = client.get("/api/rooms")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
