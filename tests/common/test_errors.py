# tests/common/test_errors.py
"""
Тесты для иерархии прикладных ошибок.
"""

import json
from unittest.mock import MagicMock

import pytest

from src.common.errors import (
    AppError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from src.services.marketplace_api.errors import app_error_handler


class TestAppErrors:
    """Тесты для статусов и тел ошибок."""

    @pytest.mark.parametrize(
        "error_cls,status",
        [
            (ValidationError, 400),
            (AuthenticationError, 401),
            (AuthorizationError, 403),
            (NotFoundError, 404),
            (UpstreamError, 500),
        ],
    )
    def test_status_codes(self, error_cls: type[AppError], status: int) -> None:
        error = error_cls("boom")

        assert error.status_code == status
        assert isinstance(error, AppError)

    def test_to_dict(self) -> None:
        assert NotFoundError("Car not found").to_dict() == {"error": "Car not found"}

    @pytest.mark.asyncio
    async def test_handler_renders_to_dict(self) -> None:
        """Обработчик FastAPI отдаёт тело из to_dict и статус ошибки."""
        response = await app_error_handler(MagicMock(), AuthorizationError("Not your room"))

        assert response.status_code == 403
        assert json.loads(response.body) == AuthorizationError("Not your room").to_dict()

    def test_default_messages(self) -> None:
        assert AuthenticationError().message == "Unauthorized"
        assert AuthorizationError().message == "Access denied"

    def test_status_override(self) -> None:
        error = AppError("Conflict", status_code=409, details={"field": "email"})

        assert error.status_code == 409
        assert error.details == {"field": "email"}
        assert str(error) == "Conflict"
