# tests/core/test_api_logs.py
"""
Тесты для журнала API и системных настроек.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import pytest

from src.common.errors import ValidationError
from src.core.api_logs.models import LogEntry, LogFilters
from src.core.api_logs.repository import build_where
from src.core.api_logs.sanitize import MASK, mask_sensitive, prepare_payload
from src.core.api_logs.service import ApiLogService, parse_retention_days
from src.core.system_settings.service import DEFAULT_RETENTION_DAYS, SystemSettingsService
from src.shared.models.common import PaginationParams


def _entry(**overrides: Any) -> LogEntry:
    data = {"endpoint": "/api/rooms", "method": "GET", "status_code": 200, "response_time_ms": 12}
    data.update(overrides)
    return LogEntry(**data)


class TestSanitize:
    """Тесты для подготовки тел запросов."""

    def test_masks_nested_secrets(self) -> None:
        masked = mask_sensitive(
            {"email": "a@b.co", "password": "x", "nested": {"newPassword": "y", "items": [{"otp": "1"}]}}
        )

        assert masked["email"] == "a@b.co"
        assert masked["password"] == MASK
        assert masked["nested"]["newPassword"] == MASK
        assert masked["nested"]["items"][0]["otp"] == MASK

    def test_empty_body(self) -> None:
        assert prepare_payload(b"", 100) is None

    def test_non_json_body(self) -> None:
        assert prepare_payload(b"plain text", 100) == {"raw": "plain text"}

    def test_large_body_truncated(self) -> None:
        result = prepare_payload(json.dumps({"a": "x" * 50}).encode(), 10)

        assert result["truncated"] is True
        assert len(result["preview"]) == 10


class TestLogFilters:
    def test_error_only(self) -> None:
        where, args = build_where(LogFilters(error_only=True))

        assert "NOT (status_code = ANY($1::int[]))" in where
        assert args == [[200, 201, 204]]

    def test_combined(self) -> None:
        where, args = build_where(
            LogFilters(
                start_date=datetime(2026, 1, 1, tzinfo=timezone.utc),
                endpoint="rooms",
                method="post",
                status_code=500,
            )
        )

        assert where.count("$") == 4
        assert args[1] == "%rooms%"
        assert args[3] == "POST"


class TestApiLogService:
    """Тесты для ApiLogService."""

    @pytest.mark.asyncio
    async def test_disabled_writes_nothing(self, mock_db) -> None:
        """При выключенном флаге ни одной записи в журнал."""
        assert await ApiLogService(mock_db).record(_entry(), enabled=False) is False
        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_enabled_writes_row(self, mock_db) -> None:
        assert await ApiLogService(mock_db).record(_entry(status_code=404), enabled=True) is True
        assert mock_db.execute.call_args.args[3] == 404

    @pytest.mark.asyncio
    async def test_write_failure_swallowed(self, mock_db) -> None:
        mock_db.execute.side_effect = RuntimeError("db down")
        assert await ApiLogService(mock_db).record(_entry(), enabled=True) is False

    @pytest.mark.asyncio
    async def test_list_pagination(self, mock_db) -> None:
        mock_db.fetchval.return_value = 45

        logs, pagination = await ApiLogService(mock_db).list_logs(LogFilters(), PaginationParams(page=2, limit=20))

        assert logs == []
        assert pagination.totalPages == 3
        assert pagination.hasNextPage and pagination.hasPrevPage
        assert mock_db.fetch.call_args.args[1:] == (20, 20)

    @pytest.mark.asyncio
    async def test_cleanup(self, mock_db) -> None:
        mock_db.fetchval.return_value = 12
        assert await ApiLogService(mock_db).cleanup(30) == 12

    @pytest.mark.asyncio
    async def test_cleanup_rejects_zero(self, mock_db) -> None:
        with pytest.raises(ValidationError):
            await ApiLogService(mock_db).cleanup(0)


class TestParseRetentionDays:
    def test_missing(self) -> None:
        assert parse_retention_days(None) is None
        assert parse_retention_days("") is None

    def test_valid(self) -> None:
        assert parse_retention_days("7") == 7

    @pytest.mark.parametrize("value", ["0", "-1", "abc"])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(ValidationError, match="positive integer"):
            parse_retention_days(value)


class TestSystemSettingsService:
    """Тесты для системных настроек."""

    @pytest.mark.asyncio
    async def test_logging_flag(self, mock_db) -> None:
        mock_db.fetchval.return_value = "true"
        assert await SystemSettingsService(mock_db).is_api_logging_enabled() is True

        mock_db.fetchval.return_value = "false"
        assert await SystemSettingsService(mock_db).is_api_logging_enabled() is False

    @pytest.mark.asyncio
    async def test_logging_flag_read_error(self, mock_db) -> None:
        """Ошибка чтения флага означает «не журналировать»."""
        mock_db.fetchval.side_effect = RuntimeError("db down")
        assert await SystemSettingsService(mock_db).is_api_logging_enabled() is False

    @pytest.mark.asyncio
    async def test_toggle_requires_bool(self, mock_db) -> None:
        with pytest.raises(ValidationError, match="must be a boolean"):
            await SystemSettingsService(mock_db).set_api_logging_enabled("yes")

    @pytest.mark.asyncio
    async def test_update_setting_stores_string(self, mock_db) -> None:
        mock_db.fetchrow.return_value = {
            "setting_key": "api_logging_enabled",
            "setting_value": "true",
            "description": None,
            "updated_at": datetime.now(timezone.utc),
            "updated_by": None,
        }

        setting = await SystemSettingsService(mock_db).update_setting("api_logging_enabled", True)

        assert setting.setting_value == "true"
        assert mock_db.fetchrow.call_args.args[2] == "true"

    @pytest.mark.asyncio
    async def test_update_setting_requires_key(self, mock_db) -> None:
        with pytest.raises(ValidationError, match="Setting key is required"):
            await SystemSettingsService(mock_db).update_setting("", "1")

    @pytest.mark.asyncio
    async def test_retention_default(self, mock_db) -> None:
        mock_db.fetchval.return_value = "garbage"
        assert await SystemSettingsService(mock_db).get_log_retention_days() == DEFAULT_RETENTION_DAYS
