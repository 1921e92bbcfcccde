# src/services/marketplace_api/routes/admin.py
"""
Эндпоинты администраторов салонов и суперадмина.

Endpoints:
- POST /admin/create-superadmin - первый суперадмин по ключу установки
- GET /admin/room - салон текущего администратора
- GET /admin/bookings - бронирования салона
- POST /admin/verify-scanner-otp/send-otp - код для загрузки скана
- POST /admin/verify-scanner-otp/verify-otp - проверка кода
- PUT /admin/payments/{id}/review - проверка платежа
- GET/DELETE /admin/logs, GET /admin/logs/cleanup - журнал API
- GET/PUT /admin/api-logging-toggle - флаг журналирования
- GET/PUT /system-settings - системные настройки
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query
from pydantic import BaseModel, Field

from src.config import settings
from src.core.api_logs import ApiLogService, LogFilters
from src.core.api_logs.service import parse_retention_days
from src.core.bookings import BookingService
from src.core.payments import PaymentReview, PaymentService
from src.core.rooms import RoomService
from src.core.system_settings import SystemSettingsService
from src.core.users import AuthService
from src.services.marketplace_api.dependencies import (
    AdminUser,
    SuperAdminUser,
    get_api_log_service,
    get_auth_service,
    get_booking_service,
    get_payment_service,
    get_room_service,
    get_settings_service,
)
from src.shared.models.common import PaginationParams

router = APIRouter(tags=["Admin"])

ApiLogs = Annotated[ApiLogService, Depends(get_api_log_service)]
SystemSettings = Annotated[SystemSettingsService, Depends(get_settings_service)]
Payments = Annotated[PaymentService, Depends(get_payment_service)]


# === REQUEST MODELS ===

class CreateSuperadminRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class ScannerOtpRequest(BaseModel):
    otp: Optional[str] = None


class LoggingToggleRequest(BaseModel):
    # Any: bool проверяется сервисом, "true" строкой не принимается
    enabled: Any = None


class SystemSettingRequest(BaseModel):
    setting_key: Optional[str] = Field(None, alias="settingKey")
    setting_value: Any = Field(None, alias="settingValue")

    model_config = {"populate_by_name": True}


# === SUPERADMIN BOOTSTRAP ===

@router.post("/admin/create-superadmin", status_code=201)
async def create_superadmin(
    request: CreateSuperadminRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
    x_setup_key: Annotated[Optional[str], Header()] = None,
) -> dict[str, Any]:
    """Создаёт единственного суперадмина; ключ сравнивается с SUPERADMIN_SETUP_KEY."""
    token, user = await service.create_superadmin(
        settings.auth.SUPERADMIN_SETUP_KEY,
        x_setup_key,
        request.username,
        request.email,
        request.password,
    )
    return {"message": "Super Admin created successfully", "token": token, "user": user.model_dump(mode="json")}


# === ROOM & BOOKINGS ===

@router.get("/admin/room")
async def get_admin_room(
    actor: AdminUser,
    service: Annotated[RoomService, Depends(get_room_service)],
) -> dict[str, Any]:
    room = await service.get_admin_room(actor.user_id)
    return {"room": room.model_dump(mode="json")}


@router.get("/admin/bookings")
async def get_admin_bookings(
    actor: AdminUser,
    service: Annotated[BookingService, Depends(get_booking_service)],
) -> dict[str, Any]:
    bookings = await service.list_for_admin(actor)
    return {"bookings": [b.model_dump(mode="json") for b in bookings], "count": len(bookings)}


# === PAYMENTS REVIEW ===

@router.post("/admin/verify-scanner-otp/send-otp")
async def send_scanner_otp(actor: AdminUser, service: Payments) -> dict[str, Any]:
    await service.send_scanner_otp(actor)
    return {"message": "OTP sent successfully to your email"}


@router.post("/admin/verify-scanner-otp/verify-otp")
async def verify_scanner_otp(
    request: ScannerOtpRequest,
    actor: AdminUser,
    service: Payments,
) -> dict[str, Any]:
    """Код проверяется, но остаётся действительным до review платежа."""
    await service.check_scanner_otp(actor, request.otp)
    return {"message": "OTP verified successfully", "verified": True}


@router.put("/admin/payments/{payment_id}/review")
async def review_payment(
    payment_id: UUID,
    request: PaymentReview,
    actor: AdminUser,
    service: Payments,
) -> dict[str, Any]:
    payment = await service.review(str(payment_id), actor, request)
    return {"message": "Payment reviewed successfully", "payment": payment.model_dump(mode="json")}


# === API LOGS ===

@router.get("/admin/logs")
async def list_api_logs(
    actor: SuperAdminUser,
    service: ApiLogs,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    endpoint: Optional[str] = Query(default=None),
    status_code: Optional[int] = Query(default=None, alias="statusCode"),
    method: Optional[str] = Query(default=None),
    error_only: bool = Query(default=False, alias="errorOnly"),
) -> dict[str, Any]:
    filters = LogFilters(
        start_date=start_date,
        end_date=end_date,
        endpoint=endpoint or None,
        status_code=status_code,
        method=method or None,
        error_only=error_only,
    )
    logs, pagination = await service.list_logs(filters, PaginationParams(page=page, limit=limit))
    return {
        "logs": [log.model_dump(mode="json") for log in logs],
        "pagination": pagination.model_dump(),
    }


async def _cleanup(
    retention_days: Optional[str],
    service: ApiLogService,
    system_settings: SystemSettingsService,
) -> tuple[int, int]:
    """Срок хранения: из запроса, иначе из настройки api_log_retention_days."""
    days = parse_retention_days(retention_days)
    if days is None:
        days = await system_settings.get_log_retention_days()
    return await service.cleanup(days), days


@router.delete("/admin/logs")
async def clear_api_logs(
    actor: SuperAdminUser,
    service: ApiLogs,
    system_settings: SystemSettings,
    retention_days: Optional[str] = Query(default=None, alias="retentionDays"),
) -> dict[str, Any]:
    deleted, days = await _cleanup(retention_days, service, system_settings)
    return {"message": "API logs cleared successfully", "deletedCount": deleted, "retentionDays": days}


@router.get("/admin/logs/cleanup")
async def cleanup_api_logs(
    actor: SuperAdminUser,
    service: ApiLogs,
    system_settings: SystemSettings,
    retention_days: Optional[str] = Query(default=None, alias="retentionDays"),
) -> dict[str, Any]:
    deleted, days = await _cleanup(retention_days, service, system_settings)
    return {
        "message": "API logs cleanup completed successfully",
        "deletedCount": deleted,
        "retentionDays": days,
    }


@router.get("/admin/api-logging-toggle")
async def get_api_logging(actor: SuperAdminUser, system_settings: SystemSettings) -> dict[str, Any]:
    return {"enabled": await system_settings.is_api_logging_enabled()}


@router.put("/admin/api-logging-toggle")
async def toggle_api_logging(
    request: LoggingToggleRequest,
    actor: SuperAdminUser,
    system_settings: SystemSettings,
) -> dict[str, Any]:
    enabled = await system_settings.set_api_logging_enabled(request.enabled, updated_by=actor.user_id)
    return {
        "message": f"API logging {'enabled' if enabled else 'disabled'} successfully",
        "enabled": enabled,
    }


# === SYSTEM SETTINGS ===

@router.get("/system-settings", tags=["System"])
async def list_system_settings(actor: SuperAdminUser, system_settings: SystemSettings) -> dict[str, Any]:
    items = await system_settings.list_settings()
    return {"settings": [item.model_dump(mode="json") for item in items]}


@router.put("/system-settings", tags=["System"])
async def update_system_setting(
    request: SystemSettingRequest,
    actor: SuperAdminUser,
    system_settings: SystemSettings,
) -> dict[str, Any]:
    setting = await system_settings.update_setting(
        request.setting_key, request.setting_value, updated_by=actor.user_id
    )
    return {"message": "System setting updated successfully", "setting": setting.model_dump(mode="json")}
