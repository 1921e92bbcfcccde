# src/core/otp/models.py
"""
Модели одноразовых кодов.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.common.constants import OtpPurpose
from src.core.otp.state_machine import OtpFailure
from src.shared.models.common import EntityId


class OtpCode(BaseModel):
    """Запись таблицы otp_codes."""

    id: EntityId
    email: str
    purpose: OtpPurpose
    otp_code: str
    payload: dict[str, Any] = Field(default_factory=dict)
    expires_at: datetime
    used: bool = False
    attempts: int = 0
    created_at: datetime


class OtpVerification(BaseModel):
    """Результат проверки кода."""

    success: bool
    reason: Optional[OtpFailure] = None
    payload: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ok(cls, payload: dict[str, Any]) -> "OtpVerification":
        return cls(success=True, payload=payload)

    @classmethod
    def fail(cls, reason: OtpFailure) -> "OtpVerification":
        return cls(success=False, reason=reason)
