# src/core/otp/state_machine.py
"""
Состояния одноразового кода для пары (email, purpose):
Issued -> Verified -> Consumed, либо Issued -> Expired.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum


class OtpState(str, Enum):
    ISSUED = "issued"
    VERIFIED = "verified"
    EXPIRED = "expired"
    CONSUMED = "consumed"


class OtpFailure(str, Enum):
    """Внутренняя причина отказа (клиент видит общее сообщение)."""
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    ALREADY_USED = "already_used"
    MISMATCH = "mismatch"


class OtpStateMachine:
    ALLOWED_TRANSITIONS = {
        OtpState.ISSUED: [OtpState.VERIFIED, OtpState.EXPIRED],
        OtpState.VERIFIED: [OtpState.CONSUMED],
        OtpState.EXPIRED: [],
        OtpState.CONSUMED: [],
    }

    @staticmethod
    def can_transition(current: str, new: str) -> bool:
        try:
            return OtpState(new) in OtpStateMachine.ALLOWED_TRANSITIONS.get(OtpState(current), [])
        except ValueError:
            return False

    @staticmethod
    def state_of(used: bool, expires_at: datetime, now: datetime) -> OtpState:
        """Текущее состояние сохранённого кода."""
        if used:
            return OtpState.CONSUMED
        if expires_at <= now:
            return OtpState.EXPIRED
        return OtpState.ISSUED
