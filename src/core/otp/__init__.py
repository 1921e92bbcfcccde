# src/core/otp/__init__.py
"""
Одноразовые коды (регистрация, подтверждение загрузки скана платежа).
"""

from src.core.otp.models import OtpCode, OtpVerification
from src.core.otp.state_machine import OtpFailure, OtpState, OtpStateMachine
from src.core.otp.repository import OtpRepository
from src.core.otp.service import OtpService

__all__ = [
    "OtpCode",
    "OtpVerification",
    "OtpFailure",
    "OtpState",
    "OtpStateMachine",
    "OtpRepository",
    "OtpService",
]
