# src/core/otp/service.py
"""
Сервис одноразовых кодов.

Код из 6 цифр живёт 10 минут. Для пары (email, purpose) хранится только
последний код; успешная проверка атомарно помечает его использованным.
"""

from __future__ import annotations

import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from src.common.constants import OtpPurpose, TypeMsg
from src.common.errors import ValidationError
from src.common.logger import log_info
from src.core.notifications import emails
from src.core.otp.models import OtpCode, OtpVerification
from src.core.otp.repository import OtpRepository
from src.core.otp.state_machine import OtpFailure, OtpState, OtpStateMachine
from src.infra.database import DatabaseManager
from src.infra.dispatcher import SideEffectDispatcher
from src.infra.http_clients import MailClient

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_RE.match(email) is not None


class OtpService:
    """Выдача, повторная отправка и проверка кодов."""

    def __init__(
        self,
        db: DatabaseManager,
        dispatcher: SideEffectDispatcher,
        mail: MailClient,
        ttl_minutes: int = 10,
        length: int = 6,
        resend_cooldown_seconds: int = 60,
    ) -> None:
        self._repo = OtpRepository(db)
        self._dispatcher = dispatcher
        self._mail = mail
        self.ttl = timedelta(minutes=ttl_minutes)
        self.length = length
        self.resend_cooldown = resend_cooldown_seconds

    def _new_code(self) -> str:
        return f"{secrets.randbelow(10 ** self.length):0{self.length}d}"

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    async def generate_and_send(
        self,
        email: str,
        purpose: OtpPurpose,
        payload: Optional[dict[str, Any]] = None,
    ) -> OtpCode:
        """
        Создаёт новый код (прежние коды пары удаляются) и ставит письмо в очередь.
        """
        if not is_valid_email(email):
            raise ValidationError("Invalid email format")

        otp = await self._repo.replace(
            email=email,
            purpose=purpose.value,
            code=self._new_code(),
            expires_at=self._now() + self.ttl,
            payload=payload or {},
        )

        subject, html = emails.otp_email(otp.otp_code, int(self.ttl.total_seconds() // 60))
        self._dispatcher.submit(
            "email.otp",
            lambda: self._mail.send(email, subject, html),
            purpose=purpose.value,
        )
        await log_info(f"OTP ({purpose.value}) выдан для {email}", type_msg=TypeMsg.DEBUG)
        return otp

    async def _match(
        self,
        email: str,
        code: str,
        purpose: OtpPurpose,
    ) -> tuple[Optional[OtpCode], Optional[OtpFailure]]:
        otp = await self._repo.get_latest(email, purpose.value)
        if otp is None:
            return None, OtpFailure.NOT_FOUND

        state = OtpStateMachine.state_of(otp.used, otp.expires_at, self._now())
        if state == OtpState.CONSUMED:
            return otp, OtpFailure.ALREADY_USED
        if state == OtpState.EXPIRED:
            await self._repo.increment_attempts(otp.id)
            return otp, OtpFailure.EXPIRED

        if not secrets.compare_digest(otp.otp_code, str(code).strip()):
            await self._repo.increment_attempts(otp.id)
            return otp, OtpFailure.MISMATCH
        return otp, None

    async def verify(self, email: str, code: str, purpose: OtpPurpose) -> OtpVerification:
        """
        Проверяет код. При успехе код помечается использованным,
        действие над аккаунтом выполняет вызывающий.
        """
        otp, failure = await self._match(email, code, purpose)
        if failure is not None:
            return OtpVerification.fail(failure)

        # Условный UPDATE: из двух параллельных проверок пройдёт одна
        if not await self._repo.consume(otp.id):
            return OtpVerification.fail(OtpFailure.ALREADY_USED)

        return OtpVerification.ok(otp.payload)

    async def check(self, email: str, code: str, purpose: OtpPurpose) -> OtpVerification:
        """Проверяет код, не расходуя его."""
        otp, failure = await self._match(email, code, purpose)
        if failure is not None:
            return OtpVerification.fail(failure)
        return OtpVerification.ok(otp.payload)

    async def resend(self, email: str, purpose: OtpPurpose) -> OtpCode:
        """
        Повторно отправляет код с сохранением ожидающих данных.
        Учитывает паузу между отправками.
        """
        latest = await self._repo.get_latest(email, purpose.value)
        if latest is None or latest.used:
            raise ValidationError("No pending verification found for this email")

        if self.resend_cooldown > 0:
            elapsed = (self._now() - latest.created_at).total_seconds()
            if elapsed < self.resend_cooldown:
                remaining = int(self.resend_cooldown - elapsed) + 1
                raise ValidationError(f"Please wait {remaining} seconds before requesting another OTP")

        return await self.generate_and_send(email, purpose, latest.payload)
