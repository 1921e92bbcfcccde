# src/infra/http_clients.py
"""
HTTP-клиенты внешних сервисов: OneSignal (push) и почтовый API.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from src.common.errors import UpstreamError
from src.common.logger import log_info, log_warning
from src.common.constants import TypeMsg


class BaseClient:
    """Обёртка над httpx.AsyncClient с явным таймаутом."""

    def __init__(self, base_url: str, timeout: float = 10.0, headers: Optional[dict[str, str]] = None):
        self.base_url = base_url
        self.timeout = timeout
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            headers=headers or {},
        )

    async def close(self) -> None:
        await self.client.aclose()

    async def _post(self, path: str, json: Optional[dict[str, Any]] = None) -> Any:
        try:
            response = await self.client.post(path, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(
                f"{self.__class__.__name__}: {e.response.status_code} {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"{self.__class__.__name__}: {e}") from e

        if not response.content:
            return {}
        return response.json()


class PushClient(BaseClient):
    """
    Push-уведомления через OneSignal REST API.
    Получатель адресуется по тегу user_id, который клиент выставляет при входе.
    """

    def __init__(self, app_id: str, api_key: str, base_url: str, timeout: float = 10.0):
        super().__init__(
            base_url,
            timeout=timeout,
            headers={"Authorization": f"Basic {api_key}"},
        )
        self.app_id = app_id

    async def send_to_user(
        self,
        user_id: str,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
    ) -> str | None:
        """
        Отправляет push одному пользователю.

        Returns:
            Идентификатор уведомления OneSignal
        """
        payload = {
            "app_id": self.app_id,
            "headings": {"en": title},
            "contents": {"en": message},
            "filters": [
                {"field": "tag", "key": "user_id", "relation": "=", "value": str(user_id)},
            ],
            "data": data or {},
        }
        result = await self._post("/notifications", json=payload)
        await log_info(f"Push отправлен пользователю {user_id}", type_msg=TypeMsg.DEBUG)
        return result.get("id")


class MailClient(BaseClient):
    """
    Транзакционная почта через HTTP API провайдера.
    Тело запроса: {from, to, subject, html, text}.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        sender: str,
        sender_name: str = "",
        timeout: float = 10.0,
    ):
        super().__init__(
            api_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"} if api_key else None,
        )
        self.enabled = bool(api_url)
        self.sender = f"{sender_name} <{sender}>" if sender_name else sender

    async def send(self, to: str, subject: str, html: str, text: str = "") -> bool:
        """
        Отправляет письмо.

        Returns:
            False, если почтовый API не настроен
        """
        if not self.enabled:
            await log_warning(f"Почтовый API не настроен, письмо '{subject}' для {to} не отправлено")
            return False

        await self._post(
            "",
            json={
                "from": self.sender,
                "to": to,
                "subject": subject,
                "html": html,
                "text": text,
            },
        )
        await log_info(f"Письмо '{subject}' отправлено на {to}", type_msg=TypeMsg.DEBUG)
        return True


_push_client: PushClient | None = None
_mail_client: MailClient | None = None


def get_push_client() -> PushClient:
    global _push_client
    if _push_client is None:
        from src.config import settings

        _push_client = PushClient(
            app_id=settings.push.ONESIGNAL_APP_ID,
            api_key=settings.push.ONESIGNAL_API_KEY,
            base_url=settings.push.ONESIGNAL_API_URL,
            timeout=settings.push.PUSH_TIMEOUT,
        )
    return _push_client


def get_mail_client() -> MailClient:
    global _mail_client
    if _mail_client is None:
        from src.config import settings

        _mail_client = MailClient(
            api_url=settings.email.MAIL_API_URL,
            api_key=settings.email.MAIL_API_KEY,
            sender=settings.email.MAIL_FROM,
            sender_name=settings.email.MAIL_FROM_NAME,
            timeout=settings.email.MAIL_TIMEOUT,
        )
    return _mail_client


async def close_http_clients() -> None:
    global _push_client, _mail_client
    if _push_client is not None:
        await _push_client.close()
        _push_client = None
    if _mail_client is not None:
        await _mail_client.close()
        _mail_client = None
