"""
이메일 발송 협력 서비스 (Resend HTTP API).

파이프라인 핵심 로직은 발송 성공/실패 결과만 받습니다.
"""

import logging
from typing import Optional, Protocol

import httpx

from app.config import get_settings
from app.exceptions import DeliveryError

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


class EmailSender(Protocol):
    """이메일 발송 인터페이스."""

    async def send(self, to: str, subject: str, body: str) -> str: ...


class ResendEmailSender:
    """Resend API 기반 발송기."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        sender: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.api_key = settings.resend_api_key if api_key is None else api_key
        self.sender = sender or settings.email_from
        self._http_client = http_client

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def send(self, to: str, subject: str, body: str) -> str:
        """
        메일 발송.

        Returns:
            Resend 메시지 ID

        Raises:
            DeliveryError: 미설정 또는 발송 실패
        """
        if not self.is_configured():
            raise DeliveryError("이메일 발송 서비스가 설정되지 않았습니다 (RESEND_API_KEY)")

        payload = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "text": body,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            if self._http_client is not None:
                response = await self._http_client.post(RESEND_URL, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=30.0) as client:
                    response = await client.post(RESEND_URL, json=payload, headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"[Email] 발송 실패 ({to}): {e}")
            raise DeliveryError(
                "이메일 발송에 실패했습니다",
                details={"to": to, "error": str(e)},
            )

        message_id = data.get("id", "")
        logger.info(f"[Email] 발송 완료: {to} (id={message_id})")
        return message_id


def split_subject(content: str, default_subject: str) -> tuple[str, str]:
    """
    "Subject: ..." 첫 줄이 있는 초안을 (제목, 본문)으로 분리.
    첫 줄이 제목 형식이 아니면 기본 제목을 사용합니다.
    """
    text = content.strip()
    first_line, _, rest = text.partition("\n")
    if first_line.lower().startswith("subject:"):
        subject = first_line[len("subject:"):].strip() or default_subject
        return subject, rest.strip()
    return default_subject, text
