"""
E-mail Service
Best-effort transactional mail through an HTTP mail API.
"""

from typing import List, Optional

import httpx
import structlog

from volunteer_hub.config import settings

logger = structlog.get_logger(__name__)


class EmailService:
    """Posts messages to the configured mail API. Disabled when EMAIL_API_URL is empty."""

    def __init__(self, api_url: Optional[str] = None, api_key: Optional[str] = None):
        self.api_url = api_url if api_url is not None else settings.EMAIL_API_URL
        self.api_key = api_key if api_key is not None else settings.EMAIL_API_KEY

    @property
    def enabled(self) -> bool:
        return bool(self.api_url)

    async def send(self, to: str, subject: str, text: str) -> bool:
        if not self.enabled:
            logger.debug("email_skipped_disabled", to=to, subject=subject)
            return False

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "from": settings.EMAIL_FROM,
            "to": [to],
            "subject": subject,
            "text": text,
        }

        async with httpx.AsyncClient(timeout=settings.EMAIL_TIMEOUT_SECONDS) as client:
            resp = await client.post(self.api_url, headers=headers, json=payload)
            resp.raise_for_status()

        logger.info("email_sent", to=to, subject=subject)
        return True

    async def send_additional_info_request(
        self,
        to: str,
        volunteer_name: str,
        opportunity_title: str,
        fields: List[str],
        message: Optional[str],
        application_id: str,
    ) -> bool:
        lines = [
            f"Hi {volunteer_name or 'there'},",
            "",
            f"The organisers of \"{opportunity_title}\" need a little more information about your application:",
            "",
            *[f"  - {f}" for f in fields],
        ]
        if message:
            lines += ["", message]
        lines += ["", f"Reply here: {settings.FRONTEND_URL}/applications/{application_id}/provide-info"]

        return await self.send(to, f"More information needed for {opportunity_title}", "\n".join(lines))
