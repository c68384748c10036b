import logging
from typing import Any, Dict, List, Optional

import requests

from dialcrm.core.config import settings
from dialcrm.core.errors import ProviderError

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


class EmailRelay:
    def __init__(self, api_key: Optional[str] = None, session: Optional[requests.Session] = None) -> None:
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def send(self, to: List[str], subject: str, html: str, sender: Optional[str] = None) -> Dict[str, Any]:
        body = {"from": sender or settings.eod_from_email, "to": to, "subject": subject, "html": html}
        try:
            response = self.session.post(
                RESEND_URL,
                json=body,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=settings.dialpad_timeout_seconds,
            )
        except requests.RequestException as exc:
            raise ProviderError(f"Email relay unreachable: {exc}") from exc
        if not response.ok:
            logger.error("Resend API error: %s %s", response.status_code, response.text)
            raise ProviderError(
                "Failed to send email",
                provider_status=response.status_code,
                body=response.text,
            )
        return response.json()
