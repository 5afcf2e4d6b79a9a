"""SendGrid email adapter (Web API v3 ``/mail/send``)."""

import httpx
import structlog

from notifications.channel.email_port import EmailPort

logger = structlog.get_logger(__name__)


class SendGridEmailAdapter(EmailPort):
    def __init__(
        self,
        api_key: str,
        from_address: str,
        base_url: str = "https://api.sendgrid.com/v3",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.from_address = from_address
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    def _build_payload(self, to: str, subject: str, text: str, html: str | None) -> dict:
        content = [{"type": "text/plain", "value": text}]
        if html:
            content.append({"type": "text/html", "value": html})
        return {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.from_address},
            "subject": subject,
            "content": content,
        }

    def send(self, to: str, subject: str, text: str, html: str | None = None) -> dict:
        try:
            response = self._client.post("/mail/send", json=self._build_payload(to, subject, text, html))
        except httpx.HTTPError as exc:
            logger.error("SendGrid request failed", to=to, error=str(exc))
            return {"message_id": None, "status": "failed", "error": str(exc)}

        if response.status_code != 202:
            logger.error("SendGrid rejected message", to=to, status_code=response.status_code)
            return {"message_id": None, "status": "failed", "error": f"HTTP {response.status_code}"}

        return {"message_id": response.headers.get("X-Message-Id"), "status": "sent"}
