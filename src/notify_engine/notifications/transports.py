"""
Email Transports

Opaque outbound gateways used by EmailSender. Each exposes
deliver(recipient, content) and reports a message id or an error.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import Optional

import aiosmtplib
import httpx

logger = logging.getLogger("notify.notifications.transports")


@dataclass
class DeliveryReceipt:
    """What a transport reports back"""
    id: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class EmailTransport(ABC):
    """Outbound email gateway"""

    @abstractmethod
    async def deliver(
        self, recipient: str, content: dict, metadata: Optional[dict] = None
    ) -> DeliveryReceipt:
        """
        Hand one message to the gateway.

        content holds 'subject', 'html' and 'text'.
        Raises on connection-level failures.
        """
        ...

    async def close(self):
        pass


class SmtpTransport(EmailTransport):
    """Send messages via SMTP using aiosmtplib"""

    def __init__(
        self,
        smtp_host: str = "",
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        from_email: str = "",
        from_name: str = "Subscriptions",
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email or smtp_user
        self.from_name = from_name

    async def deliver(
        self, recipient: str, content: dict, metadata: Optional[dict] = None
    ) -> DeliveryReceipt:
        if not self.smtp_host:
            return DeliveryReceipt(error="SMTP not configured")

        message_id = make_msgid()
        msg = MIMEMultipart("alternative")
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = recipient
        msg["Subject"] = content.get("subject") or "Notification"
        msg["Message-ID"] = message_id

        if content.get("text"):
            msg.attach(MIMEText(content["text"], "plain", "utf-8"))
        if content.get("html"):
            msg.attach(MIMEText(content["html"], "html", "utf-8"))

        await aiosmtplib.send(
            msg,
            hostname=self.smtp_host,
            port=self.smtp_port,
            username=self.smtp_user or None,
            password=self.smtp_password or None,
            use_tls=False,
            start_tls=True,
        )

        logger.info(f"SMTP message {message_id} sent to {recipient}")
        return DeliveryReceipt(id=message_id)


class ResendTransport(EmailTransport):
    """Send messages via the Resend HTTP API using httpx"""

    def __init__(
        self,
        api_key: str,
        from_email: str,
        api_url: str = "https://api.resend.com/emails",
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.api_url = api_url
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=30.0)
        return self._client

    async def deliver(
        self, recipient: str, content: dict, metadata: Optional[dict] = None
    ) -> DeliveryReceipt:
        if not self.api_key:
            return DeliveryReceipt(error="RESEND_API_KEY not configured")

        payload = {
            "from": self.from_email,
            "to": [recipient],
            "subject": content.get("subject") or "Notification",
        }
        for field_name in ("html", "text"):
            if content.get(field_name):
                payload[field_name] = content[field_name]
        if metadata:
            payload["tags"] = [
                {"name": str(k), "value": str(v)} for k, v in metadata.items()
            ]

        client = self._get_client()
        response = await client.post(
            self.api_url,
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )

        if response.status_code in (200, 201):
            message_id = response.json().get("id")
            logger.info(f"Resend message {message_id} sent to {recipient}")
            return DeliveryReceipt(id=message_id)

        err = f"HTTP {response.status_code}: {response.text[:200]}"
        logger.error(f"Resend request failed: {err}")
        return DeliveryReceipt(error=err)

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
