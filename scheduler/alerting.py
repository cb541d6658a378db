"""
Email notifications for map version changes and check failures.

Messages are sent through a transactional email HTTP API using a bearer
token. Failures are logged and raised; nothing is retried.
"""

from typing import Optional

import httpx
import structlog

from scheduler.models import NotificationConfig
from utilities.exceptions import NotificationError

logger = structlog.get_logger(__name__)

CHANGE_SUBJECT = "New TomTom map version available"
ERROR_SUBJECT = "Error in TomTom map version check"


class EmailNotifier:
    """Sends plain-text notification emails."""

    def __init__(
        self,
        config: NotificationConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the notifier.

        Args:
            config: Email API settings
            transport: Optional httpx transport, used by tests
        """
        self.config = config
        self.transport = transport
        self.logger = logger.bind(component="email_notifier")

    async def send_email(self, subject: str, message: str) -> None:
        """
        Send one email to the configured recipient.

        Raises:
            NotificationError: if the API does not answer with a success status
        """
        payload = {
            "from": self.config.sender,
            "to": self.config.recipient,
            "subject": subject,
            "text": message,
        }
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }

        try:
            async with httpx.AsyncClient(timeout=self.config.timeout, transport=self.transport) as client:
                response = await client.post(self.config.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            self.logger.error("Email API request failed", error=str(e))
            raise NotificationError("Failed to send notification email") from e

        if not response.is_success:
            self.logger.error(
                "Failed to send notification email",
                status=response.status_code,
                body=response.text
            )
            raise NotificationError("Failed to send notification email")

        self.logger.info("Notification email sent", subject=subject)

    async def notify_change(self, message: str) -> None:
        await self.send_email(CHANGE_SUBJECT, message)

    async def report_error(self, message: str, exception: BaseException) -> None:
        """Send an error report combining ``message`` and the exception text."""
        await self.send_email(ERROR_SUBJECT, f"{message}\n\n{exception}")
