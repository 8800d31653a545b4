"""Notification Sink Implementations

Provides concrete implementations for delivering billing emails.
"""

import logging
from typing import Optional
import httpx
from src.app.services.notification_service import EmailMessage, NotificationSink
from src.app.repositories.notification_repository import NotificationRepository
from src.domain.notification import Notification

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class LoggingNotificationSink(NotificationSink):
    """
    Notification sink that logs messages

    Useful for development and testing, or as a fallback.
    """

    async def send(self, message: EmailMessage) -> bool:
        """
        Log notification

        Returns:
            Always True (logging never fails)
        """
        logger.info(f"[EMAIL] To: {message.to}, Subject: {message.subject}")
        return True


class ResendNotificationSink(NotificationSink):
    """
    Notification sink that sends email through the Resend HTTP API
    """

    def __init__(self, api_key: str, from_address: str, timeout: float = 10.0):
        """
        Initialize Resend sink

        Args:
            api_key: Resend API key
            from_address: Sender, e.g. "Billing <billing@example.com>"
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.from_address = from_address
        self.timeout = timeout

    async def send(self, message: EmailMessage) -> bool:
        """
        Send email via Resend

        Returns:
            True if the API accepted the email, False otherwise
        """
        payload = {
            "from": self.from_address,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    RESEND_API_URL,
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                )
                response.raise_for_status()
                logger.info(f"Email '{message.subject}' sent to {message.to}")
                return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send email '{message.subject}' to {message.to}: {e}")
            return False


class WebhookNotificationSink(NotificationSink):
    """
    Notification sink that mirrors messages to an HTTP webhook

    Sends a JSON payload to the configured URL (ops channel, audit inbox).
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def send(self, message: EmailMessage) -> bool:
        payload = {
            "type": "billing_notification",
            "to": message.to,
            "subject": message.subject,
            "html": message.html,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to post notification '{message.subject}' to {self.webhook_url}: {e}")
            return False


class CompositeNotificationSink(NotificationSink):
    """
    Notification sink that delegates to multiple sinks

    Useful for sending to multiple channels (e.g., log + email).
    """

    def __init__(self, sinks: list[NotificationSink]):
        self.sinks = sinks

    async def send(self, message: EmailMessage) -> bool:
        """
        Returns:
            True if at least one sink succeeded, False otherwise
        """
        success = False
        for sink in self.sinks:
            try:
                if await sink.send(message):
                    success = True
            except Exception as e:
                logger.error(f"Notification sink {type(sink).__name__} failed: {e}")
        return success


class OutboxNotificationSink(NotificationSink):
    """
    Notification sink that stores the message in the notifications table

    The row joins the caller's unit of work, so it is only persisted if the
    state change it describes commits. The dispatcher worker delivers it.
    """

    def __init__(self, notification_repo: NotificationRepository):
        self.notification_repo = notification_repo

    async def send(self, message: EmailMessage) -> bool:
        await self.notification_repo.create(
            Notification(
                recipient=message.to,
                subject=message.subject,
                html=message.html,
            )
        )
        return True


def create_delivery_sink(
    resend_api_key: Optional[str] = None,
    email_from: Optional[str] = None,
    webhook_url: Optional[str] = None,
) -> NotificationSink:
    """
    Factory function to create the sink that actually delivers messages

    Args:
        resend_api_key: If provided with email_from, email is sent through Resend
        email_from: Sender address
        webhook_url: Optional webhook that receives a copy of every message

    Returns:
        Configured NotificationSink (logging only when nothing is configured)
    """
    sinks: list[NotificationSink] = []

    if resend_api_key and email_from:
        sinks.append(ResendNotificationSink(resend_api_key, email_from))

    if webhook_url:
        sinks.append(WebhookNotificationSink(webhook_url))

    if not sinks:
        return LoggingNotificationSink()

    if len(sinks) == 1:
        return sinks[0]

    return CompositeNotificationSink(sinks)
