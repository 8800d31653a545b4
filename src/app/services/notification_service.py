"""Notification Sink Interface

Defines the contract for delivering billing emails.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str


class NotificationSink(ABC):
    """
    Abstract sink for billing notifications

    Implementations can deliver via:
    - Transactional email API (Resend)
    - Durable outbox table drained by a worker
    - Log output (development)
    """

    @abstractmethod
    async def send(self, message: EmailMessage) -> bool:
        """
        Deliver or enqueue a notification

        Args:
            message: EmailMessage to deliver

        Returns:
            True if the message was accepted, False otherwise
        """
        pass
