"""Notification Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from src.domain.notification import Notification


class NotificationRepository(ABC):

    @abstractmethod
    async def create(self, notification: Notification) -> Notification:
        pass

    @abstractmethod
    async def get_pending(self, limit: int = 100) -> list[Notification]:
        """Pending notifications, oldest first"""
        pass

    @abstractmethod
    async def mark_sent(self, notification_id: int, sent_at: datetime) -> None:
        pass

    @abstractmethod
    async def record_failure(self, notification_id: int, error: str, give_up: bool) -> None:
        """
        Record a failed delivery attempt

        Args:
            notification_id: Notification ID
            error: Delivery error message
            give_up: If True, move the notification to FAILED
        """
        pass
