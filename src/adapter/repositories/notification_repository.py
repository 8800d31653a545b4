"""SQLAlchemy implementation of NotificationRepository"""

from datetime import datetime
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.notification_repository import NotificationRepository
from src.domain.notification import Notification, NotificationStatus


class SqlAlchemyNotificationRepository(NotificationRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, notification: Notification) -> Notification:
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def get_pending(self, limit: int = 100) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.status == NotificationStatus.PENDING)
            .order_by(Notification.created_at, Notification.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def mark_sent(self, notification_id: int, sent_at: datetime) -> None:
        notification = await self._get(notification_id)
        if notification:
            notification.status = NotificationStatus.SENT
            notification.attempts += 1
            notification.sent_at = sent_at
            notification.last_error = None
            self.session.add(notification)
            await self.session.flush()

    async def record_failure(self, notification_id: int, error: str, give_up: bool) -> None:
        notification = await self._get(notification_id)
        if notification:
            notification.attempts += 1
            notification.last_error = error
            if give_up:
                notification.status = NotificationStatus.FAILED
            self.session.add(notification)
            await self.session.flush()

    async def _get(self, notification_id: int):
        stmt = select(Notification).where(Notification.id == notification_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
