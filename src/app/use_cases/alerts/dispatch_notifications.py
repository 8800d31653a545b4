"""DispatchNotifications Use Case

Drains the notification outbox through the delivery sink.
"""

import logging
from libs.result import Result, Return, Error
from src.domain.base import utcnow
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_service import EmailMessage, NotificationSink
from src.app.repositories.notification_repository import NotificationRepository
from .dtos import DispatchResultDTO

logger = logging.getLogger(__name__)


class DispatchNotifications:
    """
    Use Case: Deliver pending notifications

    Business Rules:
    1. Pending rows are sent oldest first
    2. A delivered row becomes SENT
    3. A failed row stays PENDING until max_attempts, then becomes FAILED
    4. Each row is committed on its own so one failure never blocks the batch
    """

    def __init__(
        self,
        uow: UnitOfWork,
        notification_repo: NotificationRepository,
        delivery_sink: NotificationSink,
        max_attempts: int = 5,
    ):
        self.uow = uow
        self.notification_repo = notification_repo
        self.delivery_sink = delivery_sink
        self.max_attempts = max_attempts

    async def execute(self, limit: int = 100) -> Result[DispatchResultDTO]:
        try:
            pending = await self.notification_repo.get_pending(limit=limit)
        except Exception as e:
            return Return.err(
                Error(
                    code="DISPATCH_FAILED",
                    message="Failed to load pending notifications",
                    reason=str(e),
                )
            )

        sent = retrying = failed = 0

        for notification in pending:
            message = EmailMessage(
                to=notification.recipient,
                subject=notification.subject,
                html=notification.html,
            )
            try:
                delivered = await self.delivery_sink.send(message)
                error = None if delivered else "delivery rejected"
            except Exception as e:
                delivered = False
                error = str(e)

            try:
                if delivered:
                    await self.notification_repo.mark_sent(notification.id, utcnow())
                    sent += 1
                else:
                    give_up = notification.attempts + 1 >= self.max_attempts
                    await self.notification_repo.record_failure(notification.id, error, give_up)
                    if give_up:
                        failed += 1
                        logger.error(
                            f"Giving up on notification {notification.id} to {notification.recipient}: {error}"
                        )
                    else:
                        retrying += 1
                await self.uow.commit()
            except Exception as e:
                await self.uow.rollback()
                logger.error(f"Failed to record delivery of notification {notification.id}: {e}")

        if pending:
            logger.info(
                f"Dispatched {len(pending)} notifications: {sent} sent, "
                f"{retrying} retrying, {failed} failed"
            )

        return Return.ok(
            DispatchResultDTO(
                processed=len(pending),
                sent=sent,
                retrying=retrying,
                failed=failed,
            )
        )
