"""SendExpirationAlerts Use Case"""

import logging
import math
from datetime import datetime, timedelta
from typing import Optional
from libs.result import Result, Return
from src.domain.base import utcnow
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.promotion_repository import PromotionRepository
from src.app.use_cases.alerts.promotion_notifier import PromotionNotifier
from src.domain.promotion import PromotionStatus, SECONDS_PER_DAY
from .dtos import ExpirationAlertsResultDTO

logger = logging.getLogger(__name__)


class SendExpirationAlerts:
    """
    Use Case: Remind organizations of promotions about to end

    Picks ACTIVE promotions with expiration_alert_sent == False and
    now < end_date <= now + alert_days. Each gets a single reminder, and the
    flag is only set once the reminder was accepted for delivery.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        promotion_repo: PromotionRepository,
        notifier: PromotionNotifier,
        alert_days: int = 3,
        batch_size: int = 100,
    ):
        self.uow = uow
        self.promotion_repo = promotion_repo
        self.notifier = notifier
        self.alert_window = timedelta(days=alert_days)
        self.batch_size = batch_size

    async def execute(self, now: Optional[datetime] = None) -> Result[ExpirationAlertsResultDTO]:
        now = now or utcnow()
        result = ExpirationAlertsResultDTO()

        try:
            candidates = await self.promotion_repo.get_expiring_without_alert(
                now, now + self.alert_window, limit=self.batch_size
            )
        except Exception as e:
            logger.error(f"Failed to load expiring promotions: {e}")
            result.errors.append(f"Failed to load expiring promotions: {e}")
            return Return.ok(result)

        promotion_ids = [promotion.id for promotion in candidates]
        result.candidates = len(promotion_ids)

        for promotion_id in promotion_ids:
            try:
                promotion = await self.promotion_repo.get_by_id(promotion_id, for_update=True)
                if (
                    not promotion
                    or promotion.expiration_alert_sent
                    or promotion.status != PromotionStatus.ACTIVE
                ):
                    continue

                days_remaining = math.ceil((promotion.end_date - now).total_seconds() / SECONDS_PER_DAY)

                if not await self.notifier.send_expiration_reminder(promotion, days_remaining):
                    await self.uow.rollback()
                    continue

                promotion.expiration_alert_sent = True
                await self.promotion_repo.save(promotion)
                await self.uow.commit()
                result.alerts_sent += 1

            except Exception as e:
                await self.uow.rollback()
                logger.error(f"Failed to send expiration alert for promotion {promotion_id}: {e}")
                result.errors.append(f"Expiration alert failed for {promotion_id}: {e}")

        if promotion_ids:
            logger.info(f"Expiration alerts: {result.alerts_sent}/{result.candidates} sent")

        return Return.ok(result)
