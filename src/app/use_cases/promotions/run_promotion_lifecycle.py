"""RunPromotionLifecycle Use Case

The hourly job: expiration sweep followed by expiration reminders.
"""

import logging
import time
from datetime import datetime
from typing import Optional
from libs.result import Result, Return
from src.domain.base import utcnow
from .dtos import PromotionLifecycleResultDTO
from .process_expired_promotions import ProcessExpiredPromotions
from .send_expiration_alerts import SendExpirationAlerts

logger = logging.getLogger(__name__)


class RunPromotionLifecycle:

    def __init__(self, sweeper: ProcessExpiredPromotions, expiration_alerts: SendExpirationAlerts):
        self.sweeper = sweeper
        self.expiration_alerts = expiration_alerts

    async def execute(self, now: Optional[datetime] = None) -> Result[PromotionLifecycleResultDTO]:
        start_time = time.time()
        now = now or utcnow()

        sweep = (await self.sweeper.execute(now=now)).value
        alerts = (await self.expiration_alerts.execute(now=now)).value

        execution_time_ms = int((time.time() - start_time) * 1000)
        errors = sweep.errors + alerts.errors

        logger.info(
            f"Promotion lifecycle run: {sweep.expired} expired, {sweep.renewed} renewed, "
            f"{alerts.alerts_sent} reminders, {len(errors)} errors in {execution_time_ms}ms"
        )

        return Return.ok(
            PromotionLifecycleResultDTO(
                expired=sweep.expired,
                renewed=sweep.renewed,
                alerts_sent=alerts.alerts_sent,
                errors=errors,
                run_at=now,
                execution_time_ms=execution_time_ms,
            )
        )
