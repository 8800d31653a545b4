"""ProcessAllAutoRenewals Use Case"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from libs.result import Result, Return, Error
from src.domain.base import utcnow
from src.app.repositories.promotion_repository import PromotionRepository
from .dtos import AutoRenewalBatchResultDTO, RenewalResultDTO
from .process_auto_renewal import ProcessAutoRenewal

logger = logging.getLogger(__name__)


class ProcessAllAutoRenewals:
    """
    Use Case: Renew every auto-renew promotion ending within the window

    Selects ACTIVE auto-renew promotions with now < end_date <= now + window
    (one batch) and renews each independently.
    """

    def __init__(
        self,
        promotion_repo: PromotionRepository,
        renewal: ProcessAutoRenewal,
        window_minutes: int = 60,
        batch_size: int = 100,
    ):
        self.promotion_repo = promotion_repo
        self.renewal = renewal
        self.window = timedelta(minutes=window_minutes)
        self.batch_size = batch_size

    async def execute(self, now: Optional[datetime] = None) -> Result[AutoRenewalBatchResultDTO]:
        now = now or utcnow()

        try:
            due = await self.promotion_repo.get_due_for_renewal(now, now + self.window, limit=self.batch_size)
        except Exception as e:
            return Return.err(
                Error(
                    code="AUTO_RENEWAL_BATCH_FAILED",
                    message="Failed to load promotions due for renewal",
                    reason=str(e),
                )
            )

        # ids are read up front, a rollback in one renewal expires the loaded rows
        promotion_ids = [promotion.id for promotion in due]
        results: list[RenewalResultDTO] = []

        for promotion_id in promotion_ids:
            try:
                result = await self.renewal.execute(promotion_id, now=now)
            except Exception as e:
                logger.error(f"Unexpected error renewing promotion {promotion_id}: {e}")
                results.append(RenewalResultDTO(promotion_id=promotion_id, success=False, error=str(e)))
                continue

            if result.is_ok():
                results.append(result.value)
            else:
                results.append(
                    RenewalResultDTO(
                        promotion_id=promotion_id,
                        success=False,
                        error=result.error.message,
                        error_code=result.error.code,
                    )
                )

        renewed = sum(1 for r in results if r.success)
        logger.info(f"Auto-renewal batch: {renewed}/{len(results)} promotions renewed")

        return Return.ok(
            AutoRenewalBatchResultDTO(
                processed=len(results),
                renewed=renewed,
                failed=len(results) - renewed,
                results=results,
            )
        )
