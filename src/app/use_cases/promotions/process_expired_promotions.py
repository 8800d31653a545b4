"""ProcessExpiredPromotions Use Case

Closes out active promotions whose window has ended.
"""

import logging
from datetime import datetime
from typing import Optional
from libs.result import Result, Return
from src.domain.base import utcnow
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.promotion_repository import PromotionRepository
from src.app.repositories.construction_repository import ConstructionRepository
from src.domain.exceptions import PromotionNotActiveError, PromotionNotFoundError
from src.domain.promotion import PromotionStatus
from .dtos import ExpirationSweepResultDTO
from .process_auto_renewal import AUTO_RENEW_DISABLED, ProcessAutoRenewal

logger = logging.getLogger(__name__)

# renewal errors that mean the promotion was not ours to expire
_SKIPPED_RENEWAL_CODES = frozenset({
    PromotionNotFoundError.code,
    PromotionNotActiveError.code,
    AUTO_RENEW_DISABLED,
})


class ProcessExpiredPromotions:
    """
    Use Case: Expiration sweep

    Business Rules:
    1. Picks ACTIVE promotions with end_date < now, one batch per run
    2. Auto-renew promotions go through ProcessAutoRenewal
    3. Others get their analytics closed and become EXPIRED
    4. Each promotion is committed on its own; one failure never aborts the batch
    5. Never raises: failures are collected in errors
    """

    def __init__(
        self,
        uow: UnitOfWork,
        promotion_repo: PromotionRepository,
        construction_repo: ConstructionRepository,
        renewal: ProcessAutoRenewal,
        batch_size: int = 100,
    ):
        self.uow = uow
        self.promotion_repo = promotion_repo
        self.construction_repo = construction_repo
        self.renewal = renewal
        self.batch_size = batch_size

    async def execute(self, now: Optional[datetime] = None) -> Result[ExpirationSweepResultDTO]:
        now = now or utcnow()
        result = ExpirationSweepResultDTO()

        try:
            candidates = await self.promotion_repo.get_expired_active(now, limit=self.batch_size)
        except Exception as e:
            logger.error(f"Failed to load expired promotions: {e}")
            result.errors.append(f"Failed to load expired promotions: {e}")
            return Return.ok(result)

        batch = [(promotion.id, promotion.auto_renew) for promotion in candidates]

        for promotion_id, auto_renew in batch:
            try:
                if auto_renew:
                    renewal = await self.renewal.execute(promotion_id, now=now)
                    if renewal.is_ok():
                        result.renewed += 1
                    else:
                        if renewal.error.code not in _SKIPPED_RENEWAL_CODES:
                            result.expired += 1
                        result.errors.append(f"Renewal failed for {promotion_id}: {renewal.error.message}")
                elif await self._expire(promotion_id):
                    result.expired += 1
            except Exception as e:
                await self.uow.rollback()
                logger.error(f"Error processing expired promotion {promotion_id}: {e}")
                result.errors.append(f"Error processing {promotion_id}: {e}")

        if batch:
            logger.info(
                f"Expiration sweep: {result.expired} expired, {result.renewed} renewed, "
                f"{len(result.errors)} errors"
            )

        return Return.ok(result)

    async def _expire(self, promotion_id: int) -> bool:
        promotion = await self.promotion_repo.get_by_id(promotion_id, for_update=True)
        if not promotion or promotion.status != PromotionStatus.ACTIVE:
            return False

        construction = await self.construction_repo.get_by_id(promotion.construction_id)
        if construction:
            promotion.close_analytics(construction.impressions or 0, construction.clicks or 0)
        promotion.transition_to(PromotionStatus.EXPIRED)
        await self.promotion_repo.save(promotion)
        await self.uow.commit()
        return True
