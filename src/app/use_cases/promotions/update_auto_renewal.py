"""UpdateAutoRenewal Use Case"""

from libs.result import Result, Return, Error
from src.domain.base import utcnow
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.promotion_repository import PromotionRepository
from src.domain.exceptions import BillingError, PromotionNotActiveError, PromotionNotFoundError
from src.domain.promotion import PromotionStatus
from .dtos import PromotionDTO


class UpdateAutoRenewal:
    """Toggle auto-renewal of an active promotion"""

    def __init__(self, uow: UnitOfWork, promotion_repo: PromotionRepository):
        self.uow = uow
        self.promotion_repo = promotion_repo

    async def execute(self, promotion_id: int, auto_renew: bool) -> Result[PromotionDTO]:
        try:
            promotion = await self.promotion_repo.get_by_id(promotion_id, for_update=True)
            if not promotion:
                raise PromotionNotFoundError(promotion_id)
            if promotion.status != PromotionStatus.ACTIVE:
                raise PromotionNotActiveError(promotion_id, PromotionStatus(promotion.status).value)

            promotion.auto_renew = auto_renew
            promotion.updated_at = utcnow()
            await self.promotion_repo.save(promotion)
            await self.uow.commit()

            return Return.ok(PromotionDTO.from_entity(promotion))

        except BillingError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="UPDATE_AUTO_RENEWAL_FAILED",
                    message="Failed to update auto-renewal",
                    reason=str(e),
                )
            )
