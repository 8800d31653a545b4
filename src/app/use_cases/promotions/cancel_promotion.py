"""CancelPromotion Use Case

Cancels an active promotion and refunds the unused whole days.
"""

import logging
from datetime import datetime
from typing import Optional
from libs.result import Result, Return, Error
from src.domain.base import utcnow
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.organization_repository import OrganizationRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.app.repositories.promotion_repository import PromotionRepository
from src.app.repositories.construction_repository import ConstructionRepository
from src.app.use_cases.credits.ledger import CreditLedgerStore
from src.domain.credit_transaction import CreditReference, ReferenceType, TransactionType
from src.domain.exceptions import BillingError, PromotionNotActiveError, PromotionNotFoundError
from src.domain.promotion import PromotionStatus
from .dtos import CancelPromotionCommandDTO, CancelPromotionResponseDTO

logger = logging.getLogger(__name__)


class CancelPromotion:
    """
    Use Case: Cancel a promotion with a prorated refund

    Business Rules:
    1. Only ACTIVE promotions can be cancelled (NOT_ACTIVE otherwise)
    2. total_days = ceil((end - start) / day), days_used = ceil((now - start) / day)
    3. refund = floor(days_remaining * credits_spent / total_days)
    4. No refund when days_used <= 0 or nothing remains
    5. Refund is a REFUND credit referencing the promotion
    6. Analytics are closed at cancellation time
    """

    def __init__(
        self,
        uow: UnitOfWork,
        organization_repo: OrganizationRepository,
        transaction_repo: CreditTransactionRepository,
        promotion_repo: PromotionRepository,
        construction_repo: ConstructionRepository,
    ):
        self.uow = uow
        self.organization_repo = organization_repo
        self.promotion_repo = promotion_repo
        self.construction_repo = construction_repo
        self.ledger = CreditLedgerStore(organization_repo, transaction_repo)

    async def execute(
        self, command: CancelPromotionCommandDTO, now: Optional[datetime] = None
    ) -> Result[CancelPromotionResponseDTO]:
        now = now or utcnow()

        try:
            promotion = await self.promotion_repo.get_by_id(command.promotion_id, for_update=True)
            if not promotion:
                raise PromotionNotFoundError(command.promotion_id)
            if promotion.status != PromotionStatus.ACTIVE:
                raise PromotionNotActiveError(promotion.id, PromotionStatus(promotion.status).value)

            refund, days_remaining = promotion.prorated_refund(now)
            refund_transaction_id = None

            if refund > 0:
                entry = await self.ledger.add_credits(
                    promotion.organization_id,
                    refund,
                    transaction_type=TransactionType.REFUND,
                    description=f"Promotion cancellation refund ({days_remaining} days remaining)",
                    reference=CreditReference(type=ReferenceType.PROMOTION, promotion_id=promotion.id),
                    performed_by=command.user_id,
                )
                new_balance = entry.new_balance
                refund_transaction_id = entry.transaction.id
            else:
                organization = await self.organization_repo.get_by_id(promotion.organization_id)
                new_balance = organization.credit_balance if organization else 0

            construction = await self.construction_repo.get_by_id(promotion.construction_id)
            if construction:
                promotion.close_analytics(construction.impressions or 0, construction.clicks or 0)

            promotion.transition_to(PromotionStatus.CANCELLED)
            promotion.cancelled_at = now
            promotion.cancelled_by = command.user_id
            promotion.cancellation_reason = command.reason
            promotion.credits_refunded = refund
            promotion.refund_transaction_id = refund_transaction_id
            await self.promotion_repo.save(promotion)

            await self.uow.commit()

            logger.info(
                f"Promotion {promotion.id} cancelled by {command.user_id}: "
                f"refunded {refund} credits ({days_remaining} days remaining)"
            )

            return Return.ok(
                CancelPromotionResponseDTO(
                    promotion_id=promotion.id,
                    credits_refunded=refund,
                    days_remaining=days_remaining,
                    new_balance=new_balance,
                    refund_transaction_id=refund_transaction_id,
                )
            )

        except BillingError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to cancel promotion {command.promotion_id}: {e}")
            return Return.err(
                Error(
                    code="CANCEL_PROMOTION_FAILED",
                    message="Failed to cancel promotion",
                    reason=str(e),
                )
            )
