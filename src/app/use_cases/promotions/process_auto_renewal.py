"""ProcessAutoRenewal Use Case

Renews an auto-renew promotion by chaining a new promotion to it.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from libs.result import Result, Return, Error
from src.domain.base import utcnow
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.organization_repository import OrganizationRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.app.repositories.promotion_repository import PromotionRepository
from src.app.repositories.promotion_package_repository import PromotionPackageRepository
from src.app.repositories.construction_repository import ConstructionRepository
from src.app.use_cases.alerts.check_low_balance_alert import CheckAndSendLowBalanceAlert
from src.app.use_cases.alerts.promotion_notifier import PromotionNotifier
from src.app.use_cases.credits.ledger import CreditLedgerStore
from src.domain.credit_transaction import CreditReference, ReferenceType, TransactionType
from src.domain.exceptions import (
    ConstructionNotFoundError,
    InsufficientCreditsError,
    PackageNotFoundError,
    PromotionNotActiveError,
    PromotionNotFoundError,
)
from src.domain.promotion import Promotion, PromotionStatus
from .dtos import RenewalResultDTO

logger = logging.getLogger(__name__)

AUTO_RENEW_DISABLED = "AUTO_RENEW_DISABLED"


class ProcessAutoRenewal:
    """
    Use Case: Auto-renew a single promotion

    Business Rules:
    1. Promotion must exist, have auto_renew on and be ACTIVE
    2. Insufficient balance expires the promotion, switches auto_renew off
       and sends a failure notice (INSUFFICIENT_CREDITS)
    3. On success:
       - the package cost is debited as AUTO_RENEWAL
       - a new ACTIVE promotion starts now with renewal_count + 1,
         previous_promotion_id set and auto_renew on
       - the old promotion becomes RENEWED with renewed_by_promotion_id set
         and its analytics closed
       - the debit is linked to the new promotion
       - a success notice is sent
    4. Any other failure rolls everything back, then expires the old promotion
       and sends a failure notice (RENEWAL_FAILED)

    Promotions are re-read after a rollback because a rollback expires every
    loaded entity.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        organization_repo: OrganizationRepository,
        transaction_repo: CreditTransactionRepository,
        promotion_repo: PromotionRepository,
        package_repo: PromotionPackageRepository,
        construction_repo: ConstructionRepository,
        notifier: PromotionNotifier,
        low_balance_alert: Optional[CheckAndSendLowBalanceAlert] = None,
    ):
        self.uow = uow
        self.transaction_repo = transaction_repo
        self.promotion_repo = promotion_repo
        self.package_repo = package_repo
        self.construction_repo = construction_repo
        self.ledger = CreditLedgerStore(organization_repo, transaction_repo)
        self.notifier = notifier
        self.low_balance_alert = low_balance_alert

    async def execute(self, promotion_id: int, now: Optional[datetime] = None) -> Result[RenewalResultDTO]:
        now = now or utcnow()

        promotion = await self.promotion_repo.get_by_id(promotion_id, for_update=True)
        if not promotion:
            await self.uow.rollback()
            return Return.err(PromotionNotFoundError(promotion_id).to_error())
        if not promotion.auto_renew:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code=AUTO_RENEW_DISABLED,
                    message="Auto-renewal not enabled",
                    reason=f"promotion_id={promotion_id}",
                )
            )
        if promotion.status != PromotionStatus.ACTIVE:
            await self.uow.rollback()
            return Return.err(
                PromotionNotActiveError(promotion_id, PromotionStatus(promotion.status).value).to_error()
            )

        organization_id = promotion.organization_id

        try:
            package = await self.package_repo.get_by_id(promotion.package_id)
            if not package:
                raise PackageNotFoundError(promotion.package_id)
            construction = await self.construction_repo.get_by_id(promotion.construction_id)
            if not construction:
                raise ConstructionNotFoundError(promotion.construction_id)

            entry = await self.ledger.deduct_credits(
                organization_id,
                package.cost_in_credits,
                transaction_type=TransactionType.AUTO_RENEWAL,
                description=f"Auto-renewal: {package.name} for {construction.title}",
                reference=CreditReference(type=ReferenceType.AUTO_RENEWAL, promotion_id=promotion.id),
                metadata={"renewed_from_promotion_id": promotion.id},
            )

            impressions = construction.impressions or 0
            clicks = construction.clicks or 0

            promotion.close_analytics(impressions, clicks)
            promotion.transition_to(PromotionStatus.RENEWED)
            # the old row leaves ACTIVE before its successor is inserted
            await self.promotion_repo.save(promotion)

            new_promotion = await self.promotion_repo.create(
                Promotion(
                    construction_id=promotion.construction_id,
                    organization_id=organization_id,
                    package_id=package.id,
                    status=PromotionStatus.ACTIVE,
                    credit_transaction_id=entry.transaction.id,
                    credits_spent=package.cost_in_credits,
                    start_date=now,
                    end_date=now + timedelta(days=package.duration_days),
                    auto_renew=True,
                    renewal_count=(promotion.renewal_count or 0) + 1,
                    previous_promotion_id=promotion.id,
                    impressions_at_start=impressions,
                    clicks_at_start=clicks,
                )
            )

            promotion.renewed_by_promotion_id = new_promotion.id
            await self.promotion_repo.save(promotion)
            await self.transaction_repo.link_promotion(entry.transaction.id, new_promotion.id)

            await self.notifier.send_renewal_succeeded(new_promotion, entry.new_balance)
            await self.uow.commit()

            new_promotion_id = new_promotion.id
            new_balance = entry.new_balance

        except InsufficientCreditsError as e:
            await self.uow.rollback()
            logger.info(
                f"Auto-renewal of promotion {promotion_id} failed: need {e.required}, have {e.available}"
            )
            await self._expire_after_failure(promotion_id, "Insufficient credits", disable_auto_renew=True)
            return Return.err(e.to_error())

        except Exception as e:
            await self.uow.rollback()
            reason = getattr(e, "message", None) or str(e)
            logger.error(f"Auto-renewal of promotion {promotion_id} failed: {reason}")
            await self._expire_after_failure(promotion_id, reason, disable_auto_renew=False)
            return Return.err(
                Error(
                    code="RENEWAL_FAILED",
                    message=f"Auto-renewal failed: {reason}",
                    reason=str(e),
                )
            )

        logger.info(f"Promotion {promotion_id} renewed as {new_promotion_id}, balance now {new_balance}")

        if self.low_balance_alert is not None:
            alert = await self.low_balance_alert.execute(organization_id, new_balance)
            if alert.is_err():
                logger.warning(f"Low balance check failed after renewal {new_promotion_id}: {alert.error.reason}")

        return Return.ok(
            RenewalResultDTO(
                promotion_id=promotion_id,
                success=True,
                new_promotion_id=new_promotion_id,
            )
        )

    async def _expire_after_failure(self, promotion_id: int, reason: str, disable_auto_renew: bool) -> None:
        try:
            promotion = await self.promotion_repo.get_by_id(promotion_id, for_update=True)
            if not promotion or promotion.status != PromotionStatus.ACTIVE:
                await self.uow.rollback()
                return

            construction = await self.construction_repo.get_by_id(promotion.construction_id)
            if construction:
                promotion.close_analytics(construction.impressions or 0, construction.clicks or 0)

            promotion.transition_to(PromotionStatus.EXPIRED)
            if disable_auto_renew:
                promotion.auto_renew = False
            await self.promotion_repo.save(promotion)

            await self.notifier.send_renewal_failed(promotion, reason)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to expire promotion {promotion_id} after renewal failure: {e}")
