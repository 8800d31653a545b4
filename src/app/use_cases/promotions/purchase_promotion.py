"""PurchasePromotion Use Case

Spends credits to promote a construction for the duration of a package.
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
from src.app.use_cases.credits.ledger import CreditLedgerStore
from src.domain.credit_transaction import CreditReference, ReferenceType, TransactionType
from src.domain.exceptions import (
    AlreadyPromotedError,
    BillingError,
    ConstructionNotFoundError,
    NotPromotableError,
    OwnershipMismatchError,
    PackageInactiveError,
    PackageNotFoundError,
)
from src.domain.promotion import Promotion, PromotionStatus
from .dtos import PromotionDTO, PurchasePromotionCommandDTO, PurchasePromotionResponseDTO

logger = logging.getLogger(__name__)


class PurchasePromotion:
    """
    Use Case: Purchase a promotion with credits

    Business Rules:
    1. Package must exist and be active
    2. Construction must exist, belong to the organization, be private and published
    3. At most one ACTIVE promotion per construction; the construction row is
       locked before the check so concurrent purchases for it run one at a time
    4. Cost is deducted through the ledger store (INSUFFICIENT_CREDITS otherwise)
    5. Deduction, promotion creation and transaction back-fill commit together

    Flow:
    1. Validate package
    2. Lock and validate construction
    3. Check for an active promotion
    4. Deduct credits
    5. Create active promotion with analytics baseline
    6. Link the debit to the promotion
    7. Commit, then run the low balance check
    """

    def __init__(
        self,
        uow: UnitOfWork,
        organization_repo: OrganizationRepository,
        transaction_repo: CreditTransactionRepository,
        promotion_repo: PromotionRepository,
        package_repo: PromotionPackageRepository,
        construction_repo: ConstructionRepository,
        low_balance_alert: Optional[CheckAndSendLowBalanceAlert] = None,
    ):
        self.uow = uow
        self.transaction_repo = transaction_repo
        self.promotion_repo = promotion_repo
        self.package_repo = package_repo
        self.construction_repo = construction_repo
        self.ledger = CreditLedgerStore(organization_repo, transaction_repo)
        self.low_balance_alert = low_balance_alert

    async def execute(
        self, command: PurchasePromotionCommandDTO, now: Optional[datetime] = None
    ) -> Result[PurchasePromotionResponseDTO]:
        now = now or utcnow()

        try:
            # Step 1: Package
            package = await self.package_repo.get_by_id(command.package_id)
            if not package:
                raise PackageNotFoundError(command.package_id)
            if not package.is_active:
                raise PackageInactiveError(command.package_id)

            # Step 2: Construction, locked until commit or rollback
            construction = await self.construction_repo.get_by_id(command.construction_id, for_update=True)
            if not construction:
                raise ConstructionNotFoundError(command.construction_id)
            if construction.organization_id != command.organization_id:
                raise OwnershipMismatchError(command.construction_id, command.organization_id)
            if not construction.is_promotable:
                raise NotPromotableError("Only private, published constructions can be promoted")

            # Step 3: One active promotion per construction
            if await self.promotion_repo.get_active_by_construction(command.construction_id):
                raise AlreadyPromotedError(command.construction_id)

            # Step 4: Deduct credits
            entry = await self.ledger.deduct_credits(
                command.organization_id,
                package.cost_in_credits,
                transaction_type=TransactionType.PROMOTION,
                description=f"Promotion purchase: {package.name} for {construction.title}",
                reference=CreditReference(type=ReferenceType.PROMOTION),
                performed_by=command.user_id,
            )

            # Step 5: Promotion (AlreadyPromotedError if a concurrent purchase won)
            promotion = await self.promotion_repo.create(
                Promotion(
                    construction_id=command.construction_id,
                    organization_id=command.organization_id,
                    package_id=package.id,
                    status=PromotionStatus.ACTIVE,
                    credit_transaction_id=entry.transaction.id,
                    credits_spent=package.cost_in_credits,
                    start_date=now,
                    end_date=now + timedelta(days=package.duration_days),
                    auto_renew=command.auto_renew,
                    impressions_at_start=construction.impressions or 0,
                    clicks_at_start=construction.clicks or 0,
                )
            )

            # Step 6: Back-fill
            await self.transaction_repo.link_promotion(entry.transaction.id, promotion.id)

            # Step 7: Commit
            await self.uow.commit()

            logger.info(
                f"Promotion {promotion.id} purchased for construction {command.construction_id} "
                f"by organization {command.organization_id}: {package.cost_in_credits} credits"
            )

        except BillingError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Promotion purchase failed for construction {command.construction_id}: {e}")
            return Return.err(
                Error(
                    code="PURCHASE_PROMOTION_FAILED",
                    message="Failed to purchase promotion",
                    reason=str(e),
                )
            )

        response = PurchasePromotionResponseDTO(
            promotion=PromotionDTO.from_entity(promotion),
            new_balance=entry.new_balance,
            credits_spent=package.cost_in_credits,
        )

        if self.low_balance_alert is not None:
            alert = await self.low_balance_alert.execute(command.organization_id, entry.new_balance)
            if alert.is_err():
                logger.warning(f"Low balance check failed after promotion {promotion.id}: {alert.error.reason}")

        return Return.ok(response)
