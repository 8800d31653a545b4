"""Promotion API Routes

Buying, cancelling and toggling auto-renewal of listing promotions.
"""

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.error import raise_for_error
from src.api.schemas.promotion_request import (
    AutoRenewRequestSchema,
    CancelPromotionRequestSchema,
    PurchasePromotionRequestSchema,
)
from src.app.use_cases.promotions import (
    CancelPromotion,
    CancelPromotionCommandDTO,
    CancelPromotionResponseDTO,
    GetPromotionPackages,
    PromotionDTO,
    PromotionPackagesResponseDTO,
    PurchasePromotion,
    PurchasePromotionCommandDTO,
    PurchasePromotionResponseDTO,
    UpdateAutoRenewal,
)
from src.adapter.repositories import (
    SqlAlchemyConstructionRepository,
    SqlAlchemyCreditTransactionRepository,
    SqlAlchemyOrganizationRepository,
    SqlAlchemyPromotionPackageRepository,
    SqlAlchemyPromotionRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import build_low_balance_alert, get_session

router = APIRouter(prefix="/promotions", tags=["Promotions"])


@router.post(
    "",
    response_model=PurchasePromotionResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        402: {
            "description": "Insufficient credits",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INSUFFICIENT_CREDITS",
                            "message": "Insufficient credits: required 300000, available 120000"
                        }
                    }
                }
            }
        },
        409: {
            "description": "Listing already promoted",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "ALREADY_PROMOTED",
                            "message": "This construction already has an active promotion"
                        }
                    }
                }
            }
        }
    }
)
async def purchase_promotion(
    request: PurchasePromotionRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Buy a promotion package for a listing.

    The package cost is debited and the promotion created in one commit.
    """
    use_case = PurchasePromotion(
        uow=SqlAlchemyUnitOfWork(session),
        organization_repo=SqlAlchemyOrganizationRepository(session),
        transaction_repo=SqlAlchemyCreditTransactionRepository(session),
        promotion_repo=SqlAlchemyPromotionRepository(session),
        package_repo=SqlAlchemyPromotionPackageRepository(session),
        construction_repo=SqlAlchemyConstructionRepository(session),
        low_balance_alert=build_low_balance_alert(session),
    )
    result = await use_case.execute(PurchasePromotionCommandDTO(**request.model_dump()))

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/packages", response_model=PromotionPackagesResponseDTO)
async def get_promotion_packages(
    session: AsyncSession = Depends(get_session),
):
    """Packages open for purchase, in catalog order."""
    use_case = GetPromotionPackages(SqlAlchemyPromotionPackageRepository(session))
    result = await use_case.execute()

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/{promotion_id}/cancel", response_model=CancelPromotionResponseDTO)
async def cancel_promotion(
    promotion_id: int,
    request: CancelPromotionRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """Cancel an active promotion and refund the unused full days."""
    use_case = CancelPromotion(
        uow=SqlAlchemyUnitOfWork(session),
        organization_repo=SqlAlchemyOrganizationRepository(session),
        transaction_repo=SqlAlchemyCreditTransactionRepository(session),
        promotion_repo=SqlAlchemyPromotionRepository(session),
        construction_repo=SqlAlchemyConstructionRepository(session),
    )
    command = CancelPromotionCommandDTO(
        promotion_id=promotion_id,
        user_id=request.user_id,
        reason=request.reason,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.put("/{promotion_id}/auto-renew", response_model=PromotionDTO)
async def update_auto_renewal(
    promotion_id: int,
    request: AutoRenewRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    use_case = UpdateAutoRenewal(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyPromotionRepository(session),
    )
    result = await use_case.execute(promotion_id, request.auto_renew)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
