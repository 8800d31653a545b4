"""Credit API Routes

FastAPI routes for top-ups, balances, histories and alert settings.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.error import raise_for_error
from src.api.schemas.credit_request import (
    AdjustCreditsRequestSchema,
    AlertSettingsRequestSchema,
    TopupCheckoutRequestSchema,
)
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.credits import (
    AdjustCredits,
    AdjustCreditsCommandDTO,
    AlertSettingsDTO,
    BalanceResponseDTO,
    BalanceVerificationDTO,
    CreateTopupCheckout,
    GetAlertSettings,
    GetBalance,
    GetTopupPackages,
    LedgerMutationResponseDTO,
    ListTopupHistory,
    ListTransactions,
    TopupCheckoutCommandDTO,
    TopupCheckoutResponseDTO,
    TopupHistoryListResponseDTO,
    TopupPackagesResponseDTO,
    TransactionListResponseDTO,
    UpdateAlertSettings,
    UpdateAlertSettingsCommandDTO,
    VerifyBalance,
)
from src.adapter.repositories import (
    SqlAlchemyCreditTransactionRepository,
    SqlAlchemyOrganizationRepository,
    SqlAlchemyTopupHistoryRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.domain.topup_history import TopupStatus
from src.depends import get_payment_gateway, get_session

router = APIRouter(prefix="/credits", tags=["Credits"])


@router.post(
    "/topup/checkout",
    response_model=TopupCheckoutResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        400: {
            "description": "Amount outside the accepted range",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INVALID_TOPUP_AMOUNT",
                            "message": "Minimum top-up amount is 100,000 VND"
                        }
                    }
                }
            }
        }
    }
)
async def create_topup_checkout(
    request: TopupCheckoutRequestSchema,
    session: AsyncSession = Depends(get_session),
    payment_gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Start a hosted checkout for a credit top-up.

    Credits (amount plus tier bonus) are only granted once the payment
    provider confirms the checkout through the webhook.
    """
    use_case = CreateTopupCheckout(
        uow=SqlAlchemyUnitOfWork(session),
        organization_repo=SqlAlchemyOrganizationRepository(session),
        topup_repo=SqlAlchemyTopupHistoryRepository(session),
        payment_gateway=payment_gateway,
        min_topup=ApplicationConfig.MIN_TOPUP_AMOUNT,
        max_topup=ApplicationConfig.MAX_TOPUP_AMOUNT,
        expires_in_seconds=ApplicationConfig.CHECKOUT_EXPIRES_SECONDS,
    )
    result = await use_case.execute(TopupCheckoutCommandDTO(**request.model_dump()))

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/topup/packages", response_model=TopupPackagesResponseDTO)
async def get_topup_packages():
    """Suggested top-up amounts with their bonus."""
    use_case = GetTopupPackages(
        min_topup=ApplicationConfig.MIN_TOPUP_AMOUNT,
        max_topup=ApplicationConfig.MAX_TOPUP_AMOUNT,
    )
    result = await use_case.execute()
    return result.value


@router.get(
    "/{organization_id}/balance",
    response_model=BalanceResponseDTO,
    responses={
        404: {
            "description": "Organization not found",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "ORGANIZATION_NOT_FOUND",
                            "message": "Organization not found: 42"
                        }
                    }
                }
            }
        }
    }
)
async def get_balance(
    organization_id: int,
    session: AsyncSession = Depends(get_session),
):
    use_case = GetBalance(SqlAlchemyOrganizationRepository(session))
    result = await use_case.execute(organization_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/{organization_id}/verify", response_model=BalanceVerificationDTO)
async def verify_balance(
    organization_id: int,
    session: AsyncSession = Depends(get_session),
):
    """Compare the stored balance with the sum of the transaction history."""
    use_case = VerifyBalance(
        SqlAlchemyOrganizationRepository(session),
        SqlAlchemyCreditTransactionRepository(session),
    )
    result = await use_case.execute(organization_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/{organization_id}/transactions", response_model=TransactionListResponseDTO)
async def list_transactions(
    organization_id: int,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    """Newest first."""
    use_case = ListTransactions(
        SqlAlchemyOrganizationRepository(session),
        SqlAlchemyCreditTransactionRepository(session),
    )
    result = await use_case.execute(organization_id, limit=limit, offset=offset)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/{organization_id}/adjust",
    response_model=LedgerMutationResponseDTO,
    responses={
        402: {
            "description": "Debit larger than the balance",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INSUFFICIENT_CREDITS",
                            "message": "Insufficient credits: required 5000, available 1200"
                        }
                    }
                }
            }
        }
    }
)
async def adjust_credits(
    organization_id: int,
    request: AdjustCreditsRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Manual balance correction.

    A positive amount credits the organization, a negative amount debits it.
    """
    use_case = AdjustCredits(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyOrganizationRepository(session),
        SqlAlchemyCreditTransactionRepository(session),
    )
    command = AdjustCreditsCommandDTO(
        organization_id=organization_id,
        amount=request.amount,
        description=request.description,
        performed_by=request.performed_by,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/{organization_id}/topups", response_model=TopupHistoryListResponseDTO)
async def list_topup_history(
    organization_id: int,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    status_filter: Optional[TopupStatus] = Query(default=None, alias="status"),
    session: AsyncSession = Depends(get_session),
):
    """Checkout attempts, newest first, optionally filtered by status."""
    use_case = ListTopupHistory(
        SqlAlchemyOrganizationRepository(session),
        SqlAlchemyTopupHistoryRepository(session),
    )
    result = await use_case.execute(organization_id, limit=limit, offset=offset, status=status_filter)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/{organization_id}/settings", response_model=AlertSettingsDTO)
async def get_alert_settings(
    organization_id: int,
    session: AsyncSession = Depends(get_session),
):
    use_case = GetAlertSettings(SqlAlchemyOrganizationRepository(session))
    result = await use_case.execute(organization_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.patch("/{organization_id}/settings", response_model=AlertSettingsDTO)
async def update_alert_settings(
    organization_id: int,
    request: AlertSettingsRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """Change low-balance alert preferences. Omitted fields keep their value."""
    use_case = UpdateAlertSettings(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyOrganizationRepository(session),
    )
    command = UpdateAlertSettingsCommandDTO(
        organization_id=organization_id,
        **request.model_dump(),
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
