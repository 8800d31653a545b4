"""Scheduler Routes

Entry points for an external scheduler. Each call runs one batch.
"""

import hmac
from typing import Optional
from fastapi import APIRouter, Depends, Header, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from libs.result import Error
from src.api.error import ClientError
from src.app.use_cases.promotions import AutoRenewalBatchResultDTO, PromotionLifecycleResultDTO
from src.depends import build_auto_renewal_batch, build_promotion_lifecycle, get_session

router = APIRouter(prefix="/cron", tags=["Cron"])


def verify_cron_secret(authorization: Optional[str] = Header(default=None)) -> None:
    """Require "Bearer {CRON_SECRET}" when a secret is configured."""
    secret = ApplicationConfig.CRON_SECRET
    if not secret:
        return
    expected = f"Bearer {secret}".encode()
    if not hmac.compare_digest((authorization or "").encode(), expected):
        raise ClientError(
            Error(code="UNAUTHORIZED", message="Invalid cron credentials"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


@router.api_route(
    "/promotions",
    methods=["GET", "POST"],
    response_model=PromotionLifecycleResultDTO,
    dependencies=[Depends(verify_cron_secret)],
)
async def run_promotion_lifecycle(session: AsyncSession = Depends(get_session)):
    """Expire or renew ended promotions, then send expiration reminders."""
    result = await build_promotion_lifecycle(session).execute()

    if result.is_err():
        raise ClientError(result.error, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return result.value


@router.api_route(
    "/auto-renewals",
    methods=["GET", "POST"],
    response_model=AutoRenewalBatchResultDTO,
    dependencies=[Depends(verify_cron_secret)],
)
async def run_auto_renewals(session: AsyncSession = Depends(get_session)):
    """Renew auto-renew promotions ending within the renewal window."""
    result = await build_auto_renewal_batch(session).execute()

    if result.is_err():
        raise ClientError(result.error, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return result.value
