"""Payment Webhook Route

Receives signed events from the payment provider.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, Request, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.error import ClientError
from src.app.services.idempotency_store import IdempotencyStore
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.webhooks import HandleWebhookEvent
from src.adapter.repositories import (
    SqlAlchemyCreditTransactionRepository,
    SqlAlchemyOrganizationRepository,
    SqlAlchemyTopupHistoryRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import build_low_balance_alert, get_idempotency_store, get_payment_gateway, get_session
from src.domain.exceptions import InvalidWebhookPayloadError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    session: AsyncSession = Depends(get_session),
    payment_gateway: PaymentGateway = Depends(get_payment_gateway),
    idempotency_store: IdempotencyStore = Depends(get_idempotency_store),
):
    """
    Handle a Stripe event.

    **Returns:**
    - 200: Event processed, ignored or already handled
    - 400: Missing or invalid signature, malformed payload
    - 500: Processing failed (Stripe retries the delivery)
    """
    payload = await request.body()

    try:
        event = payment_gateway.construct_event(payload, stripe_signature or "")
    except InvalidWebhookPayloadError as e:
        logger.warning(f"Rejected webhook: {e.message}")
        raise ClientError(e.to_error(), status_code=status.HTTP_400_BAD_REQUEST)

    use_case = HandleWebhookEvent(
        uow=SqlAlchemyUnitOfWork(session),
        organization_repo=SqlAlchemyOrganizationRepository(session),
        transaction_repo=SqlAlchemyCreditTransactionRepository(session),
        topup_repo=SqlAlchemyTopupHistoryRepository(session),
        idempotency_store=idempotency_store,
        low_balance_alert=build_low_balance_alert(session),
        processed_ttl_seconds=ApplicationConfig.WEBHOOK_PROCESSED_TTL_SECONDS,
        lock_ttl_seconds=ApplicationConfig.WEBHOOK_LOCK_TTL_SECONDS,
    )
    result = await use_case.execute(event)

    if result.is_err():
        raise ClientError(result.error, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return {"received": True, "status": result.value.status}
