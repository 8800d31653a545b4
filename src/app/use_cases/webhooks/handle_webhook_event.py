"""HandleWebhookEvent Use Case

Applies verified payment-provider events to top-ups and the ledger, at most
once per event id.
"""

import logging
from typing import Any, Dict, Optional
from libs.result import Result, Return, Error
from src.domain.base import utcnow
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.idempotency_store import IdempotencyStore
from src.app.services.payment_gateway import WebhookEvent
from src.app.repositories.organization_repository import OrganizationRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.app.repositories.topup_history_repository import TopupHistoryRepository
from src.app.use_cases.alerts.check_low_balance_alert import CheckAndSendLowBalanceAlert
from src.app.use_cases.credits.create_topup_checkout import TOPUP_METADATA_TYPE
from src.app.use_cases.credits.ledger import CreditLedgerStore
from src.domain.credit_transaction import CreditReference, ReferenceType, TransactionType
from src.domain.exceptions import BillingError, InvalidWebhookPayloadError, TopupNotFoundError
from src.domain.topup_history import TopupHistory, TopupStatus
from .dtos import WebhookResultDTO

logger = logging.getLogger(__name__)

PROCESSED = "processed"
IGNORED = "ignored"
DUPLICATE = "duplicate"
IN_PROGRESS = "in_progress"


def _object_id(value: Any) -> Optional[str]:
    """Provider references arrive either as an id or as an expanded object"""
    if isinstance(value, dict):
        return value.get("id")
    return value


def _parse_int(metadata: Dict[str, Any], key: str, default: Optional[int] = None) -> int:
    raw = metadata.get(key)
    if raw in (None, ""):
        if default is None:
            raise InvalidWebhookPayloadError(f"Missing required metadata: {key}")
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise InvalidWebhookPayloadError(f"Invalid metadata value for {key}", reason=f"{key}={raw!r}")


class HandleWebhookEvent:
    """
    Use Case: Process a payment-provider webhook event

    Business Rules:
    1. An event whose processed marker exists is skipped
    2. An atomic in-flight claim stops concurrent deliveries of the same event
    3. The processed marker is written only after the handler committed
    4. The claim is released whatever happens
    5. Unknown event types are accepted and ignored
    6. Any handler failure is returned as an error so the provider retries

    Handled events:
    - checkout.session.completed: credit the top-up (once) and complete it
    - checkout.session.expired: expire the pending top-up
    - payment_intent.payment_failed: fail the top-up with the provider reason
    - charge.refunded: mark the top-up refunded (ledger untouched)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        organization_repo: OrganizationRepository,
        transaction_repo: CreditTransactionRepository,
        topup_repo: TopupHistoryRepository,
        idempotency_store: IdempotencyStore,
        low_balance_alert: Optional[CheckAndSendLowBalanceAlert] = None,
        processed_ttl_seconds: int = 7 * 24 * 60 * 60,
        lock_ttl_seconds: int = 60,
    ):
        self.uow = uow
        self.topup_repo = topup_repo
        self.ledger = CreditLedgerStore(organization_repo, transaction_repo)
        self.idempotency_store = idempotency_store
        self.low_balance_alert = low_balance_alert
        self.processed_ttl_seconds = processed_ttl_seconds
        self.lock_ttl_seconds = lock_ttl_seconds

        self.handlers = {
            "checkout.session.completed": self._handle_checkout_completed,
            "checkout.session.expired": self._handle_checkout_expired,
            "payment_intent.payment_failed": self._handle_payment_failed,
            "charge.refunded": self._handle_charge_refunded,
        }

    async def execute(self, event: WebhookEvent) -> Result[WebhookResultDTO]:
        if await self.idempotency_store.is_processed(event.id):
            logger.info(f"Event {event.id} already processed, skipping")
            return Return.ok(self._result(event, DUPLICATE))

        if not await self.idempotency_store.acquire(event.id, self.lock_ttl_seconds):
            logger.info(f"Event {event.id} is being processed by another worker, skipping")
            return Return.ok(self._result(event, IN_PROGRESS))

        try:
            # a delivery holding the claim may have finished since the first check
            if await self.idempotency_store.is_processed(event.id):
                logger.info(f"Event {event.id} processed while waiting for the claim, skipping")
                return Return.ok(self._result(event, DUPLICATE))

            handler = self.handlers.get(event.type)
            if handler is None:
                logger.info(f"Unhandled event type: {event.type}")
                status = IGNORED
            else:
                status = await handler(event.data_object)

            await self.idempotency_store.mark_processed(event.id, self.processed_ttl_seconds)
            return Return.ok(self._result(event, status))

        except BillingError as e:
            await self.uow.rollback()
            logger.error(f"Error processing webhook event {event.id} ({event.type}): {e.message}")
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Error processing webhook event {event.id} ({event.type}): {e}")
            return Return.err(
                Error(
                    code="WEBHOOK_PROCESSING_FAILED",
                    message="Failed to process webhook event",
                    reason=str(e),
                )
            )
        finally:
            try:
                await self.idempotency_store.release(event.id)
            except Exception as e:
                logger.warning(f"Failed to release claim on event {event.id}: {e}")

    async def _handle_checkout_completed(self, session: Dict[str, Any]) -> str:
        metadata = session.get("metadata") or {}
        if metadata.get("type") != TOPUP_METADATA_TYPE:
            return IGNORED

        organization_id = _parse_int(metadata, "organizationId")
        topup_history_id = _parse_int(metadata, "topupHistoryId")
        credits_to_add = _parse_int(metadata, "creditsToAdd")
        bonus_credits = _parse_int(metadata, "bonusCredits", default=0)

        topup = await self._get_topup(topup_history_id)

        if topup.organization_id != organization_id:
            raise InvalidWebhookPayloadError(
                "Checkout metadata does not match the top-up",
                reason=f"topup_history_id={topup_history_id}, organization_id={organization_id}",
            )

        if topup.status == TopupStatus.COMPLETED:
            logger.info(f"Topup {topup.id} already completed, skipping")
            return IGNORED

        if not topup.can_transition_to(TopupStatus.COMPLETED):
            logger.warning(f"Topup {topup.id} is {topup.status.value}, not completing it")
            return IGNORED

        payment_intent_id = _object_id(session.get("payment_intent"))
        paid = credits_to_add - bonus_credits
        if bonus_credits > 0:
            description = f"Credit top-up: {paid:,} VND + {bonus_credits:,} VND bonus"
        else:
            description = f"Credit top-up: {credits_to_add:,} VND"

        entry = await self.ledger.add_credits(
            organization_id,
            credits_to_add,
            transaction_type=TransactionType.TOPUP,
            description=description,
            reference=CreditReference(
                type=ReferenceType.STRIPE_PAYMENT,
                stripe_payment_intent_id=payment_intent_id,
                stripe_checkout_session_id=session.get("id"),
                topup_history_id=topup.id,
            ),
            performed_by=metadata.get("userId"),
            metadata={"bonus_credits": bonus_credits} if bonus_credits else None,
        )

        topup.transition_to(TopupStatus.COMPLETED)
        topup.stripe_payment_intent_id = payment_intent_id
        topup.credit_transaction_id = entry.transaction.id
        await self.topup_repo.save(topup)
        await self.uow.commit()

        logger.info(f"Credit topup completed: {credits_to_add} credits added to organization {organization_id}")

        if self.low_balance_alert is not None:
            alert = await self.low_balance_alert.execute(organization_id, entry.new_balance)
            if alert.is_err():
                logger.warning(f"Low balance check failed after topup {topup.id}: {alert.error.reason}")

        return PROCESSED

    async def _handle_checkout_expired(self, session: Dict[str, Any]) -> str:
        metadata = session.get("metadata") or {}
        if metadata.get("type") != TOPUP_METADATA_TYPE or not metadata.get("topupHistoryId"):
            return IGNORED

        topup = await self._get_topup(_parse_int(metadata, "topupHistoryId"))
        if not topup.can_transition_to(TopupStatus.EXPIRED):
            logger.info(f"Topup {topup.id} is {topup.status.value}, not expiring it")
            return IGNORED

        topup.transition_to(TopupStatus.EXPIRED)
        await self.topup_repo.save(topup)
        await self.uow.commit()

        logger.info(f"Checkout session expired: {session.get('id')} (topup {topup.id})")
        return PROCESSED

    async def _handle_payment_failed(self, payment_intent: Dict[str, Any]) -> str:
        payment_intent_id = payment_intent.get("id")
        topup = await self.topup_repo.get_by_payment_intent_id(payment_intent_id)

        if topup is None:
            metadata = payment_intent.get("metadata") or {}
            if metadata.get("topupHistoryId"):
                topup = await self.topup_repo.get_by_id(
                    _parse_int(metadata, "topupHistoryId"), for_update=True
                )

        if topup is None:
            logger.info(f"No topup found for failed payment intent {payment_intent_id}")
            return IGNORED

        if not topup.can_transition_to(TopupStatus.FAILED):
            logger.info(f"Topup {topup.id} is {topup.status.value}, not failing it")
            return IGNORED

        last_error = payment_intent.get("last_payment_error") or {}
        topup.transition_to(TopupStatus.FAILED)
        topup.failure_reason = last_error.get("message") or "Payment failed"
        topup.stripe_payment_intent_id = topup.stripe_payment_intent_id or payment_intent_id
        await self.topup_repo.save(topup)
        await self.uow.commit()

        logger.info(f"Payment failed for topup {topup.id}: {topup.failure_reason}")
        return PROCESSED

    async def _handle_charge_refunded(self, charge: Dict[str, Any]) -> str:
        payment_intent_id = _object_id(charge.get("payment_intent"))
        if not payment_intent_id:
            return IGNORED

        topup = await self.topup_repo.get_by_payment_intent_id(payment_intent_id)
        if topup is None or topup.status == TopupStatus.REFUNDED:
            return IGNORED

        if not topup.can_transition_to(TopupStatus.REFUNDED):
            logger.warning(f"Topup {topup.id} is {topup.status.value}, cannot mark it refunded")
            return IGNORED

        topup.transition_to(TopupStatus.REFUNDED)
        topup.refunded_at = utcnow()
        topup.refund_reason = "Payment refunded at provider"
        await self.topup_repo.save(topup)
        await self.uow.commit()

        logger.warning(
            f"Charge refunded for topup {topup.id} (organization {topup.organization_id}, "
            f"{topup.credits_received} credits). Ledger not adjusted, reverse manually if needed"
        )
        return PROCESSED

    async def _get_topup(self, topup_history_id: int) -> TopupHistory:
        topup = await self.topup_repo.get_by_id(topup_history_id, for_update=True)
        if topup is None:
            raise TopupNotFoundError(topup_history_id)
        return topup

    @staticmethod
    def _result(event: WebhookEvent, status: str) -> WebhookResultDTO:
        return WebhookResultDTO(event_id=event.id, event_type=event.type, status=status)
