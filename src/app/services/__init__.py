from .unit_of_work import UnitOfWork
from .notification_service import EmailMessage, NotificationSink
from .payment_gateway import (
    CheckoutLineItem,
    CheckoutSession,
    CheckoutSessionRequest,
    PaymentGateway,
    WebhookEvent,
)
from .idempotency_store import IdempotencyStore

__all__ = [
    "UnitOfWork",
    "EmailMessage",
    "NotificationSink",
    "CheckoutLineItem",
    "CheckoutSession",
    "CheckoutSessionRequest",
    "PaymentGateway",
    "WebhookEvent",
    "IdempotencyStore",
]
