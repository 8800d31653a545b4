from .unit_of_work import SqlAlchemyUnitOfWork
from .notification_service import (
    LoggingNotificationSink,
    ResendNotificationSink,
    WebhookNotificationSink,
    CompositeNotificationSink,
    OutboxNotificationSink,
    create_delivery_sink,
)
from .stripe_gateway import StripePaymentGateway
from .redis_idempotency_store import RedisIdempotencyStore, create_redis_client

__all__ = [
    "SqlAlchemyUnitOfWork",
    "LoggingNotificationSink",
    "ResendNotificationSink",
    "WebhookNotificationSink",
    "CompositeNotificationSink",
    "OutboxNotificationSink",
    "create_delivery_sink",
    "StripePaymentGateway",
    "RedisIdempotencyStore",
    "create_redis_client",
]
