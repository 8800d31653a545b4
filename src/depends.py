from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.repositories import (
    SqlAlchemyConstructionRepository,
    SqlAlchemyCreditTransactionRepository,
    SqlAlchemyNotificationRepository,
    SqlAlchemyOrganizationRepository,
    SqlAlchemyPromotionPackageRepository,
    SqlAlchemyPromotionRepository,
)
from src.adapter.services.notification_service import OutboxNotificationSink
from src.adapter.services.redis_idempotency_store import RedisIdempotencyStore, create_redis_client
from src.adapter.services.stripe_gateway import StripePaymentGateway
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.idempotency_store import IdempotencyStore
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.alerts import CheckAndSendLowBalanceAlert, PromotionNotifier
from src.app.use_cases.promotions import (
    ProcessAllAutoRenewals,
    ProcessAutoRenewal,
    ProcessExpiredPromotions,
    RunPromotionLifecycle,
    SendExpirationAlerts,
)

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

_redis_client = None


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_payment_gateway() -> PaymentGateway:
    return StripePaymentGateway(
        secret_key=ApplicationConfig.STRIPE_SECRET_KEY,
        webhook_secret=ApplicationConfig.STRIPE_WEBHOOK_SECRET,
        currency=ApplicationConfig.STRIPE_CURRENCY,
    )


def get_idempotency_store() -> IdempotencyStore:
    global _redis_client
    if _redis_client is None:
        _redis_client = create_redis_client(ApplicationConfig.REDIS_URL)
    return RedisIdempotencyStore(_redis_client, prefix=ApplicationConfig.IDEMPOTENCY_KEY_PREFIX)


# Use case wiring shared by routes and workers. Every collaborator is bound
# to the given session so notifications join the caller's transaction.

def build_low_balance_alert(session: AsyncSession) -> CheckAndSendLowBalanceAlert:
    return CheckAndSendLowBalanceAlert(
        uow=SqlAlchemyUnitOfWork(session),
        organization_repo=SqlAlchemyOrganizationRepository(session),
        notification_sink=OutboxNotificationSink(SqlAlchemyNotificationRepository(session)),
        app_url=ApplicationConfig.APP_URL,
        cooldown_hours=ApplicationConfig.LOW_BALANCE_ALERT_COOLDOWN_HOURS,
    )


def build_promotion_notifier(session: AsyncSession) -> PromotionNotifier:
    return PromotionNotifier(
        organization_repo=SqlAlchemyOrganizationRepository(session),
        construction_repo=SqlAlchemyConstructionRepository(session),
        package_repo=SqlAlchemyPromotionPackageRepository(session),
        notification_sink=OutboxNotificationSink(SqlAlchemyNotificationRepository(session)),
        app_url=ApplicationConfig.APP_URL,
    )


def build_auto_renewal(session: AsyncSession) -> ProcessAutoRenewal:
    return ProcessAutoRenewal(
        uow=SqlAlchemyUnitOfWork(session),
        organization_repo=SqlAlchemyOrganizationRepository(session),
        transaction_repo=SqlAlchemyCreditTransactionRepository(session),
        promotion_repo=SqlAlchemyPromotionRepository(session),
        package_repo=SqlAlchemyPromotionPackageRepository(session),
        construction_repo=SqlAlchemyConstructionRepository(session),
        notifier=build_promotion_notifier(session),
        low_balance_alert=build_low_balance_alert(session),
    )


def build_auto_renewal_batch(
    session: AsyncSession, batch_size: Optional[int] = None
) -> ProcessAllAutoRenewals:
    return ProcessAllAutoRenewals(
        promotion_repo=SqlAlchemyPromotionRepository(session),
        renewal=build_auto_renewal(session),
        window_minutes=ApplicationConfig.AUTO_RENEWAL_WINDOW_MINUTES,
        batch_size=batch_size or ApplicationConfig.SWEEP_BATCH_SIZE,
    )


def build_promotion_lifecycle(
    session: AsyncSession, batch_size: Optional[int] = None
) -> RunPromotionLifecycle:
    uow = SqlAlchemyUnitOfWork(session)
    promotion_repo = SqlAlchemyPromotionRepository(session)
    batch_size = batch_size or ApplicationConfig.SWEEP_BATCH_SIZE

    sweeper = ProcessExpiredPromotions(
        uow=uow,
        promotion_repo=promotion_repo,
        construction_repo=SqlAlchemyConstructionRepository(session),
        renewal=build_auto_renewal(session),
        batch_size=batch_size,
    )
    expiration_alerts = SendExpirationAlerts(
        uow=uow,
        promotion_repo=promotion_repo,
        notifier=build_promotion_notifier(session),
        alert_days=ApplicationConfig.EXPIRATION_ALERT_DAYS,
        batch_size=batch_size,
    )
    return RunPromotionLifecycle(sweeper, expiration_alerts)
