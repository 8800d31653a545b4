"""Notification Dispatcher Background Worker

Delivers pending outbox notifications through the configured delivery sink
(Resend when RESEND_API_KEY and EMAIL_FROM are set, logging otherwise).
"""

import asyncio
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories import SqlAlchemyNotificationRepository
from src.adapter.services.notification_service import create_delivery_sink
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.notification_service import NotificationSink
from src.app.use_cases.alerts import DispatchNotifications, DispatchResultDTO

logger = logging.getLogger(__name__)


class NotificationDispatcherWorker:

    def __init__(
        self,
        db_uri: Optional[str] = None,
        delivery_sink: Optional[NotificationSink] = None,
        batch_size: int = 100,
    ):
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.batch_size = batch_size
        self.delivery_sink = delivery_sink or create_delivery_sink(
            resend_api_key=ApplicationConfig.RESEND_API_KEY,
            email_from=ApplicationConfig.EMAIL_FROM,
            webhook_url=ApplicationConfig.NOTIFICATION_WEBHOOK_URL,
        )

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

    async def run_once(self) -> DispatchResultDTO:
        async with self.async_session_factory() as session:
            use_case = DispatchNotifications(
                uow=SqlAlchemyUnitOfWork(session),
                notification_repo=SqlAlchemyNotificationRepository(session),
                delivery_sink=self.delivery_sink,
                max_attempts=ApplicationConfig.NOTIFICATION_MAX_ATTEMPTS,
            )
            result = await use_case.execute(limit=self.batch_size)

            if result.is_err():
                raise RuntimeError(f"Notification dispatch failed: {result.error.message}")

            return result.value

    async def run_forever(self, interval_seconds: int = 60):
        logger.info(f"Starting notification dispatcher with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                if result.processed:
                    logger.info(
                        f"Dispatched {result.sent}/{result.processed} notifications "
                        f"({result.retrying} retrying, {result.failed} failed)"
                    )
            except Exception as e:
                logger.error(f"Notification dispatch cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        await self.engine.dispose()
        logger.info("NotificationDispatcherWorker shutdown complete")


async def main():
    """
    Usage:
        python -m src.worker.notification_dispatcher --once
        python -m src.worker.notification_dispatcher --interval 60
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Notification Dispatcher Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.NOTIFICATION_DISPATCH_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 60)"
    )
    args = parser.parse_args()

    worker = NotificationDispatcherWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print(f"Dispatched {result.sent}/{result.processed} notifications, {result.failed} failed")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
