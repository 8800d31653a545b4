"""Promotion Lifecycle Background Worker

Hourly job: expires or renews ended promotions, then sends expiration
reminders for promotions ending within the alert window.
"""

import asyncio
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.app.use_cases.promotions import PromotionLifecycleResultDTO
from src.depends import build_promotion_lifecycle

logger = logging.getLogger(__name__)


class PromotionLifecycleWorker:
    """
    Usage:
        worker = PromotionLifecycleWorker()
        result = await worker.run_once()
        await worker.run_forever(interval_seconds=3600)
    """

    def __init__(self, db_uri: Optional[str] = None, batch_size: Optional[int] = None):
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.batch_size = batch_size or ApplicationConfig.SWEEP_BATCH_SIZE

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("PromotionLifecycleWorker initialized")

    async def run_once(self) -> PromotionLifecycleResultDTO:
        async with self.async_session_factory() as session:
            use_case = build_promotion_lifecycle(session, batch_size=self.batch_size)
            result = await use_case.execute()

            if result.is_err():
                raise RuntimeError(f"Promotion lifecycle run failed: {result.error.message}")

            response = result.value
            for error in response.errors:
                logger.warning(f"  - {error}")
            return response

    async def run_forever(self, interval_seconds: int = 3600):
        logger.info(f"Starting promotion lifecycle worker with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Lifecycle cycle complete: {result.expired} expired, {result.renewed} renewed, "
                    f"{result.alerts_sent} reminders in {result.execution_time_ms}ms"
                )
            except Exception as e:
                logger.error(f"Lifecycle cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        await self.engine.dispose()
        logger.info("PromotionLifecycleWorker shutdown complete")


async def main():
    """
    Usage:
        python -m src.worker.promotion_lifecycle --once
        python -m src.worker.promotion_lifecycle --interval 3600
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Promotion Lifecycle Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.PROMOTION_LIFECYCLE_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 3600)"
    )
    parser.add_argument("--batch-size", type=int, default=None, help="Promotions per run")
    args = parser.parse_args()

    worker = PromotionLifecycleWorker(batch_size=args.batch_size)

    try:
        if args.once:
            result = await worker.run_once()
            print("Promotion lifecycle run complete:")
            print(f"  Expired: {result.expired}")
            print(f"  Renewed: {result.renewed}")
            print(f"  Reminders sent: {result.alerts_sent}")
            print(f"  Errors: {len(result.errors)}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
