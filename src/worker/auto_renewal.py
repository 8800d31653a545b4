"""Auto-Renewal Background Worker

Renews auto-renew promotions ending within the renewal window, ahead of the
hourly expiration sweep.
"""

import asyncio
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.app.use_cases.promotions import AutoRenewalBatchResultDTO
from src.depends import build_auto_renewal_batch

logger = logging.getLogger(__name__)


class AutoRenewalWorker:

    def __init__(self, db_uri: Optional[str] = None, batch_size: Optional[int] = None):
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.batch_size = batch_size or ApplicationConfig.SWEEP_BATCH_SIZE

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

    async def run_once(self) -> AutoRenewalBatchResultDTO:
        async with self.async_session_factory() as session:
            result = await build_auto_renewal_batch(session, batch_size=self.batch_size).execute()

            if result.is_err():
                raise RuntimeError(f"Auto-renewal batch failed: {result.error.message}")

            response = result.value
            for item in response.results:
                if not item.success:
                    logger.warning(f"  - Promotion {item.promotion_id}: {item.error_code} {item.error}")
            return response

    async def run_forever(self, interval_seconds: int = 900):
        logger.info(f"Starting auto-renewal worker with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Auto-renewal cycle complete: {result.processed} processed, "
                    f"{result.renewed} renewed, {result.failed} failed"
                )
            except Exception as e:
                logger.error(f"Auto-renewal cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        await self.engine.dispose()
        logger.info("AutoRenewalWorker shutdown complete")


async def main():
    """
    Usage:
        python -m src.worker.auto_renewal --once
        python -m src.worker.auto_renewal --interval 900
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Auto-Renewal Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.AUTO_RENEWAL_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 900)"
    )
    parser.add_argument("--batch-size", type=int, default=None, help="Promotions per run")
    args = parser.parse_args()

    worker = AutoRenewalWorker(batch_size=args.batch_size)

    try:
        if args.once:
            result = await worker.run_once()
            print(f"Auto-renewal run complete: {result.renewed}/{result.processed} renewed, {result.failed} failed")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
