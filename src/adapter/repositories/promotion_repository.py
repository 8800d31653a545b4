"""SQLAlchemy implementation of PromotionRepository"""

from datetime import datetime
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.promotion_repository import PromotionRepository
from src.domain.exceptions import AlreadyPromotedError
from src.domain.promotion import ACTIVE_CONSTRUCTION_INDEX, Promotion, PromotionStatus


class SqlAlchemyPromotionRepository(PromotionRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, promotion: Promotion) -> Promotion:
        self.session.add(promotion)
        try:
            await self.session.flush()
        except IntegrityError as e:
            # SQLite reports the column, PostgreSQL the index name
            message = str(e.orig)
            if ACTIVE_CONSTRUCTION_INDEX in message or "promotions.construction_id" in message:
                raise AlreadyPromotedError(promotion.construction_id) from e
            raise
        await self.session.refresh(promotion)
        return promotion

    async def save(self, promotion: Promotion) -> Promotion:
        self.session.add(promotion)
        await self.session.flush()
        return promotion

    async def get_by_id(self, promotion_id: int, for_update: bool = False) -> Optional[Promotion]:
        stmt = select(Promotion).where(Promotion.id == promotion_id)

        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active_by_construction(self, construction_id: int) -> Optional[Promotion]:
        stmt = (
            select(Promotion)
            .where(
                Promotion.construction_id == construction_id,
                Promotion.status == PromotionStatus.ACTIVE,
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_expired_active(self, now: datetime, limit: int = 100) -> list[Promotion]:
        stmt = (
            select(Promotion)
            .where(
                Promotion.status == PromotionStatus.ACTIVE,
                Promotion.end_date < now,
            )
            .order_by(Promotion.end_date)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_due_for_renewal(self, now: datetime, until: datetime, limit: int = 100) -> list[Promotion]:
        stmt = (
            select(Promotion)
            .where(
                Promotion.status == PromotionStatus.ACTIVE,
                Promotion.auto_renew == True,  # noqa: E712
                Promotion.end_date > now,
                Promotion.end_date <= until,
            )
            .order_by(Promotion.end_date)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_expiring_without_alert(self, now: datetime, until: datetime, limit: int = 100) -> list[Promotion]:
        stmt = (
            select(Promotion)
            .where(
                Promotion.status == PromotionStatus.ACTIVE,
                Promotion.expiration_alert_sent == False,  # noqa: E712
                Promotion.end_date > now,
                Promotion.end_date <= until,
            )
            .order_by(Promotion.end_date)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
