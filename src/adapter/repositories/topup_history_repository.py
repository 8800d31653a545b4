"""SQLAlchemy implementation of TopupHistoryRepository"""

from typing import Optional
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.topup_history_repository import TopupHistoryRepository
from src.domain.topup_history import TopupHistory, TopupStatus


class SqlAlchemyTopupHistoryRepository(TopupHistoryRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, topup: TopupHistory) -> TopupHistory:
        self.session.add(topup)
        await self.session.flush()
        await self.session.refresh(topup)
        return topup

    async def save(self, topup: TopupHistory) -> TopupHistory:
        self.session.add(topup)
        await self.session.flush()
        return topup

    async def get_by_id(self, topup_history_id: int, for_update: bool = False) -> Optional[TopupHistory]:
        stmt = select(TopupHistory).where(TopupHistory.id == topup_history_id)

        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_payment_intent_id(self, payment_intent_id: str) -> Optional[TopupHistory]:
        stmt = (
            select(TopupHistory)
            .where(TopupHistory.stripe_payment_intent_id == payment_intent_id)
            .order_by(TopupHistory.id.desc())
            .limit(1)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_organization(
        self,
        organization_id: int,
        limit: int = 20,
        offset: int = 0,
        status: Optional[TopupStatus] = None,
    ) -> tuple[list[TopupHistory], int]:
        conditions = [TopupHistory.organization_id == organization_id]
        if status is not None:
            conditions.append(TopupHistory.status == status)

        count_stmt = select(func.count()).select_from(TopupHistory).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(TopupHistory)
            .where(*conditions)
            .order_by(TopupHistory.created_at.desc(), TopupHistory.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total
