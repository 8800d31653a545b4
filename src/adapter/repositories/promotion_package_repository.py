"""SQLAlchemy implementation of PromotionPackageRepository"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.promotion_package_repository import PromotionPackageRepository
from src.domain.promotion_package import PromotionPackage


class SqlAlchemyPromotionPackageRepository(PromotionPackageRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, package_id: int) -> Optional[PromotionPackage]:
        stmt = select(PromotionPackage).where(PromotionPackage.id == package_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active(self) -> list[PromotionPackage]:
        stmt = (
            select(PromotionPackage)
            .where(PromotionPackage.is_active == True)  # noqa: E712
            .order_by(PromotionPackage.sort_order, PromotionPackage.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
