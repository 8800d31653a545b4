"""SQLAlchemy implementation of ConstructionRepository"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.construction_repository import ConstructionRepository
from src.domain.construction import Construction


class SqlAlchemyConstructionRepository(ConstructionRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, construction_id: int, for_update: bool = False) -> Optional[Construction]:
        stmt = select(Construction).where(Construction.id == construction_id)

        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
