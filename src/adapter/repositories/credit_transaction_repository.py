"""SQLAlchemy implementation of CreditTransactionRepository

Provides persistence for the append-only CreditTransaction audit trail.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.domain.credit_transaction import CreditTransaction, SPEND_TYPES


class SqlAlchemyCreditTransactionRepository(CreditTransactionRepository):
    """
    SQLAlchemy implementation of CreditTransactionRepository

    Features:
    - Immutable append-only transactions
    - Signed-sum aggregation for reconciliation
    - Unlinked spend lookup
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, transaction: CreditTransaction) -> CreditTransaction:
        """
        Create a new credit transaction

        Args:
            transaction: CreditTransaction entity to persist

        Returns:
            Created CreditTransaction with generated ID
        """
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction

    async def get_by_id(self, transaction_id: int) -> Optional[CreditTransaction]:
        """
        Retrieve transaction by ID

        Args:
            transaction_id: Transaction ID

        Returns:
            CreditTransaction if found, None otherwise
        """
        stmt = select(CreditTransaction).where(CreditTransaction.id == transaction_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def link_promotion(self, transaction_id: int, promotion_id: int) -> None:
        transaction = await self.get_by_id(transaction_id)
        if transaction:
            transaction.promotion_id = promotion_id
            self.session.add(transaction)
            await self.session.flush()

    async def get_sum_by_organization(self, organization_id: int) -> int:
        stmt = select(func.coalesce(func.sum(CreditTransaction.amount), 0)).where(
            CreditTransaction.organization_id == organization_id
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def get_by_organization(
        self, organization_id: int, limit: int = 20, offset: int = 0
    ) -> tuple[list[CreditTransaction], int]:
        """
        Retrieve transactions for an organization, newest first

        Returns:
            Tuple of (list of CreditTransaction, total count)
        """
        count_stmt = select(func.count()).select_from(CreditTransaction).where(
            CreditTransaction.organization_id == organization_id
        )
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(CreditTransaction)
            .where(CreditTransaction.organization_id == organization_id)
            .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def get_unlinked_spends(self, created_before: datetime, limit: int = 100) -> list[CreditTransaction]:
        stmt = (
            select(CreditTransaction)
            .where(
                CreditTransaction.transaction_type.in_(list(SPEND_TYPES)),
                CreditTransaction.promotion_id.is_(None),
                CreditTransaction.created_at < created_before,
            )
            .order_by(CreditTransaction.created_at)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
