"""SQLAlchemy implementation of OrganizationRepository

Balance writes are conditional UPDATE statements guarded by the previously
read balance, on top of the SELECT FOR UPDATE row lock taken by the caller.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.domain.base import utcnow
from src.app.repositories.organization_repository import OrganizationRepository
from src.domain.organization import Organization


class SqlAlchemyOrganizationRepository(OrganizationRepository):
    """
    SQLAlchemy implementation of OrganizationRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE
    - Compare-and-set balance update
    - Lifetime counters updated in the same statement as the balance
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, organization_id: int, for_update: bool = False) -> Optional[Organization]:
        """
        Retrieve organization by ID with optional row-level locking

        Args:
            organization_id: Organization ID
            for_update: If True, locks the row and reloads it from the database

        Returns:
            Organization if found, None otherwise
        """
        stmt = select(Organization).where(Organization.id == organization_id)

        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, organization: Organization) -> Organization:
        self.session.add(organization)
        await self.session.flush()
        await self.session.refresh(organization)
        return organization

    async def update_balance(
        self,
        organization_id: int,
        expected_balance: int,
        new_balance: int,
        loaded_delta: int = 0,
        spent_delta: int = 0,
    ) -> bool:
        """
        Compare-and-set the balance

        Returns:
            True if exactly one row matched the expected balance
        """
        stmt = (
            update(Organization)
            .where(
                Organization.id == organization_id,
                Organization.credit_balance == expected_balance,
            )
            .values(
                credit_balance=new_balance,
                total_credits_loaded=Organization.total_credits_loaded + loaded_delta,
                total_credits_spent=Organization.total_credits_spent + spent_delta,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)

        if result.rowcount != 1:
            return False

        # keep the instance held by the session in step with the row
        await self.get_by_id(organization_id, for_update=True)
        return True

    async def set_stripe_customer_id(self, organization_id: int, customer_id: str) -> None:
        organization = await self.get_by_id(organization_id)
        if organization:
            organization.stripe_customer_id = customer_id
            organization.updated_at = utcnow()
            self.session.add(organization)
            await self.session.flush()

    async def mark_low_balance_alert_sent(self, organization_id: int, sent_at: datetime) -> None:
        organization = await self.get_by_id(organization_id)
        if organization:
            organization.last_low_balance_alert_at = sent_at
            self.session.add(organization)
            await self.session.flush()

    async def update_alert_settings(
        self,
        organization_id: int,
        enabled: Optional[bool] = None,
        threshold: Optional[int] = None,
        billing_email: Optional[str] = None,
    ) -> Optional[Organization]:
        organization = await self.get_by_id(organization_id)
        if not organization:
            return None

        if enabled is not None:
            organization.low_balance_alert_enabled = enabled
        if threshold is not None:
            organization.low_balance_alert_threshold = threshold
        if billing_email is not None:
            organization.billing_email = billing_email
        organization.updated_at = utcnow()

        self.session.add(organization)
        await self.session.flush()
        await self.session.refresh(organization)
        return organization

    async def get_all(self) -> list[Organization]:
        stmt = select(Organization).order_by(Organization.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
