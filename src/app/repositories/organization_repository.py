"""Organization Repository Interface

Defines the contract for organization billing persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from src.domain.organization import Organization


class OrganizationRepository(ABC):
    """
    Repository interface for Organization billing state

    Balance writes are conditional on the previously read balance so that a
    concurrent mutation is detected instead of silently overwritten.
    """

    @abstractmethod
    async def get_by_id(self, organization_id: int, for_update: bool = False) -> Optional[Organization]:
        """
        Retrieve organization by ID

        Args:
            organization_id: Organization ID
            for_update: If True, lock the row with SELECT FOR UPDATE (pessimistic lock)

        Returns:
            Organization if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, organization: Organization) -> Organization:
        pass

    @abstractmethod
    async def update_balance(
        self,
        organization_id: int,
        expected_balance: int,
        new_balance: int,
        loaded_delta: int = 0,
        spent_delta: int = 0,
    ) -> bool:
        """
        Write a new balance if the stored balance still equals ``expected_balance``

        Args:
            organization_id: Organization ID
            expected_balance: Balance read at the start of the mutation
            new_balance: Balance to store
            loaded_delta: Amount added to total_credits_loaded
            spent_delta: Amount added to total_credits_spent

        Returns:
            True if the row was updated, False on a concurrent modification
        """
        pass

    @abstractmethod
    async def set_stripe_customer_id(self, organization_id: int, customer_id: str) -> None:
        pass

    @abstractmethod
    async def mark_low_balance_alert_sent(self, organization_id: int, sent_at: datetime) -> None:
        pass

    @abstractmethod
    async def update_alert_settings(
        self,
        organization_id: int,
        enabled: Optional[bool] = None,
        threshold: Optional[int] = None,
        billing_email: Optional[str] = None,
    ) -> Optional[Organization]:
        pass

    @abstractmethod
    async def get_all(self) -> list[Organization]:
        pass
