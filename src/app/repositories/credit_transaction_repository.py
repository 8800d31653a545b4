"""Credit Transaction Repository Interface

Defines the contract for credit transaction persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from src.domain.credit_transaction import CreditTransaction


class CreditTransactionRepository(ABC):
    """
    Repository interface for CreditTransaction persistence

    Transactions are immutable and append-only for audit trail. The only
    update is linking a debit to the promotion it funded.
    """

    @abstractmethod
    async def create(self, transaction: CreditTransaction) -> CreditTransaction:
        """
        Create a new credit transaction

        Args:
            transaction: CreditTransaction entity to persist

        Returns:
            Created CreditTransaction with generated ID
        """
        pass

    @abstractmethod
    async def get_by_id(self, transaction_id: int) -> Optional[CreditTransaction]:
        pass

    @abstractmethod
    async def link_promotion(self, transaction_id: int, promotion_id: int) -> None:
        """
        Back-fill the promotion a debit transaction paid for

        Args:
            transaction_id: Transaction ID
            promotion_id: Promotion created with the debited credits
        """
        pass

    @abstractmethod
    async def get_sum_by_organization(self, organization_id: int) -> int:
        """
        Signed sum of all transaction amounts of an organization

        Returns:
            0 when the organization has no transactions
        """
        pass

    @abstractmethod
    async def get_by_organization(
        self, organization_id: int, limit: int = 20, offset: int = 0
    ) -> tuple[list[CreditTransaction], int]:
        """
        Retrieve transactions for an organization, newest first

        Returns:
            Tuple of (list of CreditTransaction, total count)
        """
        pass

    @abstractmethod
    async def get_unlinked_spends(self, created_before: datetime, limit: int = 100) -> list[CreditTransaction]:
        """
        Promotion / auto-renewal debits that never got a promotion_id

        Args:
            created_before: Only transactions older than this are returned

        Returns:
            List of orphaned debit transactions
        """
        pass
