"""Promotion Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from src.domain.promotion import Promotion


class PromotionRepository(ABC):
    """
    Repository interface for Promotion persistence

    Sweep queries only return ACTIVE promotions, so a promotion that a
    previous run already moved out of ACTIVE is never picked up again.
    """

    @abstractmethod
    async def create(self, promotion: Promotion) -> Promotion:
        """
        Persist a new promotion

        Raises:
            AlreadyPromotedError: another ACTIVE promotion exists for the construction
        """
        pass

    @abstractmethod
    async def save(self, promotion: Promotion) -> Promotion:
        pass

    @abstractmethod
    async def get_by_id(self, promotion_id: int, for_update: bool = False) -> Optional[Promotion]:
        pass

    @abstractmethod
    async def get_active_by_construction(self, construction_id: int) -> Optional[Promotion]:
        pass

    @abstractmethod
    async def get_expired_active(self, now: datetime, limit: int = 100) -> list[Promotion]:
        """
        Active promotions whose end_date is before ``now``

        Args:
            now: Reference time
            limit: Batch size

        Returns:
            List of Promotion ordered by end_date
        """
        pass

    @abstractmethod
    async def get_due_for_renewal(self, now: datetime, until: datetime, limit: int = 100) -> list[Promotion]:
        """
        Active auto-renew promotions with now < end_date <= until
        """
        pass

    @abstractmethod
    async def get_expiring_without_alert(self, now: datetime, until: datetime, limit: int = 100) -> list[Promotion]:
        """
        Active promotions not yet reminded with now < end_date <= until
        """
        pass
