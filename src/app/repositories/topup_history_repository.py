"""Top-up History Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.topup_history import TopupHistory, TopupStatus


class TopupHistoryRepository(ABC):

    @abstractmethod
    async def create(self, topup: TopupHistory) -> TopupHistory:
        pass

    @abstractmethod
    async def save(self, topup: TopupHistory) -> TopupHistory:
        pass

    @abstractmethod
    async def get_by_id(self, topup_history_id: int, for_update: bool = False) -> Optional[TopupHistory]:
        pass

    @abstractmethod
    async def get_by_payment_intent_id(self, payment_intent_id: str) -> Optional[TopupHistory]:
        pass

    @abstractmethod
    async def get_by_organization(
        self,
        organization_id: int,
        limit: int = 20,
        offset: int = 0,
        status: Optional[TopupStatus] = None,
    ) -> tuple[list[TopupHistory], int]:
        """Checkout attempts of an organization, newest first, with the total matching count"""
        pass
