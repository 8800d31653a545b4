"""Promotion Package Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.promotion_package import PromotionPackage


class PromotionPackageRepository(ABC):

    @abstractmethod
    async def get_by_id(self, package_id: int) -> Optional[PromotionPackage]:
        pass

    @abstractmethod
    async def get_active(self) -> list[PromotionPackage]:
        """Purchasable packages ordered by sort_order"""
        pass
