"""Construction Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.construction import Construction


class ConstructionRepository(ABC):

    @abstractmethod
    async def get_by_id(self, construction_id: int, for_update: bool = False) -> Optional[Construction]:
        """
        Get construction by ID

        Args:
            construction_id: Construction ID
            for_update: Lock the row so purchases for one listing run one at a time
        """
        pass
