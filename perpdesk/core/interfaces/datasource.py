from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from perpdesk.core.entities.order import Order
from perpdesk.core.entities.position import Position

class IAccountDataSource(ABC):
    @abstractmethod
    async def get_positions(self, user: str) -> List[Position]:
        pass

    @abstractmethod
    async def get_open_orders(self, user: str) -> Optional[List[Order]]:
        """
        Returns None when order data is unavailable, which the analysis
        treats as "no orders".
        """
        pass

    @abstractmethod
    async def get_mid_prices(self) -> Dict[str, float]:
        pass
