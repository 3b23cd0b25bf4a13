from typing import Dict, List, Optional

from perpdesk.core.interfaces.datasource import IAccountDataSource
from perpdesk.core.entities.order import Order
from perpdesk.core.entities.position import Position


class StaticAccountSource(IAccountDataSource):
    """
    In-memory account, used in dev mode and tests. Every user sees the same book.
    """

    def __init__(
        self,
        positions: Optional[List[Position]] = None,
        orders: Optional[List[Order]] = None,
        mid_prices: Optional[Dict[str, float]] = None,
    ):
        self.positions = positions or []
        self.orders = orders
        self.mid_prices = mid_prices or {}

    @classmethod
    def demo(cls) -> "StaticAccountSource":
        return cls(
            positions=[
                Position(coin="ETH", signed_size=2.0, entry_price=2500.0, margin_used=200.0),
                Position(coin="BTC", signed_size=-0.1, entry_price=60000.0, margin_used=150.0),
            ],
            orders=[
                Order(coin="ETH", order_type="Limit", reduce_only=True, limit_price=2550.0, size=1.0),
                Order(coin="ETH", order_type="Limit", reduce_only=True, limit_price=2600.0, size=1.0),
                Order(coin="ETH", order_type="Stop Market", reduce_only=True,
                      limit_price=2400.0, trigger_price=2450.0, size=2.0),
                Order(coin="BTC", order_type="Stop Market", reduce_only=True,
                      limit_price=61000.0, trigger_price=61000.0, size=0.1),
            ],
            mid_prices={"ETH": 2525.0, "BTC": 59800.0},
        )

    async def get_positions(self, user: str) -> List[Position]:
        return list(self.positions)

    async def get_open_orders(self, user: str) -> Optional[List[Order]]:
        return list(self.orders) if self.orders is not None else None

    async def get_mid_prices(self) -> Dict[str, float]:
        return dict(self.mid_prices)
