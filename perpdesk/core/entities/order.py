"""
Order Entity for PerpDesk

Open orders as returned by Hyperliquid's frontendOpenOrders endpoint.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

LIMIT_ORDER_TYPE = "Limit"
STOP_MARKET_ORDER_TYPE = "Stop Market"

# Hyperliquid spells it with a space; some clients drop it
STOP_MARKET_ORDER_TYPES = frozenset({STOP_MARKET_ORDER_TYPE, "StopMarket"})


class Order(BaseModel):
    """
    Single resting order. Order types other than Limit / Stop Market
    are accepted but ignored by the analysis engine.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        json_schema_extra={
            "example": {
                "coin": "ETH",
                "orderType": "Limit",
                "reduceOnly": True,
                "limitPx": "2550.0",
                "sz": "2.0",
            }
        },
    )

    coin: str
    order_type: str = Field(alias="orderType")
    reduce_only: bool = Field(False, alias="reduceOnly")
    limit_price: float = Field(alias="limitPx")
    trigger_price: Optional[float] = Field(None, alias="triggerPx")
    size: float = Field(alias="sz")
    oid: Optional[int] = None
    side: Optional[str] = None  # "B" (bid) or "A" (ask)

    @property
    def is_take_profit(self) -> bool:
        return self.order_type == LIMIT_ORDER_TYPE and self.reduce_only

    @property
    def is_stop_loss(self) -> bool:
        return self.order_type in STOP_MARKET_ORDER_TYPES

    @property
    def exit_price(self) -> float:
        # Stops fire at their trigger; a zero trigger means none was sent
        if self.is_stop_loss and self.trigger_price:
            return self.trigger_price
        return self.limit_price
