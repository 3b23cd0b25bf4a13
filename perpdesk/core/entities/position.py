from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class Position(BaseModel):
    """
    Open perpetual position as reported by the account collaborator.
    Accepts Hyperliquid wire names (szi, entryPx, ...) or snake_case.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        json_schema_extra={
            "example": {
                "coin": "ETH",
                "szi": "2.0",
                "entryPx": "2500.0",
            }
        },
    )

    coin: str
    signed_size: float = Field(alias="szi")  # Positive = long, negative = short
    entry_price: float = Field(alias="entryPx")

    # Optional risk fields, used for live PnL only
    unrealized_pnl: Optional[float] = Field(None, alias="unrealizedPnl")
    margin_used: Optional[float] = Field(None, alias="marginUsed")
    liquidation_price: Optional[float] = Field(None, alias="liquidationPx")
    return_on_equity: Optional[float] = Field(None, alias="returnOnEquity")
    leverage: Optional[float] = None

    @property
    def is_long(self) -> bool:
        return self.signed_size > 0

    @property
    def position_size(self) -> float:
        return abs(self.signed_size)

    @property
    def position_value(self) -> float:
        return self.entry_price * self.position_size


class LivePositionPnL(BaseModel):
    """
    Mark-to-market snapshot of one position.
    """
    coin: str
    is_long: bool
    is_live: bool  # False when no live price was available
    entry_price: float
    current_price: float
    position_size: float
    notional_value: float
    unrealized_pnl: float
    pnl_percent: float
    roe_percent: float
    liquidation_price: Optional[float] = None
    liquidation_distance_percent: float = 0.0


class LivePnLSummary(BaseModel):
    total_unrealized_pnl: float
    positions: list[LivePositionPnL]
