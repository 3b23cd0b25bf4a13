"""
Analysis Entities for PerpDesk

Output of the position analysis engine. Monetary fields are signed so that
positive is favorable to the position holder.
"""
from pydantic import BaseModel, ConfigDict
from typing import Optional


class TpLegResult(BaseModel):
    """
    Projection for one take-profit order.
    """
    model_config = ConfigDict(frozen=True)

    price: float
    size: float
    profit: float  # Gross, before fees
    proportional_entry_fee: float
    exit_fee: float
    net_profit: float
    price_move: float
    percent_move: float
    pnl_percent: float


class SlLegResult(BaseModel):
    """
    Projection for the stop-loss, sized to close the whole position.
    A negative loss means the stop sits on the favorable side of entry.
    """
    model_config = ConfigDict(frozen=True)

    price: float
    size: float
    loss: float  # Gross, before fees
    exit_fee: float
    total_loss: float
    is_in_profit: bool
    price_move: float
    percent_move: float
    pnl_percent: float


class Visualization(BaseModel):
    """
    Chart x-coordinates, in percent of the padded price range.
    """
    model_config = ConfigDict(frozen=True)

    min_price: float
    max_price: float
    price_range: float
    entry_position: float
    current_position: Optional[float] = None
    tp_positions: list[float]
    sl_position: Optional[float] = None


class PositionSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_tp_size: float
    total_tp_profit: float
    total_tp_exit_fees: float
    avg_tp_price: float
    avg_tp_price_move: float
    avg_tp_percent_move: float
    max_fees: float
    breakeven_percent: float
    rr_ratio: float
    sl_order_count: int = 0
    ignored_sl_orders: int = 0


class PositionAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    coin: str
    is_long: bool
    entry_price: float
    position_size: float
    position_value: float
    entry_fee: float
    expected_profit: float
    expected_loss: float
    tp_orders: list[TpLegResult]
    sl_order: Optional[SlLegResult] = None
    visualization: Visualization
    summary: PositionSummary


class PositionAnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_expected_profit: float
    total_expected_loss: float
    position_analysis: list[PositionAnalysis]


# --- Expected PnL rollup ---

class ExpectedPnLDetail(BaseModel):
    coin: str
    expected_profit: float
    expected_loss: float
    tp_orders: int
    sl_orders: int


class ExpectedPnLResult(BaseModel):
    total_expected_profit: float
    total_expected_loss: float
    position_details: list[ExpectedPnLDetail]
