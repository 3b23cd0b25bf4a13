from typing import Optional, Sequence

from perpdesk.core.entities.analysis import ExpectedPnLDetail, ExpectedPnLResult, PositionAnalysisResult
from perpdesk.core.entities.fees import FeeSettings
from perpdesk.core.entities.order import Order
from perpdesk.core.entities.position import Position
from perpdesk.core.use_cases.position_analysis import calculate_position_analysis


def summarize_expected_pnl(result: PositionAnalysisResult) -> ExpectedPnLResult:
    """Compact per-coin view of an analysis, for summary cards."""
    details = [
        ExpectedPnLDetail(
            coin=a.coin,
            expected_profit=a.expected_profit,
            expected_loss=a.expected_loss,
            tp_orders=len(a.tp_orders),
            sl_orders=a.summary.sl_order_count,
        )
        for a in result.position_analysis
    ]
    return ExpectedPnLResult(
        total_expected_profit=result.total_expected_profit,
        total_expected_loss=result.total_expected_loss,
        position_details=details,
    )


def calculate_expected_pnl(
    positions: Sequence[Position],
    orders: Optional[Sequence[Order]] = None,
    fee_settings: Optional[FeeSettings] = None,
) -> ExpectedPnLResult:
    return summarize_expected_pnl(calculate_position_analysis(positions, orders, fee_settings))
