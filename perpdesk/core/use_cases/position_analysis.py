import logging
import math
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from perpdesk.core.entities.analysis import (
    PositionAnalysis,
    PositionAnalysisResult,
    PositionSummary,
    SlLegResult,
    TpLegResult,
    Visualization,
)
from perpdesk.core.entities.fees import DEFAULT_FEE_SETTINGS, FeeSettings
from perpdesk.core.entities.order import Order
from perpdesk.core.entities.position import Position
from perpdesk.core.errors import InvalidOrderError, InvalidPositionError

logger = logging.getLogger(__name__)

CHART_PADDING = 0.005  # 0.5% each side of the price set
FLAT_RANGE_POSITION = 50.0


def _check_position(position: Position) -> None:
    if not math.isfinite(position.entry_price) or position.entry_price <= 0:
        raise InvalidPositionError(
            f"{position.coin}: entry price must be positive, got {position.entry_price}"
        )
    if not math.isfinite(position.signed_size) or position.signed_size == 0:
        raise InvalidPositionError(
            f"{position.coin}: position size must be non-zero, got {position.signed_size}"
        )


def _check_order(order: Order) -> None:
    # Zero size is fine: position-wide TP/SL orders report sz 0
    fields = (
        ("limit price", order.limit_price),
        ("size", order.size),
        ("trigger price", order.trigger_price),
    )
    for name, value in fields:
        if value is None:
            continue
        if not math.isfinite(value) or value < 0:
            raise InvalidOrderError(
                f"{order.coin} {order.order_type}: {name} must be finite and non-negative, got {value}"
            )


def classify_orders(coin: str, orders: Optional[Iterable[Order]]) -> Tuple[List[Order], List[Order]]:
    """
    Splits the orders for `coin` into (take_profits, stops), both in input order.
    Everything else is dropped.
    """
    take_profits: List[Order] = []
    stops: List[Order] = []
    for order in orders or ():
        if order.coin != coin:
            continue
        _check_order(order)
        if order.is_take_profit:
            take_profits.append(order)
        elif order.is_stop_loss:
            stops.append(order)
    return take_profits, stops


def _tp_leg(order: Order, position: Position, entry_fee: float, fees: FeeSettings) -> TpLegResult:
    entry = position.entry_price
    tp_price = order.exit_price
    tp_size = order.size

    profit_per_unit = (tp_price - entry) if position.is_long else (entry - tp_price)
    gross_profit = profit_per_unit * tp_size
    exit_fee = tp_size * tp_price * fees.maker_rate

    # Entry fee is split across exits by size, never charged per leg
    proportional_entry_fee = entry_fee * (tp_size / position.position_size)

    price_move = abs(tp_price - entry)
    return TpLegResult(
        price=tp_price,
        size=tp_size,
        profit=gross_profit,
        proportional_entry_fee=proportional_entry_fee,
        exit_fee=exit_fee,
        net_profit=gross_profit - proportional_entry_fee - exit_fee,
        price_move=price_move,
        percent_move=price_move / entry * 100,
        pnl_percent=profit_per_unit / entry * 100,
    )


def _sl_leg(order: Order, position: Position, entry_fee: float, fees: FeeSettings) -> SlLegResult:
    entry = position.entry_price
    sl_price = order.exit_price
    size = position.position_size  # Stop closes the whole position

    loss_per_unit = (entry - sl_price) if position.is_long else (sl_price - entry)
    loss_before_fees = loss_per_unit * size
    exit_fee = size * sl_price * fees.taker_rate

    is_in_profit = loss_before_fees < 0
    if is_in_profit:
        total_loss = loss_before_fees - entry_fee - exit_fee
    else:
        total_loss = loss_before_fees + entry_fee + exit_fee

    price_move = abs(sl_price - entry)
    return SlLegResult(
        price=sl_price,
        size=size,
        loss=loss_before_fees,
        exit_fee=exit_fee,
        total_loss=total_loss,
        is_in_profit=is_in_profit,
        price_move=price_move,
        percent_move=price_move / entry * 100,
        pnl_percent=loss_per_unit / entry * 100,
    )


def _visualization(
    entry_price: float,
    tp_legs: Sequence[TpLegResult],
    sl_leg: Optional[SlLegResult],
    current_price: Optional[float],
) -> Visualization:
    prices = [entry_price] + [tp.price for tp in tp_legs]
    if sl_leg is not None:
        prices.append(sl_leg.price)

    min_price = min(prices) * (1 - CHART_PADDING)
    max_price = max(prices) * (1 + CHART_PADDING)
    price_range = max_price - min_price

    def to_percent(price: float) -> float:
        if price_range == 0:
            return FLAT_RANGE_POSITION
        return (price - min_price) / price_range * 100

    return Visualization(
        min_price=min_price,
        max_price=max_price,
        price_range=price_range,
        entry_position=to_percent(entry_price),
        current_position=to_percent(current_price) if current_price is not None else None,
        tp_positions=[to_percent(tp.price) for tp in tp_legs],
        sl_position=to_percent(sl_leg.price) if sl_leg is not None else None,
    )


def analyze_position(
    position: Position,
    orders: Optional[Iterable[Order]],
    fee_settings: FeeSettings = DEFAULT_FEE_SETTINGS,
    current_price: Optional[float] = None,
) -> PositionAnalysis:
    """
    Projects profit and loss for every take-profit leg and the stop-loss of a
    single position, net of fees.

    A stop that would close in profit is reported in `sl_order` but counts
    towards neither `expected_profit` nor `expected_loss`. Only the first stop
    order for the coin is used.
    """
    _check_position(position)

    entry = position.entry_price
    position_value = position.position_value
    entry_fee = position_value * fee_settings.taker_rate  # Market entry

    take_profits, stops = classify_orders(position.coin, orders)

    # 1. Take-profit legs
    tp_legs = [_tp_leg(o, position, entry_fee, fee_settings) for o in take_profits]
    expected_profit = sum(tp.net_profit for tp in tp_legs)

    total_tp_size = sum(tp.size for tp in tp_legs)
    total_tp_profit = sum(tp.profit for tp in tp_legs)
    total_tp_exit_fees = sum(tp.exit_fee for tp in tp_legs)
    avg_tp_price = 0.0
    if total_tp_size > 0:
        avg_tp_price = sum(tp.price * tp.size for tp in tp_legs) / total_tp_size

    # 2. Stop-loss leg
    sl_leg = None
    expected_loss = 0.0
    if stops:
        if len(stops) > 1:
            logger.debug(f"{position.coin}: {len(stops) - 1} extra stop order(s) ignored")
        sl_leg = _sl_leg(stops[0], position, entry_fee, fee_settings)
        if sl_leg.total_loss > 0:
            expected_loss = sl_leg.total_loss

    # 3. Summary
    avg_tp_price_move = abs(avg_tp_price - entry) if avg_tp_price > 0 else 0.0
    avg_tp_percent_move = avg_tp_price_move / entry * 100 if avg_tp_price > 0 else 0.0
    max_fees = entry_fee + (sl_leg.exit_fee if sl_leg is not None else total_tp_exit_fees)
    rr_ratio = expected_profit / expected_loss if expected_loss > 0 else 0.0

    summary = PositionSummary(
        total_tp_size=total_tp_size,
        total_tp_profit=total_tp_profit,
        total_tp_exit_fees=total_tp_exit_fees,
        avg_tp_price=avg_tp_price,
        avg_tp_price_move=avg_tp_price_move,
        avg_tp_percent_move=avg_tp_percent_move,
        max_fees=max_fees,
        breakeven_percent=entry_fee / position_value * 100,
        rr_ratio=rr_ratio,
        sl_order_count=len(stops),
        ignored_sl_orders=max(len(stops) - 1, 0),
    )

    return PositionAnalysis(
        coin=position.coin,
        is_long=position.is_long,
        entry_price=entry,
        position_size=position.position_size,
        position_value=position_value,
        entry_fee=entry_fee,
        expected_profit=expected_profit,
        expected_loss=expected_loss,
        tp_orders=tp_legs,
        sl_order=sl_leg,
        visualization=_visualization(entry, tp_legs, sl_leg, current_price),
        summary=summary,
    )


def calculate_position_analysis(
    positions: Sequence[Position],
    orders: Optional[Sequence[Order]] = None,
    fee_settings: Optional[FeeSettings] = None,
    current_prices: Optional[Mapping[str, float]] = None,
) -> PositionAnalysisResult:
    """
    Analyzes every position, keeping input order. Positions without
    qualifying orders (or with `orders=None`) come back with empty legs.
    """
    fee_settings = fee_settings or DEFAULT_FEE_SETTINGS
    current_prices = current_prices or {}

    analyses = [
        analyze_position(p, orders, fee_settings, current_prices.get(p.coin))
        for p in positions
    ]
    return PositionAnalysisResult(
        total_expected_profit=sum(a.expected_profit for a in analyses),
        total_expected_loss=sum(a.expected_loss for a in analyses),
        position_analysis=analyses,
    )
