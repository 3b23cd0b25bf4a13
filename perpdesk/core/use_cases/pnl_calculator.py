import math
from typing import List, Mapping, Optional, Sequence

from perpdesk.core.entities.position import LivePnLSummary, LivePositionPnL, Position


def live_price(mid_prices: Mapping[str, float], coin: str) -> Optional[float]:
    price = mid_prices.get(coin)
    if price is None or not math.isfinite(price) or price <= 0:
        return None
    return price


def position_live_pnl(position: Position, current_price: Optional[float]) -> LivePositionPnL:
    """
    Marks one position to `current_price`. Without a price, the values the
    exchange last reported are used instead.
    """
    size = position.position_size
    entry = position.entry_price
    is_live = current_price is not None
    price = current_price if is_live else entry

    per_unit = (price - entry) if position.is_long else (entry - price)
    if is_live:
        pnl = per_unit * size
    else:
        pnl = position.unrealized_pnl or 0.0

    if is_live and position.margin_used:
        roe = pnl / position.margin_used * 100
    elif position.return_on_equity is not None:
        roe = position.return_on_equity * 100
    else:
        roe = 0.0

    liq = position.liquidation_price
    liq_distance = 0.0
    if liq and liq > 0:
        if position.is_long:
            liq_distance = (price - liq) / price * 100
        else:
            liq_distance = (liq - price) / price * 100

    return LivePositionPnL(
        coin=position.coin,
        is_long=position.is_long,
        is_live=is_live,
        entry_price=entry,
        current_price=price,
        position_size=size,
        notional_value=size * price,
        unrealized_pnl=pnl,
        pnl_percent=per_unit / entry * 100 if entry > 0 else 0.0,
        roe_percent=roe,
        liquidation_price=liq,
        liquidation_distance_percent=liq_distance,
    )


def calculate_live_pnl(positions: Sequence[Position], mid_prices: Mapping[str, float]) -> LivePnLSummary:
    results: List[LivePositionPnL] = [
        position_live_pnl(p, live_price(mid_prices, p.coin)) for p in positions
    ]
    return LivePnLSummary(
        total_unrealized_pnl=sum(r.unrealized_pnl for r in results),
        positions=results,
    )
