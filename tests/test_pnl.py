"""
Tests for the expected-PnL rollup and live PnL.
"""
import pytest

from perpdesk.core.entities.order import Order
from perpdesk.core.entities.position import Position
from perpdesk.core.use_cases.expected_pnl import calculate_expected_pnl, summarize_expected_pnl
from perpdesk.core.use_cases.pnl_calculator import calculate_live_pnl, position_live_pnl
from perpdesk.core.use_cases.position_analysis import calculate_position_analysis


@pytest.fixture
def book():
    positions = [
        Position(coin="ETH", signed_size=2, entry_price=2500),
        Position(coin="BTC", signed_size=-1, entry_price=60000),
    ]
    orders = [
        Order(coin="ETH", order_type="Limit", reduce_only=True, limit_price=2550, size=1),
        Order(coin="ETH", order_type="Limit", reduce_only=True, limit_price=2600, size=1),
        Order(coin="BTC", order_type="Stop Market", limit_price=61000, trigger_price=61000, size=1),
        Order(coin="BTC", order_type="Stop Market", limit_price=62000, trigger_price=62000, size=1),
    ]
    return positions, orders


def test_expected_pnl_matches_analysis(book, fees):
    positions, orders = book
    analysis = calculate_position_analysis(positions, orders, fees)
    summary = summarize_expected_pnl(analysis)

    assert summary.total_expected_profit == analysis.total_expected_profit
    assert summary.total_expected_loss == analysis.total_expected_loss

    eth, btc = summary.position_details
    assert (eth.coin, eth.tp_orders, eth.sl_orders) == ("ETH", 2, 0)
    assert (btc.coin, btc.tp_orders, btc.sl_orders) == ("BTC", 0, 2)
    assert eth.expected_profit == pytest.approx(48.694 + 98.688)
    assert btc.expected_loss == pytest.approx(1048.4)


def test_expected_pnl_without_orders(book):
    positions, _ = book
    summary = calculate_expected_pnl(positions)

    assert summary.total_expected_profit == 0
    assert all(d.tp_orders == 0 and d.sl_orders == 0 for d in summary.position_details)


def test_live_pnl_long_and_short():
    positions = [
        Position(coin="ETH", signed_size=2, entry_price=2500, margin_used=200),
        Position(coin="BTC", signed_size=-0.1, entry_price=60000),
    ]
    summary = calculate_live_pnl(positions, {"ETH": 2525.0, "BTC": 59800.0})
    eth, btc = summary.positions

    assert eth.is_live
    assert eth.unrealized_pnl == pytest.approx(50)
    assert eth.pnl_percent == pytest.approx(1.0)
    assert eth.roe_percent == pytest.approx(25.0)
    assert eth.notional_value == pytest.approx(5050)

    assert btc.unrealized_pnl == pytest.approx(20)
    assert btc.pnl_percent == pytest.approx(200 / 60000 * 100)
    assert btc.roe_percent == 0

    assert summary.total_unrealized_pnl == pytest.approx(70)


def test_live_pnl_falls_back_to_reported_values():
    position = Position(
        coin="SOL", signed_size=10, entry_price=150, unrealized_pnl=12.5, return_on_equity=0.05
    )
    summary = calculate_live_pnl([position], {"SOL": 0.0, "ETH": 2500.0})
    sol = summary.positions[0]

    assert sol.is_live is False
    assert sol.current_price == 150
    assert sol.unrealized_pnl == 12.5
    assert sol.roe_percent == pytest.approx(5.0)
    assert sol.pnl_percent == 0


@pytest.mark.parametrize(
    "signed_size,price,liq,expected",
    [(1.0, 2500.0, 2000.0, 20.0), (-1.0, 60000.0, 66000.0, 10.0)],
)
def test_liquidation_distance(signed_size, price, liq, expected):
    position = Position(coin="X", signed_size=signed_size, entry_price=price, liquidation_price=liq)
    live = position_live_pnl(position, price)

    assert live.liquidation_distance_percent == pytest.approx(expected)


def test_unknown_liquidation_price():
    position = Position(coin="X", signed_size=1, entry_price=100)

    assert position_live_pnl(position, 101).liquidation_distance_percent == 0
