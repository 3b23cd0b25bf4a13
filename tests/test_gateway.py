"""
Tests for the Hyperliquid gateway mapping, with a fake Info client.
"""
import pytest

from perpdesk.core.errors import DataSourceError, InvalidAddressError
from perpdesk.infrastructure.gateways.hl_public_api import HLPublicGateway, validate_address

TEST_USER = "0x31ca8395cf837de08b24da3f660e77761dfb974b"

CLEARINGHOUSE_STATE = {
    "assetPositions": [
        {
            "type": "oneWay",
            "position": {
                "coin": "ETH",
                "szi": "2.0",
                "entryPx": "2500.0",
                "positionValue": "5050.0",
                "unrealizedPnl": "50.0",
                "returnOnEquity": "0.25",
                "liquidationPx": "2010.5",
                "marginUsed": "200.0",
                "leverage": {"type": "cross", "value": 25},
            },
        },
        {"type": "oneWay", "position": {"coin": "SOL", "szi": "0.0", "entryPx": None}},
        {"type": "oneWay", "position": {"coin": "DOGE", "szi": "abc", "entryPx": "0.1"}},
        {
            "type": "oneWay",
            "position": {
                "coin": "BTC",
                "szi": "-0.1",
                "entryPx": "60000.0",
                "liquidationPx": None,
                "leverage": {"type": "isolated", "value": 40},
            },
        },
    ],
    "marginSummary": {"accountValue": "1000.0"},
}

FRONTEND_OPEN_ORDERS = [
    {
        "coin": "ETH", "side": "A", "limitPx": "2550.0", "sz": "1.0", "oid": 1,
        "timestamp": 1705000000000, "orderType": "Limit", "reduceOnly": True,
        "triggerPx": "0.0", "isTrigger": False, "tif": "Gtc",
    },
    {
        "coin": "ETH", "side": "A", "limitPx": "2400.0", "sz": "0.0", "oid": 2,
        "timestamp": 1705000000001, "orderType": "Stop Market", "reduceOnly": True,
        "triggerPx": "2450.0", "isTrigger": True, "isPositionTpsl": True,
    },
    {"coin": "ETH", "orderType": "Limit", "sz": "1.0"},  # missing limitPx
]


class FakeInfo:
    def __init__(self, responses=None, fail=False):
        self.responses = responses or {}
        self.fail = fail
        self.calls = []

    def post(self, path, payload):
        self.calls.append((path, payload))
        if self.fail:
            raise ConnectionError("network down")
        return self.responses[payload["type"]]


@pytest.fixture
def gateway():
    return HLPublicGateway(info=FakeInfo({
        "clearinghouseState": CLEARINGHOUSE_STATE,
        "frontendOpenOrders": FRONTEND_OPEN_ORDERS,
        "allMids": {"ETH": "2525.5", "BTC": "59800", "BAD": "n/a"},
    }))


@pytest.mark.anyio
async def test_positions_are_mapped_and_filtered(gateway):
    positions = await gateway.get_positions(TEST_USER)

    assert [p.coin for p in positions] == ["ETH", "BTC"]
    eth, btc = positions
    assert eth.signed_size == 2.0
    assert eth.entry_price == 2500.0
    assert eth.liquidation_price == 2010.5
    assert eth.margin_used == 200.0
    assert eth.leverage == 25
    assert btc.is_long is False
    assert btc.liquidation_price is None
    assert gateway.info.calls[0] == ("/info", {"type": "clearinghouseState", "user": TEST_USER})


@pytest.mark.anyio
async def test_orders_are_mapped(gateway):
    orders = await gateway.get_open_orders(TEST_USER)

    assert len(orders) == 2
    take_profit, stop = orders
    assert take_profit.is_take_profit
    assert take_profit.exit_price == 2550.0
    assert stop.is_stop_loss
    assert stop.exit_price == 2450.0
    assert stop.size == 0.0


@pytest.mark.anyio
async def test_mid_prices_skip_malformed(gateway):
    mids = await gateway.get_mid_prices()

    assert mids == {"ETH": 2525.5, "BTC": 59800.0}


@pytest.mark.anyio
async def test_failures():
    gateway = HLPublicGateway(info=FakeInfo(fail=True))

    with pytest.raises(DataSourceError):
        await gateway.get_positions(TEST_USER)
    assert await gateway.get_open_orders(TEST_USER) is None
    assert await gateway.get_mid_prices() == {}


@pytest.mark.anyio
async def test_invalid_address_rejected_before_any_call():
    gateway = HLPublicGateway(info=FakeInfo())

    with pytest.raises(InvalidAddressError):
        await gateway.get_positions("0x123")
    assert gateway.info.calls == []


@pytest.mark.parametrize("address", ["", "31ca8395cf837de08b24da3f660e77761dfb974b", "0xZZca8395cf837de08b24da3f660e77761dfb974b"])
def test_validate_address(address):
    with pytest.raises(InvalidAddressError):
        validate_address(address)


def test_validate_address_accepts_checksummed():
    assert validate_address("0x31CA8395cf837de08b24da3f660e77761dfb974B")


@pytest.mark.anyio
@pytest.mark.parametrize("body", [None, [], "error"])
async def test_unexpected_bodies(body):
    gateway = HLPublicGateway(info=FakeInfo({
        "clearinghouseState": body,
        "frontendOpenOrders": body if body != [] else {"orders": []},
        "allMids": body,
    }))

    with pytest.raises(DataSourceError):
        await gateway.get_positions(TEST_USER)
    assert await gateway.get_open_orders(TEST_USER) is None
    assert await gateway.get_mid_prices() == {}
