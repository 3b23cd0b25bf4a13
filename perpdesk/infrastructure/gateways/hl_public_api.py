import asyncio
import logging
import re
from typing import Any, Dict, List, Optional

from hyperliquid.info import Info
from hyperliquid.utils import constants
from pydantic import ValidationError

from perpdesk.core.interfaces.datasource import IAccountDataSource
from perpdesk.core.entities.order import Order
from perpdesk.core.entities.position import Position
from perpdesk.core.errors import DataSourceError, InvalidAddressError

logger = logging.getLogger(__name__)

ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def validate_address(user: str) -> str:
    if not ADDRESS_RE.match(user or ""):
        raise InvalidAddressError(f"Invalid wallet address: {user!r}")
    return user


class HLPublicGateway(IAccountDataSource):
    """
    Implementation of IAccountDataSource for the Hyperliquid Public Info API.
    Uses the official Python SDK wrapped in asyncio threads for non-blocking execution.
    """

    def __init__(self, use_testnet: bool = False, info: Optional[Any] = None):
        """
        :param use_testnet: Boolean to toggle between Mainnet and Testnet.
        :param info: Pre-built Info client (tests inject a fake here).
        """
        if info is None:
            api_url = constants.TESTNET_API_URL if use_testnet else constants.MAINNET_API_URL
            # Only REST endpoints are needed; no background WS threads
            info = Info(base_url=api_url, skip_ws=True)
            logger.info(f"HLPublicGateway initialized. URL: {api_url}")
        self.info = info

    async def _post(self, payload: dict) -> Any:
        # The SDK is synchronous, so we run it in a separate thread to stay async
        return await asyncio.to_thread(self.info.post, "/info", payload)

    async def get_positions(self, user: str) -> List[Position]:
        """
        Fetches open perp positions from 'clearinghouseState'.
        """
        validate_address(user)
        try:
            state = await self._post({"type": "clearinghouseState", "user": user})
            if not isinstance(state, dict):
                raise TypeError(f"unexpected clearinghouseState body: {type(state).__name__}")
        except Exception as e:
            logger.error(f"Failed to fetch positions for {user}: {e}")
            raise DataSourceError(f"clearinghouseState unavailable for {user}") from e

        return self._map_positions(state.get("assetPositions", []))

    def _map_positions(self, asset_positions: List[dict]) -> List[Position]:
        positions = []
        for asset_pos in asset_positions:
            pos = asset_pos.get("position", {})
            try:
                if float(pos.get("szi", 0)) == 0:
                    continue
                entry_px = float(pos.get("entryPx") or 0)
                if entry_px <= 0:
                    logger.warning(f"Skipping {pos.get('coin')} position without entry price")
                    continue
                leverage = pos.get("leverage") or {}
                positions.append(Position(
                    coin=pos.get("coin"),
                    signed_size=pos.get("szi"),
                    entry_price=entry_px,
                    unrealized_pnl=pos.get("unrealizedPnl"),
                    margin_used=pos.get("marginUsed"),
                    liquidation_price=pos.get("liquidationPx"),
                    return_on_equity=pos.get("returnOnEquity"),
                    leverage=leverage.get("value") if isinstance(leverage, dict) else None,
                ))
            except (ValidationError, TypeError, ValueError) as map_err:
                logger.warning(f"Skipping malformed position: {map_err}")
                continue
        return positions

    async def get_open_orders(self, user: str) -> Optional[List[Order]]:
        """
        Fetches resting orders from 'frontendOpenOrders', which carries
        orderType, triggerPx and reduceOnly.
        """
        validate_address(user)
        try:
            raw_orders = await self._post({"type": "frontendOpenOrders", "user": user})
            if not isinstance(raw_orders, list):
                raise TypeError(f"unexpected frontendOpenOrders body: {type(raw_orders).__name__}")
        except Exception as e:
            # Analysis still works without orders
            logger.warning(f"Failed to fetch orders for {user}: {e}")
            return None

        orders = []
        for raw in raw_orders:
            try:
                orders.append(Order.model_validate(raw))
            except ValidationError as map_err:
                logger.warning(f"Skipping malformed order: {map_err}")
                continue
        return orders

    async def get_mid_prices(self) -> Dict[str, float]:
        try:
            mids = await self._post({"type": "allMids"})
            if not isinstance(mids, dict):
                raise TypeError(f"unexpected allMids body: {type(mids).__name__}")
        except Exception as e:
            logger.error(f"Failed to fetch mid prices: {e}")
            return {}

        prices = {}
        for coin, px in mids.items():
            try:
                prices[coin] = float(px)
            except (TypeError, ValueError):
                logger.warning(f"Skipping malformed mid for {coin}: {px!r}")
        return prices
