import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

# --- Imports ---
from perpdesk.config import Settings, get_settings
from perpdesk.core.entities.analysis import ExpectedPnLResult, PositionAnalysisResult
from perpdesk.core.entities.fees import FeeSettings
from perpdesk.core.entities.order import Order
from perpdesk.core.entities.position import LivePnLSummary, Position
from perpdesk.core.errors import DataSourceError, InvalidAddressError, InvalidOrderError, InvalidPositionError
from perpdesk.core.interfaces.datasource import IAccountDataSource
from perpdesk.core.use_cases.expected_pnl import summarize_expected_pnl
from perpdesk.core.use_cases.pnl_calculator import calculate_live_pnl, live_price
from perpdesk.core.use_cases.position_analysis import calculate_position_analysis
from perpdesk.infrastructure.cache.redis_service import RedisService, content_key
from perpdesk.infrastructure.gateways.hl_public_api import HLPublicGateway
from perpdesk.infrastructure.gateways.local_mock import StaticAccountSource

# Setup Logging
logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger("PerpDesk")

app = FastAPI(title="PerpDesk API", version="0.1.0", description="Position risk and PnL analysis for Hyperliquid perps")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class AnalysisRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    positions: List[Position]
    orders: Optional[List[Order]] = None
    fee_settings: Optional[FeeSettings] = Field(None, alias="feeSettings")


# --- Dependency Injection ---

@lru_cache
def _build_datasource(data_source: str, use_testnet: bool) -> IAccountDataSource:
    if data_source == "static":
        logger.info("Using static demo account data")
        return StaticAccountSource.demo()
    return HLPublicGateway(use_testnet=use_testnet)


def get_datasource(settings: Settings = Depends(get_settings)) -> IAccountDataSource:
    return _build_datasource(settings.data_source, settings.use_testnet)


@lru_cache
def _build_cache(redis_url: Optional[str]) -> RedisService:
    return RedisService(redis_url)


def get_cache(settings: Settings = Depends(get_settings)) -> RedisService:
    return _build_cache(settings.redis_url)


def resolve_fees(
    takerFee: Optional[float] = Query(None, ge=0, description="Taker fee in percent, e.g. 0.04"),
    makerFee: Optional[float] = Query(None, ge=0, description="Maker fee in percent, e.g. 0.012"),
    settings: Settings = Depends(get_settings),
) -> FeeSettings:
    return FeeSettings(
        taker_fee_percent=takerFee if takerFee is not None else settings.taker_fee_percent,
        maker_fee_percent=makerFee if makerFee is not None else settings.maker_fee_percent,
    )


# --- Helpers ---

def _analyze(
    positions: List[Position],
    orders: Optional[List[Order]],
    fees: FeeSettings,
    cache: RedisService,
    ttl_seconds: int,
    current_prices: Optional[dict] = None,
) -> PositionAnalysisResult:
    key = content_key("analysis", positions, orders, fees, current_prices or {})
    cached = cache.get(key)
    if cached is not None:
        return PositionAnalysisResult.model_validate(cached)

    try:
        result = calculate_position_analysis(positions, orders, fees, current_prices)
    except (InvalidPositionError, InvalidOrderError) as e:
        raise HTTPException(status_code=422, detail=str(e))

    cache.set(key, result, ttl_seconds)
    return result


async def _load_account(gateway: IAccountDataSource, user: str):
    try:
        positions = await gateway.get_positions(user)
    except InvalidAddressError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DataSourceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    orders = await gateway.get_open_orders(user)
    return positions, orders


# --- Endpoints ---

@app.get("/health")
async def health(settings: Settings = Depends(get_settings)):
    return {"status": "healthy", "dataSource": settings.data_source}


@app.post("/v1/analysis", response_model=PositionAnalysisResult)
async def analyze(
    request: AnalysisRequest,
    settings: Settings = Depends(get_settings),
    cache: RedisService = Depends(get_cache),
):
    """
    Stateless analysis of caller-supplied positions and orders.
    """
    fees = request.fee_settings or settings.fee_settings
    return _analyze(request.positions, request.orders, fees, cache, settings.cache_ttl_seconds)


@app.get("/v1/analysis", response_model=PositionAnalysisResult)
async def analyze_account(
    user: str = Query(..., description="User wallet address"),
    fees: FeeSettings = Depends(resolve_fees),
    gateway: IAccountDataSource = Depends(get_datasource),
    cache: RedisService = Depends(get_cache),
    settings: Settings = Depends(get_settings),
):
    """
    Fetches the account's positions, open orders and mids, then analyzes them.
    """
    positions, orders = await _load_account(gateway, user)
    mids = await gateway.get_mid_prices()
    current_prices = {}
    for p in positions:
        price = live_price(mids, p.coin)
        if price is not None:
            current_prices[p.coin] = price
    return _analyze(positions, orders, fees, cache, settings.cache_ttl_seconds, current_prices)


@app.get("/v1/expected-pnl", response_model=ExpectedPnLResult)
async def expected_pnl(
    user: str = Query(..., description="User wallet address"),
    fees: FeeSettings = Depends(resolve_fees),
    gateway: IAccountDataSource = Depends(get_datasource),
    cache: RedisService = Depends(get_cache),
    settings: Settings = Depends(get_settings),
):
    positions, orders = await _load_account(gateway, user)
    result = _analyze(positions, orders, fees, cache, settings.cache_ttl_seconds)
    return summarize_expected_pnl(result)


@app.get("/v1/pnl/live", response_model=LivePnLSummary)
async def live_pnl(
    user: str = Query(..., description="User wallet address"),
    gateway: IAccountDataSource = Depends(get_datasource),
):
    """
    Unrealized PnL marked to current mids; falls back to exchange-reported values.
    """
    positions, _ = await _load_account(gateway, user)
    mids = await gateway.get_mid_prices()
    return calculate_live_pnl(positions, mids)
