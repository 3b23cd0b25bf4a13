import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from perpdesk.core.entities.fees import DEFAULT_MAKER_FEE_PERCENT, DEFAULT_TAKER_FEE_PERCENT, FeeSettings


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    taker_fee_percent: float = DEFAULT_TAKER_FEE_PERCENT
    maker_fee_percent: float = DEFAULT_MAKER_FEE_PERCENT
    use_testnet: bool = False
    redis_url: Optional[str] = None
    cache_ttl_seconds: int = 15
    data_source: str = "hyperliquid"  # or "static"
    log_level: str = "INFO"

    @property
    def fee_settings(self) -> FeeSettings:
        return FeeSettings(
            taker_fee_percent=self.taker_fee_percent,
            maker_fee_percent=self.maker_fee_percent,
        )

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            taker_fee_percent=_env_float("PERPDESK_TAKER_FEE_PERCENT", DEFAULT_TAKER_FEE_PERCENT),
            maker_fee_percent=_env_float("PERPDESK_MAKER_FEE_PERCENT", DEFAULT_MAKER_FEE_PERCENT),
            use_testnet=_env_bool("HYPERLIQUID_TESTNET"),
            redis_url=os.getenv("REDIS_URL") or None,
            cache_ttl_seconds=int(_env_float("PERPDESK_CACHE_TTL_SECONDS", 15)),
            data_source=os.getenv("PERPDESK_DATA_SOURCE", "hyperliquid").lower(),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
