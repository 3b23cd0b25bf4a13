from pydantic import BaseModel, ConfigDict, Field

# Percentages: 0.04 means 0.04%
DEFAULT_TAKER_FEE_PERCENT = 0.04
DEFAULT_MAKER_FEE_PERCENT = 0.012


class FeeSettings(BaseModel):
    """
    Exchange fee schedule. Entries are always charged as taker,
    take-profit exits as maker and stop-loss exits as taker.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    taker_fee_percent: float = Field(DEFAULT_TAKER_FEE_PERCENT, ge=0, alias="takerFee")
    maker_fee_percent: float = Field(DEFAULT_MAKER_FEE_PERCENT, ge=0, alias="makerFee")

    @property
    def taker_rate(self) -> float:
        return self.taker_fee_percent / 100

    @property
    def maker_rate(self) -> float:
        return self.maker_fee_percent / 100


DEFAULT_FEE_SETTINGS = FeeSettings()
