from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

PRECISION = 10**18
BPS_DENOMINATOR = 10_000


class CurveParams(BaseModel):
    """Immutable pricing parameters of one launch (fixed-point, scale PRECISION)."""

    model_config = ConfigDict(frozen=True)

    initial_price: int
    price_increment: int = 0
    total_supply: int
    graduation_threshold: int
    creator_fee_bps: int = 0
    platform_fee_bps: int = 0
    enable_sell: bool = True

    @field_validator("initial_price", "total_supply", "graduation_threshold")
    @classmethod
    def positive(cls, v, info):
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("price_increment")
    @classmethod
    def non_negative_increment(cls, v):
        if v < 0:
            raise ValueError("price_increment must be >= 0")
        return v

    @field_validator("creator_fee_bps", "platform_fee_bps")
    @classmethod
    def bps_range(cls, v, info):
        if v < 0 or v > BPS_DENOMINATOR:
            raise ValueError(f"{info.field_name} must be between 0 and {BPS_DENOMINATOR}")
        return v

    @model_validator(mode="after")
    def fee_sum(self):
        if self.creator_fee_bps + self.platform_fee_bps > BPS_DENOMINATOR:
            raise ValueError(
                f"creator_fee_bps + platform_fee_bps must be <= {BPS_DENOMINATOR}, "
                f"got {self.creator_fee_bps + self.platform_fee_bps}"
            )
        return self

    @property
    def total_fee_bps(self) -> int:
        return self.creator_fee_bps + self.platform_fee_bps


class LaunchCreateInput(BaseModel):
    name: str
    symbol: str
    total_supply: int
    initial_price: int
    price_increment: int = 0
    graduation_threshold: int
    enable_sell: bool = True
    creator: str

    @field_validator("name", "symbol", "creator")
    @classmethod
    def non_blank(cls, v, info):
        vv = str(v).strip()
        if not vv:
            raise ValueError(f"{info.field_name} must not be empty")
        return vv


class BuyInput(BaseModel):
    buyer: str
    payment: int
    min_tokens_out: int = 0

    @field_validator("payment")
    @classmethod
    def payment_positive(cls, v):
        if v <= 0:
            raise ValueError("payment must be > 0")
        return v

    @field_validator("min_tokens_out")
    @classmethod
    def min_non_negative(cls, v):
        if v < 0:
            raise ValueError("min_tokens_out must be >= 0")
        return v


class SellInput(BaseModel):
    seller: str
    token_amount: int
    min_payment_out: int = 0

    @field_validator("token_amount")
    @classmethod
    def amount_positive(cls, v):
        if v <= 0:
            raise ValueError("token_amount must be > 0")
        return v

    @field_validator("min_payment_out")
    @classmethod
    def min_non_negative(cls, v):
        if v < 0:
            raise ValueError("min_payment_out must be >= 0")
        return v


class FeeUpdateInput(BaseModel):
    creator_fee_bps: int
    platform_fee_bps: int


class SimulationInput(BaseModel):
    total_supply: int
    initial_price: int
    price_increment: int = 0
    graduation_threshold: int
    enable_sell: bool = True
    creator_fee_bps: int = 50
    platform_fee_bps: int = 100

    num_simulations: int = 200
    max_trades: int = 500
    num_traders: int = 50

    # Buy size is lognormal in whole payment units (scaled by PRECISION when executed)
    buy_size_median: float = 0.5
    buy_size_sigma: float = 1.0

    # Chance that a step is a sell attempt; sells take a uniform share of the holder's curve balance
    sell_probability: float = 0.25

    random_seed: Optional[int] = None

    @field_validator("initial_price", "total_supply", "graduation_threshold")
    @classmethod
    def positive(cls, v, info):
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("price_increment")
    @classmethod
    def non_negative_increment(cls, v):
        if v < 0:
            raise ValueError("price_increment must be >= 0")
        return v

    @field_validator("creator_fee_bps", "platform_fee_bps")
    @classmethod
    def bps_range(cls, v, info):
        if v < 0 or v > BPS_DENOMINATOR:
            raise ValueError(f"{info.field_name} must be between 0 and {BPS_DENOMINATOR}")
        return v

    @field_validator("num_simulations")
    @classmethod
    def sim_range(cls, v):
        if v < 1 or v > 2000:
            raise ValueError("num_simulations must be between 1 and 2000")
        return v

    @field_validator("max_trades")
    @classmethod
    def trades_range(cls, v):
        if v < 1 or v > 5000:
            raise ValueError("max_trades must be between 1 and 5000")
        return v

    @field_validator("num_traders")
    @classmethod
    def traders_range(cls, v):
        if v < 1 or v > 1000:
            raise ValueError("num_traders must be between 1 and 1000")
        return v

    @field_validator("buy_size_median", "buy_size_sigma")
    @classmethod
    def positive_floats(cls, v, info):
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("sell_probability")
    @classmethod
    def probability_range(cls, v):
        if v < 0 or v > 1:
            raise ValueError("sell_probability must be in [0, 1]")
        return v

    @model_validator(mode="after")
    def fee_sum(self):
        if self.creator_fee_bps + self.platform_fee_bps > BPS_DENOMINATOR:
            raise ValueError(f"creator_fee_bps + platform_fee_bps must be <= {BPS_DENOMINATOR}")
        return self

    def curve_params(self) -> CurveParams:
        return CurveParams(
            initial_price=self.initial_price,
            price_increment=self.price_increment,
            total_supply=self.total_supply,
            graduation_threshold=self.graduation_threshold,
            creator_fee_bps=self.creator_fee_bps,
            platform_fee_bps=self.platform_fee_bps,
            enable_sell=self.enable_sell,
        )
