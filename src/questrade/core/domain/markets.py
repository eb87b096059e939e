"""Market resources: markets, quotes and candles."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field

from questrade.core.domain.models import ApiModel


class Interval(str, Enum):
    """Candle aggregation interval (`interval` query parameter)."""

    ONE_MINUTE = "OneMinute"
    TWO_MINUTES = "TwoMinutes"
    THREE_MINUTES = "ThreeMinutes"
    FOUR_MINUTES = "FourMinutes"
    FIVE_MINUTES = "FiveMinutes"
    TEN_MINUTES = "TenMinutes"
    FIFTEEN_MINUTES = "FifteenMinutes"
    TWENTY_MINUTES = "TwentyMinutes"
    HALF_HOUR = "HalfHour"
    ONE_HOUR = "OneHour"
    TWO_HOURS = "TwoHours"
    FOUR_HOURS = "FourHours"
    ONE_DAY = "OneDay"
    ONE_WEEK = "OneWeek"
    ONE_MONTH = "OneMonth"
    ONE_YEAR = "OneYear"


class Candle(ApiModel):
    start: datetime
    end: datetime
    low: float
    high: float
    open: float
    close: float
    volume: int


class Candles(ApiModel):
    candles: list[Candle]


class Quote(ApiModel):
    symbol: str
    symbol_id: int
    tier: str
    bid_price: float
    bid_size: int
    ask_price: float
    ask_size: int
    last_trade_price_trade_hours: float = Field(..., alias="lastTradePriceTrHrs")
    last_trade_price: float
    last_trade_size: int
    last_trade_tick: str
    last_trade_time: datetime
    volume: int
    open_price: float
    high_price: float
    low_price: float
    delay: int
    is_halted: bool


class Quotes(ApiModel):
    quotes: list[Quote]


class Market(ApiModel):
    name: str
    trading_venues: list[str]
    default_trading_venue: str
    primary_order_routes: list[str]
    secondary_order_routes: list[str]
    level_1_feeds: list[str] = Field(..., alias="level1Feeds")
    level_2_feeds: list[str] = Field(..., alias="level2Feeds")
    extended_start_time: datetime
    start_time: datetime
    end_time: datetime
    extended_end_time: datetime | None = None
    snap_quotes_limit: int


class Markets(ApiModel):
    markets: list[Market]
