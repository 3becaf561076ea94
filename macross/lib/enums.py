"""Enum definitions shared by the strategy engine, host adapters and services."""
from __future__ import annotations
from enum import Enum

class MovingAverageFamily(str, Enum):
    SMA = 'sma'
    EMA = 'ema'
    HULL = 'hull'
    ZLEMA = 'zlema'

class PriceField(str, Enum):
    OPEN = 'open'
    HIGH = 'high'
    LOW = 'low'
    LAST = 'last'
    VOLUME = 'volume'
    HL_AVG = 'hl_avg'
    HLC_AVG = 'hlc_avg'
    OHLC_AVG = 'ohlc_avg'

class Direction(str, Enum):
    BUY = 'buy'
    SELL = 'sell'

class Crossover(str, Enum):
    NONE = 'none'
    UP = 'up'        # fast crossed from below
    DOWN = 'down'    # fast crossed from above

class OrderType(str, Enum):
    MARKET = 'market'
    LIMIT = 'limit'
    STOP = 'stop'
    TRAILING_STOP = 'trailing_stop'

class TimeInForce(str, Enum):
    DAY = 'day'
    GOOD_TILL_CANCELED = 'gtc'
    IMMEDIATE_OR_CANCEL = 'ioc'

MOVING_AVERAGE_FAMILIES = tuple(e.value for e in MovingAverageFamily)
PRICE_FIELDS = tuple(e.value for e in PriceField)

MOVING_AVERAGE_ALIAS_MAP = {
    "simple": "sma",
    "exponential": "ema",
    "hma": "hull",
    "hull_ma": "hull",
    "zero_lag": "zlema",
    "zero_lag_ema": "zlema",
}
PRICE_FIELD_ALIAS_MAP = {
    "close": "last",
    "c": "last",
    "o": "open",
    "h": "high",
    "l": "low",
    "v": "volume",
    "hl2": "hl_avg",
    "hlc3": "hlc_avg",
    "ohlc4": "ohlc_avg",
}
MOVING_AVERAGE_CANONICAL_MAP = {k.lower(): k for k in MOVING_AVERAGE_FAMILIES}
PRICE_FIELD_CANONICAL_MAP = {k.lower(): k for k in PRICE_FIELDS}

def _normalize(value: str | None, aliases: dict[str, str], canonical_map: dict[str, str]) -> str | None:
    if value is None:
        return None
    v = value.strip()
    if not v:
        return None
    v_lower = v.lower()
    if v_lower in aliases:
        return aliases[v_lower]
    if v_lower in canonical_map:
        return canonical_map[v_lower]
    return v_lower  # leave as-is; caller may decide to reject

def normalize_moving_average(value: str | None) -> str | None:
    return _normalize(value, MOVING_AVERAGE_ALIAS_MAP, MOVING_AVERAGE_CANONICAL_MAP)

def normalize_price_field(value: str | None) -> str | None:
    return _normalize(value, PRICE_FIELD_ALIAS_MAP, PRICE_FIELD_CANONICAL_MAP)
