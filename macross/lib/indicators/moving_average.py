"""Moving-average families and the provider that dispatches between them."""

from __future__ import annotations

import logging
import math
from importlib.metadata import entry_points
from typing import Callable, Dict

import numpy as np
import pandas as pd
from numpy.lib.stride_tricks import sliding_window_view

from macross.lib.enums import MovingAverageFamily, normalize_moving_average

logger = logging.getLogger(__name__)

# pure function of (series, period) -> series aligned to the input index
MovingAverageFn = Callable[[pd.Series, int], pd.Series]

# Centralized Moving Average Registry
_registry: Dict[MovingAverageFamily, MovingAverageFn] = {}


def _family_key(family: MovingAverageFamily | str) -> MovingAverageFamily:
    """Resolve a family or alias to its enum member (raise KeyError if unknown)."""
    if isinstance(family, MovingAverageFamily):
        return family
    try:
        return MovingAverageFamily(normalize_moving_average(family))
    except ValueError as exc:
        raise KeyError(f"Unknown moving average family '{family}'") from exc


def register_moving_average(family: MovingAverageFamily | str):
    """Decorator registering ``fn`` as the implementation for ``family``."""
    key = _family_key(family)

    def decorator(fn: MovingAverageFn) -> MovingAverageFn:
        _registry[key] = fn
        return fn
    return decorator


def load_moving_average(family: MovingAverageFamily | str) -> MovingAverageFn:
    """Return the implementation registered for ``family`` (raise KeyError if missing)."""
    key = _family_key(family)
    if key not in _registry:
        _autodiscover()
    return _registry[key]


def _autodiscover() -> None:
    """Load external implementations published under the entry-point group."""
    for ep in entry_points(group="macross.moving_averages"):
        try:
            key = _family_key(ep.name)
        except KeyError:
            logger.warning("Ignoring moving average entry point with unknown family: %s", ep.name)
            continue
        _registry.setdefault(key, ep.load())


def _weighted(series: pd.Series, period: int) -> pd.Series:
    """Linearly weighted average; a window holding NaN yields NaN like ``rolling``."""
    values = series.to_numpy(dtype=float)
    out = np.full(len(values), np.nan)
    if len(values) >= period:
        weights = np.arange(1, period + 1, dtype=float)
        out[period - 1:] = sliding_window_view(values, period) @ weights / weights.sum()
    return pd.Series(out, index=series.index, name=series.name)


@register_moving_average(MovingAverageFamily.SMA)
def simple_moving_average(series: pd.Series, period: int) -> pd.Series:
    return series.rolling(period).mean()


@register_moving_average(MovingAverageFamily.EMA)
def exponential_moving_average(series: pd.Series, period: int) -> pd.Series:
    return series.ewm(span=period, adjust=False).mean()


@register_moving_average(MovingAverageFamily.HULL)
def hull_moving_average(series: pd.Series, period: int) -> pd.Series:
    """WMA(2 * WMA(n/2) - WMA(n), sqrt(n))."""
    half = max(int(period / 2), 1)
    root = max(int(math.sqrt(period)), 1)
    raw = 2 * _weighted(series, half) - _weighted(series, period)
    return _weighted(raw, root)


@register_moving_average(MovingAverageFamily.ZLEMA)
def zero_lag_moving_average(series: pd.Series, period: int) -> pd.Series:
    """EMA of the series de-lagged by ``(period - 1) // 2`` samples."""
    lag = (period - 1) // 2
    delagged = 2 * series - series.shift(lag)
    return delagged.ewm(span=period, adjust=False, ignore_na=True).mean().where(delagged.notna())


class MovingAverageProvider:
    """Compute a named moving-average family over a price series.

    The engine treats this as a black box. Pass ``overrides`` to substitute
    any family without touching the global registry.
    """

    def __init__(self, overrides: Dict[MovingAverageFamily | str, MovingAverageFn] | None = None) -> None:
        self._overrides: Dict[MovingAverageFamily, MovingAverageFn] = {
            _family_key(family): fn for family, fn in (overrides or {}).items()
        }

    def compute(self, family: MovingAverageFamily | str, series: pd.Series, period: int) -> pd.Series:
        """Return the ``family`` average of ``series`` over ``period`` samples."""
        key = _family_key(family)
        fn = self._overrides.get(key) or load_moving_average(key)
        values = series.astype(float)
        if values.empty:
            return values
        return fn(values, period)
