"""Lightweight schema checks for bar input fed to the replay harness."""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Mapping, Sequence
import logging

import pandas as pd

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """Raised when bar input fails a dev harness check."""


REQUIRED_BAR_FIELDS = ("o", "h", "l", "c", "v")


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _ts_key(ts: object) -> float:
    if isinstance(ts, (int, float)) and not isinstance(ts, bool) and not math.isnan(ts):
        return float(ts)
    if isinstance(ts, (str, date, datetime, pd.Timestamp)):
        try:
            stamp = pd.Timestamp(ts)
        except ValueError:
            pass
        else:
            if stamp is not pd.NaT:
                if stamp.tzinfo is None:
                    stamp = stamp.tz_localize("UTC")
                return stamp.timestamp()
    raise ValidationError("Unsupported ts type; expected datetime/date/int/float/ISO string")


def validate_bar_schema(bar: Mapping[str, Any], strict: bool = True) -> None:
    """Validate a single OHLCV bar."""
    missing = [field for field in REQUIRED_BAR_FIELDS if field not in bar]
    if missing:
        raise ValidationError(f"Missing fields: {missing}")

    for price_field in ("o", "h", "l", "c"):
        value = bar[price_field]
        if not _is_number(value) or math.isnan(value) or math.isinf(float(value)):
            raise ValidationError(f"{price_field} must be a finite number")

    volume = bar["v"]
    if not _is_number(volume) or math.isnan(volume) or math.isinf(float(volume)):
        raise ValidationError("v must be a finite number")
    if strict and volume < 0:
        raise ValidationError("v must be non-negative in strict mode")

    if strict:
        high = float(bar["h"])
        low = float(bar["l"])
        if low > high:
            raise ValidationError("l must be <= h")
        for field in ("o", "c"):
            value = float(bar[field])
            if value < low or value > high:
                raise ValidationError(f"{field} out of [l, h] range")


def validate_bar_sequence(bars: Sequence[Mapping[str, Any]], strict: bool = True) -> None:
    """Validate a sequence of bars; when bars carry ``ts`` they must ascend."""
    prev_ts = None
    for bar in bars:
        validate_bar_schema(bar, strict=strict)
        if "ts" in bar and bar["ts"] is not None:
            ts_key = _ts_key(bar["ts"])
            if prev_ts is not None and ts_key < prev_ts:
                raise ValidationError("Bars must be sorted by ts ascending")
            prev_ts = ts_key
