"""Shared pytest fixtures for macross tests."""
from typing import Dict, List, Sequence

import pandas as pd
import pytest

from macross.lib.enums import Direction, MovingAverageFamily, PriceField
from macross.lib.indicators import MovingAverageProvider
from macross.lib.strategies import (
    MarketData,
    OrderGateway,
    OrderRequest,
    PositionReader,
    PositionSnapshot,
)


class RecordingHost(MarketData, PositionReader, OrderGateway):
    """Host double that serves fixed series and records every call in order."""

    def __init__(
        self,
        series: Dict[PriceField, Sequence[float]],
        closed: bool = True,
        position: int = 0,
        tick_size: float = 0.25,
        submit_result: int = 1,
    ) -> None:
        self.series = {k: pd.Series(list(v), dtype=float) for k, v in series.items()}
        self.closed = closed
        self.position = position
        self.tick_size = tick_size
        self.submit_result = submit_result
        self.calls: List[str] = []
        self.submitted: List[tuple] = []

    @property
    def bar_index(self) -> int:
        return max(len(s) for s in self.series.values()) - 1

    def bar_has_closed(self) -> bool:
        return self.closed

    def get_base_data(self, price_field: PriceField) -> pd.Series:
        return self.series[PriceField(price_field)]

    def get_tick_size(self) -> float:
        return self.tick_size

    def get_position(self) -> PositionSnapshot:
        self.calls.append("get_position")
        return PositionSnapshot(self.position)

    def cancel_all_orders(self) -> int:
        self.calls.append("cancel_all_orders")
        return 0

    def flatten_position(self) -> int:
        self.calls.append("flatten_position")
        return abs(self.position)

    def submit_entry(self, direction: Direction, request: OrderRequest) -> int:
        self.calls.append(f"submit_entry:{direction.value}")
        self.submitted.append((direction, request))
        return self.submit_result


@pytest.fixture
def identity_provider() -> MovingAverageProvider:
    """Provider whose SMA returns its input, so tests control the averages directly."""
    return MovingAverageProvider(overrides={MovingAverageFamily.SMA: lambda series, period: series})


@pytest.fixture
def crossing_config() -> dict:
    """Fast line fed from OPEN, slow line from LAST."""
    return {"family": "sma", "fast_input": "open", "slow_input": "last"}


def make_bars(closes: Sequence[float], volume: float = 100.0) -> List[dict]:
    """Flat-bodied bars (open == close) one point either side."""
    return [{"o": c, "h": c + 1, "l": c - 1, "c": c, "v": volume} for c in closes]


@pytest.fixture
def bars_factory():
    return make_bars


@pytest.fixture
def host_factory():
    """Build a RecordingHost: ``host_factory({PriceField.LAST: [...]}, closed=True, position=0)``."""
    return RecordingHost
