"""Crossover strategy engine and the host interfaces it runs against."""

from .base import (  # noqa: F401
    BaseStrategy,
    CycleResult,
    MarketData,
    OrderGateway,
    OrderRequest,
    PositionReader,
    PositionSnapshot,
    StrategyConfig,
)
from .crossover import (  # noqa: F401
    CrossoverConfig,
    CrossoverStrategy,
    GateDecision,
    OrderIssuer,
    detect_crossover,
    detect_series_crossover,
    reconcile_position,
)

__all__ = [
    "BaseStrategy",
    "StrategyConfig",
    "CycleResult",
    "MarketData",
    "PositionReader",
    "OrderGateway",
    "OrderRequest",
    "PositionSnapshot",
    "CrossoverConfig",
    "CrossoverStrategy",
    "GateDecision",
    "OrderIssuer",
    "detect_crossover",
    "detect_series_crossover",
    "reconcile_position",
]
