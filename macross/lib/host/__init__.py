"""Host adapters implementing the strategy's market, position and order interfaces."""

from .paper import (  # noqa: F401
    BAR_COLUMNS,
    HostAction,
    OrderResult,
    PaperHost,
    TradingPolicy,
    WorkingOrder,
)

__all__ = [
    "BAR_COLUMNS",
    "HostAction",
    "OrderResult",
    "PaperHost",
    "TradingPolicy",
    "WorkingOrder",
]
