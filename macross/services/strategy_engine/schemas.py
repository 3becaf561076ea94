from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class StrategyValidateRequest(BaseModel):
    """Configuration payload to check against the strategy schema."""

    config: Dict[str, Any] = Field(default_factory=dict, description="CrossoverConfig fields; omitted fields take defaults.")


class StrategyValidateResponse(BaseModel):
    status: str = Field(..., description="Validation outcome.")
    strategy_name: str = Field(..., description="Display name resolved from the moving average family.")
    lookback: int = Field(..., description="Bars of history the configuration needs.")
    config: Dict[str, Any] = Field(..., description="Validated configuration with defaults applied.")


class BarIn(BaseModel):
    """Single OHLCV bar."""
    o: float = Field(..., description="Open price")
    h: float = Field(..., description="High price")
    l: float = Field(..., description="Low price")
    c: float = Field(..., description="Close (last) price")
    v: float = Field(default=0.0, description="Volume")


class EvaluateRequest(BaseModel):
    """One strategy cycle evaluated against a posted snapshot of host state."""

    config: Dict[str, Any] = Field(default_factory=dict, description="CrossoverConfig fields.")
    bars: List[BarIn] = Field(..., min_length=1, description="Bars up to and including the current one, oldest first.")
    bar_closed: bool = Field(default=True, description="Whether this update closes the last bar.")
    position: int = Field(default=0, description="Signed net position before the cycle.")
    tick_size: float = Field(..., gt=0, description="Instrument tick size.")
    policy: Optional[Dict[str, Any]] = Field(default=None, description="TradingPolicy overrides.")


class HostActionOut(BaseModel):
    bar_index: int
    kind: str
    result_code: int
    direction: Optional[str] = None
    quantity: int = 0
    price: Optional[float] = None


class EvaluateResponse(BaseModel):
    strategy_name: str
    bar_index: int
    bar_closed: bool
    crossover: str = Field(..., description="none, up or down")
    flattened: bool = Field(..., description="Whether an opposing position was cancelled and flattened first.")
    order: Optional[Dict[str, Any]] = Field(default=None, description="Entry order submitted this cycle, if any.")
    result_code: int = Field(..., description="Host result code of the entry (0 when nothing was submitted).")
    position: int = Field(..., description="Signed position after the cycle.")
    actions: List[HostActionOut] = Field(default_factory=list)
