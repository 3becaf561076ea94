from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Union

import pandas as pd
from pydantic import field_validator

from macross.lib.enums import (
    MOVING_AVERAGE_FAMILIES,
    PRICE_FIELDS,
    Crossover,
    Direction,
    MovingAverageFamily,
    PriceField,
    normalize_moving_average,
    normalize_price_field,
)
from macross.lib.indicators import MovingAverageProvider
from macross.lib.strategies.base import (
    BaseStrategy,
    CycleResult,
    MarketData,
    OrderGateway,
    OrderRequest,
    PositionReader,
    StrategyConfig,
)

logger = logging.getLogger(__name__)

DISPLAY_NAMES = {
    MovingAverageFamily.SMA: "SMA",
    MovingAverageFamily.EMA: "EMA",
    MovingAverageFamily.HULL: "Hull",
    MovingAverageFamily.ZLEMA: "ZLEMA",
}


class CrossoverConfig(StrategyConfig):
    """Configuration for the moving average crossover strategy."""

    family: str = StrategyConfig.option_field(
        options=list(MOVING_AVERAGE_FAMILIES),
        default=MovingAverageFamily.SMA.value,
        title="Moving Average Type",
        description="Moving average family used for both the faster and slower lines"
    )
    fast_period: int = StrategyConfig.int_field(
        default=9,
        min_value=1,
        title="Faster Period",
        description="Number of bars in the faster moving average"
    )
    slow_period: int = StrategyConfig.int_field(
        default=9,
        min_value=1,
        title="Slower Period",
        description="Number of bars in the slower moving average"
    )
    fast_input: str = StrategyConfig.option_field(
        options=list(PRICE_FIELDS),
        default=PriceField.LAST.value,
        title="Faster Input Data",
        description="Base price field feeding the faster moving average"
    )
    slow_input: str = StrategyConfig.option_field(
        options=list(PRICE_FIELDS),
        default=PriceField.LAST.value,
        title="Slower Input Data",
        description="Base price field feeding the slower moving average"
    )
    target_ticks: int = StrategyConfig.int_field(
        default=80,
        min_value=0,
        title="Target Value in Ticks",
        description="Distance of the attached limit target from entry, in ticks"
    )
    stop_ticks: int = StrategyConfig.int_field(
        default=80,
        min_value=0,
        title="Stop Value in Ticks",
        description="Distance of the attached trailing stop from entry, in ticks"
    )
    quantity: int = StrategyConfig.int_field(
        default=1,
        min_value=1,
        title="Order Quantity",
        description="Contracts per entry order"
    )

    @field_validator("family", mode="before")
    @classmethod
    def _normalize_family(cls, value: Any) -> Any:
        return normalize_moving_average(value) if isinstance(value, str) else value

    @field_validator("fast_input", "slow_input", mode="before")
    @classmethod
    def _normalize_input(cls, value: Any) -> Any:
        return normalize_price_field(value) if isinstance(value, str) else value

    @property
    def ma_family(self) -> MovingAverageFamily:
        return MovingAverageFamily(self.family)

    @property
    def fast_field(self) -> PriceField:
        return PriceField(self.fast_input)

    @property
    def slow_field(self) -> PriceField:
        return PriceField(self.slow_input)


def detect_crossover(
    prev_fast: float, prev_slow: float, cur_fast: float, cur_slow: float
) -> Crossover:
    """Classify the move of ``fast`` relative to ``slow`` between two samples.

    Equality on one side is not a cross by itself; the current sample must be
    strictly on the other side.
    """
    if any(math.isnan(v) for v in (prev_fast, prev_slow, cur_fast, cur_slow)):
        return Crossover.NONE
    if prev_fast <= prev_slow and cur_fast > cur_slow:
        return Crossover.UP
    if prev_fast >= prev_slow and cur_fast < cur_slow:
        return Crossover.DOWN
    return Crossover.NONE


def detect_series_crossover(
    fast: Union[pd.Series, Sequence[float]], slow: Union[pd.Series, Sequence[float]]
) -> Crossover:
    """Run ``detect_crossover`` on the last two samples of each series."""
    fast_values = list(fast.iloc[-2:]) if isinstance(fast, pd.Series) else list(fast)[-2:]
    slow_values = list(slow.iloc[-2:]) if isinstance(slow, pd.Series) else list(slow)[-2:]
    if len(fast_values) < 2 or len(slow_values) < 2:
        logger.debug("Insufficient history for crossover (fast=%d, slow=%d)", len(fast_values), len(slow_values))
        return Crossover.NONE
    return detect_crossover(
        float(fast_values[0]), float(slow_values[0]), float(fast_values[1]), float(slow_values[1])
    )


@dataclass(slots=True, frozen=True)
class GateDecision:
    must_flatten_first: bool


def reconcile_position(current_quantity: int, proposed: Direction) -> GateDecision:
    """Decide whether an opposing position must be flattened before entering."""
    if proposed == Direction.BUY:
        return GateDecision(must_flatten_first=current_quantity < 0)
    return GateDecision(must_flatten_first=current_quantity > 0)


class OrderIssuer:
    """Build bracket entries from config and hand them to the host gateway."""

    def __init__(self, gateway: OrderGateway, tick_size: float) -> None:
        self._gateway = gateway
        self._tick_size = tick_size
        self.last_request: OrderRequest | None = None

    def build_request(self, direction: Direction, config: CrossoverConfig) -> OrderRequest:
        return OrderRequest(
            direction=direction,
            quantity=config.quantity,
            target_offset=config.target_ticks * self._tick_size,
            stop_offset=config.stop_ticks * self._tick_size,
        )

    def submit(self, direction: Direction, config: CrossoverConfig) -> int:
        """Submit exactly one entry and return the host's result code unchanged."""
        request = self.build_request(direction, config)
        self.last_request = request
        return int(self._gateway.submit_entry(direction, request))


class CrossoverStrategy(BaseStrategy):
    """
    Moving average crossover with bracket entries.

    Each invocation recomputes both averages, and only on the update that
    closes a bar does it look for a cross. A cross up buys, a cross down
    sells; an opposing open position is cancelled and flattened first.
    """

    ConfigModel = CrossoverConfig

    def __init__(
        self,
        config: Optional[Union[Dict[str, Any], CrossoverConfig]] = None,
        provider: MovingAverageProvider | None = None,
    ):
        super().__init__(config)
        self.provider = provider or MovingAverageProvider()
        self.fast_values: pd.Series = pd.Series(dtype=float)
        self.slow_values: pd.Series = pd.Series(dtype=float)

    @property
    def name(self) -> str:
        return f"{DISPLAY_NAMES[self.config.ma_family]} Crossover Strategy"

    @property
    def lookback(self) -> int:
        return max(self.config.fast_period, self.config.slow_period) + 1

    def _on_bar(
        self,
        market: MarketData,
        positions: PositionReader,
        orders: OrderGateway,
    ) -> CycleResult:
        cfg: CrossoverConfig = self.config  # type: ignore[assignment]

        # Averages are refreshed on every update so history stays current
        self.fast_values = self.provider.compute(
            cfg.ma_family, market.get_base_data(cfg.fast_field), cfg.fast_period
        )
        self.slow_values = self.provider.compute(
            cfg.ma_family, market.get_base_data(cfg.slow_field), cfg.slow_period
        )

        bar_index = market.bar_index
        if not market.bar_has_closed():
            return CycleResult.skipped(bar_index, reason="bar not closed")

        position = positions.get_position()
        crossover = detect_series_crossover(self.fast_values, self.slow_values)
        result = CycleResult(bar_index=bar_index, bar_closed=True, crossover=crossover)

        if crossover == Crossover.UP:
            self._enter(Direction.BUY, position.signed_quantity, market, orders, result)

        if crossover == Crossover.DOWN:
            self._enter(Direction.SELL, position.signed_quantity, market, orders, result)

        return result

    def _enter(
        self,
        direction: Direction,
        current_quantity: int,
        market: MarketData,
        orders: OrderGateway,
        result: CycleResult,
    ) -> None:
        cfg: CrossoverConfig = self.config  # type: ignore[assignment]
        logger.info(
            "%s bar %d: cross %s, position %+d",
            self.name, result.bar_index, result.crossover.value, current_quantity,
        )

        if reconcile_position(current_quantity, direction).must_flatten_first:
            orders.cancel_all_orders()
            orders.flatten_position()
            result.flattened = True

        issuer = OrderIssuer(orders, market.get_tick_size())
        result.result_code = issuer.submit(direction, cfg)
        result.order = issuer.last_request
        if result.result_code < 0:
            # Not compensated; the next cycle re-reads the position
            logger.warning(
                "%s bar %d: %s entry rejected by host (code %d)",
                self.name, result.bar_index, direction.value, result.result_code,
            )
