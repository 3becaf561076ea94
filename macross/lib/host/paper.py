"""In-memory simulated host for replays, tests and the evaluation service.

Implements the three host interfaces the strategy consumes over an OHLCV
DataFrame. Entries fill immediately at the current close; attached target
and stop orders are recorded as working orders but never triggered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Mapping, Sequence

import pandas as pd
from pydantic import BaseModel, Field

from macross.lib.enums import Direction, PriceField
from macross.lib.strategies.base import (
    BaseStrategy,
    CycleResult,
    MarketData,
    OrderGateway,
    OrderRequest,
    PositionReader,
    PositionSnapshot,
)

logger = logging.getLogger(__name__)

BAR_COLUMNS = ("o", "h", "l", "c", "v")


class OrderResult(IntEnum):
    """Negative result codes returned for entries the host refuses."""

    REJECTED_ONE_TRADE_PER_BAR = -1
    REJECTED_SAME_DIRECTION = -2
    REJECTED_OPPOSING_POSITION = -3
    REJECTED_MAX_POSITION = -4


class TradingPolicy(BaseModel):
    """Host-side trading rules applied to every entry the strategy submits."""

    model_config = {"frozen": True, "extra": "forbid"}

    max_position: int = Field(default=1, ge=1, description="Largest absolute net position allowed.")
    allow_multiple_entries_same_direction: bool = Field(
        default=False, description="Accept an entry in the direction of the open position."
    )
    allow_opposite_entry_with_opposing_position: bool = Field(
        default=False, description="Accept an entry against the open position without a prior flatten."
    )
    allow_only_one_trade_per_bar: bool = Field(
        default=True, description="Reject a second entry on the same bar."
    )
    cancel_all_orders_on_entries: bool = Field(
        default=True, description="Cancel working attached orders when a new entry fills."
    )


@dataclass(slots=True)
class HostAction:
    """One gateway call as seen by the host."""

    bar_index: int
    kind: str  # cancel_all | flatten | entry
    result_code: int
    direction: Direction | None = None
    quantity: int = 0
    price: float | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bar_index": self.bar_index,
            "kind": self.kind,
            "result_code": self.result_code,
            "direction": self.direction.value if self.direction else None,
            "quantity": self.quantity,
            "price": self.price,
        }


@dataclass(slots=True)
class WorkingOrder:
    direction: Direction
    order_type: str
    price: float
    quantity: int


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


class PaperHost(MarketData, PositionReader, OrderGateway):
    """Simulated bar stream, position book and order router."""

    def __init__(
        self,
        bars: pd.DataFrame,
        tick_size: float,
        policy: TradingPolicy | None = None,
        position: int = 0,
    ) -> None:
        """
        Args:
            bars: DataFrame with columns o, h, l, c, v in chronological order.
            tick_size: Minimum price increment of the instrument.
            policy: Entry rules; defaults to ``TradingPolicy()``.
            position: Signed starting position.

        Raises:
            ValueError: If columns are missing or ``tick_size`` is not positive.
        """
        missing = [col for col in BAR_COLUMNS if col not in bars.columns]
        if missing:
            raise ValueError(f"Bars are missing columns: {missing}")
        if not tick_size > 0:
            raise ValueError(f"tick_size must be positive, got {tick_size}")

        self._bars = bars[list(BAR_COLUMNS)].astype(float).sort_index()
        self._tick_size = float(tick_size)
        self.policy = policy or TradingPolicy()
        self._index = -1
        self._closed = False
        self._position = int(position)
        self._last_entry_bar: int | None = None
        self.working_orders: List[WorkingOrder] = []
        self.actions: List[HostAction] = []

    @classmethod
    def from_bars(
        cls,
        bars: Sequence[Mapping[str, Any]],
        tick_size: float,
        **kwargs: Any,
    ) -> "PaperHost":
        """Build a host from a sequence of bar mappings with o/h/l/c/v keys."""
        rows = [{col: bar[col] for col in BAR_COLUMNS} for bar in bars]
        frame = pd.DataFrame(rows, columns=list(BAR_COLUMNS), dtype=float)
        return cls(frame, tick_size, **kwargs)

    def __len__(self) -> int:
        return len(self._bars)

    # ------------------------------------------------------------------ #
    # Bar stream
    # ------------------------------------------------------------------ #
    def seek(self, index: int, closed: bool = True) -> None:
        """Position the stream on bar ``index``; ``closed`` marks its closing update."""
        if not 0 <= index < len(self._bars):
            raise IndexError(f"Bar index {index} out of range (0..{len(self._bars) - 1})")
        self._index = index
        self._closed = closed

    @property
    def bar_index(self) -> int:
        return self._index

    def bar_has_closed(self) -> bool:
        return self._closed

    def get_base_data(self, price_field: PriceField) -> pd.Series:
        if self._index < 0:
            raise RuntimeError("PaperHost is not positioned on a bar; call seek() first")
        window = self._bars.iloc[: self._index + 1]
        price_field = PriceField(price_field)
        if price_field == PriceField.OPEN:
            return window["o"]
        if price_field == PriceField.HIGH:
            return window["h"]
        if price_field == PriceField.LOW:
            return window["l"]
        if price_field == PriceField.LAST:
            return window["c"]
        if price_field == PriceField.VOLUME:
            return window["v"]
        if price_field == PriceField.HL_AVG:
            return (window["h"] + window["l"]) / 2
        if price_field == PriceField.HLC_AVG:
            return (window["h"] + window["l"] + window["c"]) / 3
        return (window["o"] + window["h"] + window["l"] + window["c"]) / 4

    def get_tick_size(self) -> float:
        return self._tick_size

    def _last_price(self) -> float:
        return float(self._bars["c"].iloc[self._index])

    # ------------------------------------------------------------------ #
    # Position book
    # ------------------------------------------------------------------ #
    def get_position(self) -> PositionSnapshot:
        return PositionSnapshot(signed_quantity=self._position)

    # ------------------------------------------------------------------ #
    # Order gateway
    # ------------------------------------------------------------------ #
    def cancel_all_orders(self) -> int:
        cancelled = len(self.working_orders)
        self.working_orders.clear()
        self.actions.append(HostAction(self._index, "cancel_all", cancelled))
        logger.debug("bar %d: cancelled %d working order(s)", self._index, cancelled)
        return cancelled

    def flatten_position(self) -> int:
        closed = abs(self._position)
        direction = None
        if self._position:
            direction = Direction.SELL if self._position > 0 else Direction.BUY
        self._position = 0
        self.actions.append(
            HostAction(self._index, "flatten", closed, direction, closed, self._last_price())
        )
        logger.debug("bar %d: flattened %d", self._index, closed)
        return closed

    def submit_entry(self, direction: Direction, request: OrderRequest) -> int:
        signed = request.quantity if direction == Direction.BUY else -request.quantity
        code = int(self._check_entry(signed))
        price = self._last_price()
        if code < 0:
            self.actions.append(
                HostAction(self._index, "entry", code, direction, request.quantity, price)
            )
            return code

        if self.policy.cancel_all_orders_on_entries:
            self.working_orders.clear()
        self._position += signed
        self._last_entry_bar = self._index
        self._attach_bracket(direction, request, price)
        self.actions.append(
            HostAction(self._index, "entry", request.quantity, direction, request.quantity, price)
        )
        return request.quantity

    def _check_entry(self, signed: int) -> int:
        policy = self.policy
        if policy.allow_only_one_trade_per_bar and self._last_entry_bar == self._index:
            return OrderResult.REJECTED_ONE_TRADE_PER_BAR
        current = _sign(self._position)
        if current and current == _sign(signed) and not policy.allow_multiple_entries_same_direction:
            return OrderResult.REJECTED_SAME_DIRECTION
        if current and current != _sign(signed) and not policy.allow_opposite_entry_with_opposing_position:
            return OrderResult.REJECTED_OPPOSING_POSITION
        if abs(self._position + signed) > policy.max_position:
            return OrderResult.REJECTED_MAX_POSITION
        return 0

    def _attach_bracket(self, direction: Direction, request: OrderRequest, price: float) -> None:
        exit_side = Direction.SELL if direction == Direction.BUY else Direction.BUY
        sign = 1 if direction == Direction.BUY else -1
        self.working_orders.append(
            WorkingOrder(exit_side, request.attached_target_type.value,
                         price + sign * request.target_offset, request.quantity)
        )
        self.working_orders.append(
            WorkingOrder(exit_side, request.attached_stop_type.value,
                         price - sign * request.stop_offset, request.quantity)
        )

    # ------------------------------------------------------------------ #
    # Driving a strategy
    # ------------------------------------------------------------------ #
    @property
    def entries(self) -> List[HostAction]:
        return [a for a in self.actions if a.kind == "entry"]

    def replay(self, strategy: BaseStrategy) -> List[CycleResult]:
        """Invoke ``strategy`` once intrabar and once on close for every bar."""
        results: List[CycleResult] = []
        for index in range(len(self._bars)):
            for closed in (False, True):
                self.seek(index, closed=closed)
                results.append(strategy.on_bar(self, self, self))
        logger.info(
            "Replayed %d bar(s) through %s: %d entr(y/ies), final position %+d",
            len(self._bars), strategy.name, len(self.entries), self._position,
        )
        return results
