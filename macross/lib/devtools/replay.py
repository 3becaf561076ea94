"""Dev harness replaying recorded bars through the crossover strategy."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence
import logging

from macross.lib.host import HostAction, PaperHost, TradingPolicy
from macross.lib.indicators import MovingAverageProvider
from macross.lib.strategies import CrossoverConfig, CrossoverStrategy, CycleResult

from . import validation
from .utils import configure_dev_logging, load_bars, load_config, load_moving_average_fn

logger = logging.getLogger(__name__)

DEFAULT_TICK_SIZE = 0.25


@dataclass(slots=True)
class ReplayReport:
    strategy_name: str
    bars: int
    final_position: int
    results: list[CycleResult] = field(default_factory=list)
    actions: list[HostAction] = field(default_factory=list)

    @property
    def entries(self) -> list[HostAction]:
        return [a for a in self.actions if a.kind == "entry"]


def _build_provider(overrides: Mapping[str, str] | None) -> MovingAverageProvider:
    if not overrides:
        return MovingAverageProvider()
    return MovingAverageProvider(
        overrides={family: load_moving_average_fn(path) for family, path in overrides.items()}
    )


def _resolve_tick_size(tick_size: float | None, cfg: Mapping[str, Any]) -> float:
    """Explicit argument, then config, then the default. Zero passes through to PaperHost."""
    if tick_size is not None:
        return tick_size
    if cfg.get("tick_size") is not None:
        return cfg["tick_size"]
    return DEFAULT_TICK_SIZE


def run_replay(
    config: dict | str | Path,
    bars: Sequence[Mapping[str, Any]] | str | Path | None = None,
    tick_size: float | None = None,
    strict: bool = True,
) -> ReplayReport:
    """Replay bars through a paper host and report what the strategy did.

    Config keys: ``strategy`` (CrossoverConfig fields), ``policy``
    (TradingPolicy fields), ``tick_size``, ``bars`` (CSV path),
    ``moving_averages`` (family -> dotted path overrides).
    """
    configure_dev_logging()
    cfg = load_config(config)

    source = bars if bars is not None else cfg.get("bars")
    if source is None:
        raise ValueError("No bars provided; pass bars or set 'bars' in the config")
    rows = load_bars(source) if isinstance(source, (str, Path)) else list(source)
    validation.validate_bar_sequence(rows, strict=strict)

    strategy = CrossoverStrategy(
        CrossoverConfig(**(cfg.get("strategy") or {})),
        provider=_build_provider(cfg.get("moving_averages")),
    )
    if len(rows) < strategy.lookback:
        logger.warning(
            "%s needs %d bar(s) of history, replaying only %d", strategy.name, strategy.lookback, len(rows)
        )

    host = PaperHost.from_bars(
        rows,
        tick_size=_resolve_tick_size(tick_size, cfg),
        policy=TradingPolicy(**(cfg.get("policy") or {})),
    )
    results = host.replay(strategy) if rows else []
    return ReplayReport(
        strategy_name=strategy.name,
        bars=len(rows),
        final_position=host.get_position().signed_quantity,
        results=results,
        actions=list(host.actions),
    )
