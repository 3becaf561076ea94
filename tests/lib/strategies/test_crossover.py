"""Tests for crossover detection, position gating, order building and config."""
import math

import pandas as pd
import pytest
from pydantic import ValidationError

from macross.lib.enums import (
    Crossover,
    Direction,
    MovingAverageFamily,
    OrderType,
    PriceField,
    TimeInForce,
)
from macross.lib.strategies import (
    CrossoverConfig,
    CrossoverStrategy,
    OrderIssuer,
    detect_crossover,
    detect_series_crossover,
    reconcile_position,
)


class TestDetectCrossover:
    """Tests for detect_crossover."""

    def test_cross_from_below_is_up(self):
        assert detect_crossover(10, 11, 12, 11) == Crossover.UP

    def test_cross_from_above_is_down(self):
        assert detect_crossover(12, 11, 10, 11) == Crossover.DOWN

    def test_touch_then_break_counts_as_cross(self):
        """Test that equality on the previous sample followed by a strict break crosses."""
        assert detect_crossover(11, 11, 12, 11) == Crossover.UP
        assert detect_crossover(11, 11, 10, 11) == Crossover.DOWN

    def test_equality_on_current_sample_is_not_a_cross(self):
        assert detect_crossover(10, 11, 11, 11) == Crossover.NONE
        assert detect_crossover(12, 11, 11, 11) == Crossover.NONE
        assert detect_crossover(11, 11, 11, 11) == Crossover.NONE

    def test_staying_on_one_side_is_none(self):
        assert detect_crossover(12, 11, 13, 11) == Crossover.NONE
        assert detect_crossover(9, 11, 8, 11) == Crossover.NONE

    def test_missing_sample_is_none(self):
        assert detect_crossover(math.nan, 11, 12, 11) == Crossover.NONE
        assert detect_crossover(10, 11, 12, math.nan) == Crossover.NONE

    @pytest.mark.parametrize("scale", [0.01, 1.0, 3.5, 1000.0])
    def test_invariant_under_common_positive_scaling(self, scale):
        samples = [(10, 11, 12, 11), (12, 11, 10, 11), (12, 11, 13, 11), (11, 11, 11, 11)]
        for prev_fast, prev_slow, cur_fast, cur_slow in samples:
            base = detect_crossover(prev_fast, prev_slow, cur_fast, cur_slow)
            scaled = detect_crossover(
                prev_fast * scale, prev_slow * scale, cur_fast * scale, cur_slow * scale
            )
            assert scaled == base

    def test_not_invariant_under_independent_scaling(self):
        assert detect_crossover(10, 11, 12, 11) == Crossover.UP
        # doubling only the slow line keeps fast below it
        assert detect_crossover(10, 22, 12, 22) == Crossover.NONE

    def test_repeated_calls_agree(self):
        first = detect_crossover(10, 11, 12, 11)
        assert detect_crossover(10, 11, 12, 11) == first


class TestDetectSeriesCrossover:
    """Tests for detect_series_crossover."""

    def test_uses_only_last_two_samples(self):
        fast = pd.Series([50.0, 1.0, 10.0, 12.0])
        slow = pd.Series([1.0, 50.0, 11.0, 11.0])
        assert detect_series_crossover(fast, slow) == Crossover.UP

    def test_single_sample_is_none(self):
        assert detect_series_crossover(pd.Series([12.0]), pd.Series([11.0, 11.0])) == Crossover.NONE
        assert detect_series_crossover([12.0, 10.0], [11.0]) == Crossover.NONE

    def test_empty_is_none(self):
        assert detect_series_crossover(pd.Series(dtype=float), pd.Series(dtype=float)) == Crossover.NONE

    def test_warmup_nan_is_none(self):
        fast = pd.Series([math.nan, 12.0])
        slow = pd.Series([11.0, 11.0])
        assert detect_series_crossover(fast, slow) == Crossover.NONE

    def test_accepts_plain_sequences(self):
        assert detect_series_crossover([12, 10], [11, 11]) == Crossover.DOWN


class TestReconcilePosition:
    """Tests for reconcile_position."""

    @pytest.mark.parametrize("qty", [-5, -1])
    def test_buy_against_short_flattens(self, qty):
        assert reconcile_position(qty, Direction.BUY).must_flatten_first is True
        assert reconcile_position(qty, Direction.SELL).must_flatten_first is False

    @pytest.mark.parametrize("qty", [1, 3])
    def test_sell_against_long_flattens(self, qty):
        assert reconcile_position(qty, Direction.SELL).must_flatten_first is True
        assert reconcile_position(qty, Direction.BUY).must_flatten_first is False

    def test_flat_never_flattens(self):
        assert reconcile_position(0, Direction.BUY).must_flatten_first is False
        assert reconcile_position(0, Direction.SELL).must_flatten_first is False


class TestOrderIssuer:
    """Tests for OrderIssuer."""

    def test_bracket_offsets_are_ticks_times_tick_size(self):
        config = CrossoverConfig(target_ticks=80, stop_ticks=80)
        issuer = OrderIssuer(gateway=None, tick_size=0.25)
        request = issuer.build_request(Direction.BUY, config)

        assert request.target_offset == 20.0
        assert request.stop_offset == 20.0

    def test_request_shape(self):
        config = CrossoverConfig(quantity=2, target_ticks=4, stop_ticks=8)
        request = OrderIssuer(gateway=None, tick_size=0.5).build_request(Direction.SELL, config)

        assert request.direction == Direction.SELL
        assert request.quantity == 2
        assert request.order_type == OrderType.MARKET
        assert request.time_in_force == TimeInForce.GOOD_TILL_CANCELED
        assert request.attached_target_type == OrderType.LIMIT
        assert request.attached_stop_type == OrderType.TRAILING_STOP
        assert request.target_offset == 2.0
        assert request.stop_offset == 4.0

    def test_submit_returns_host_code_unchanged(self):
        class Gateway:
            def __init__(self):
                self.calls = []

            def submit_entry(self, direction, request):
                self.calls.append((direction, request))
                return -7

        gateway = Gateway()
        issuer = OrderIssuer(gateway, tick_size=0.25)
        code = issuer.submit(Direction.BUY, CrossoverConfig())

        assert code == -7
        assert len(gateway.calls) == 1
        assert gateway.calls[0][1] is issuer.last_request


class TestCrossoverConfig:
    """Tests for CrossoverConfig."""

    def test_defaults(self):
        config = CrossoverConfig()
        assert config.ma_family == MovingAverageFamily.SMA
        assert config.fast_period == 9
        assert config.slow_period == 9
        assert config.fast_field == PriceField.LAST
        assert config.slow_field == PriceField.LAST
        assert config.target_ticks == 80
        assert config.stop_ticks == 80
        assert config.quantity == 1

    def test_aliases_are_normalized(self):
        config = CrossoverConfig(family="HMA", fast_input="close", slow_input="hl2")
        assert config.ma_family == MovingAverageFamily.HULL
        assert config.fast_field == PriceField.LAST
        assert config.slow_field == PriceField.HL_AVG

    @pytest.mark.parametrize(
        "overrides",
        [
            {"fast_period": 0},
            {"slow_period": -1},
            {"target_ticks": -1},
            {"stop_ticks": -5},
            {"quantity": 0},
            {"family": "kama"},
            {"fast_input": "bid"},
            {"unknown": 1},
        ],
    )
    def test_invalid_values_rejected_at_construction(self, overrides):
        with pytest.raises(ValidationError):
            CrossoverConfig(**overrides)

    def test_config_is_immutable(self):
        config = CrossoverConfig()
        with pytest.raises(ValidationError):
            config.fast_period = 20

    def test_schema_exposes_options(self):
        schema = CrossoverStrategy.get_config_schema()
        assert schema["properties"]["family"]["enum"] == ["sma", "ema", "hull", "zlema"]
        assert schema["properties"]["target_ticks"]["minimum"] == 0

    def test_validate_config_applies_defaults(self):
        validated = CrossoverStrategy.validate_config({"family": "ema", "fast_period": 5})
        assert validated["family"] == "ema"
        assert validated["fast_period"] == 5
        assert validated["slow_period"] == 9


class TestCrossoverStrategyIdentity:
    """Tests for strategy naming and construction."""

    @pytest.mark.parametrize(
        "family, name",
        [("sma", "SMA"), ("ema", "EMA"), ("hull", "Hull"), ("zlema", "ZLEMA")],
    )
    def test_name_follows_family(self, family, name):
        assert CrossoverStrategy({"family": family}).name == f"{name} Crossover Strategy"

    def test_lookback_covers_slowest_period_plus_one(self):
        assert CrossoverStrategy({"fast_period": 3, "slow_period": 20}).lookback == 21

    def test_rejects_unsupported_config_type(self):
        with pytest.raises(TypeError):
            CrossoverStrategy(config=42)
