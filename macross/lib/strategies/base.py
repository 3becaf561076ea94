from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type, Union
import logging

import pandas as pd
from pydantic import BaseModel, Field, model_validator

from macross.lib.enums import (
    Crossover,
    Direction,
    OrderType,
    PriceField,
    TimeInForce,
)

logger = logging.getLogger(__name__)


class StrategyConfig(BaseModel):
    """
    Base configuration class for all strategies using Pydantic.

    Provides helper methods for easy field definition with mandatory
    title and description. Configurations are immutable for the life of a
    run; reconfigure by building a new instance between runs.

    Example:
        class MyStrategyConfig(StrategyConfig):
            fast_period: int = StrategyConfig.int_field(
                default=9,
                min_value=1,
                title="Faster Period",
                description="Number of bars in the faster average"
            )
    """

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @model_validator(mode='after')
    def validate_option_fields(self) -> "StrategyConfig":
        """
        Validate that any fields with enum constraints have valid values.

        This ensures option_field() values are validated at runtime.
        """
        for field_name, field_info in self.__class__.model_fields.items():
            json_schema_extra = getattr(field_info, 'json_schema_extra', None)
            if not isinstance(json_schema_extra, dict) or "enum" not in json_schema_extra:
                continue

            enum_values = json_schema_extra["enum"]
            field_value = getattr(self, field_name, None)
            if field_value is None and field_info.default is None:
                continue

            if field_value not in enum_values:
                raise ValueError(
                    f"Field '{field_name}' must be one of {enum_values}, got '{field_value}'"
                )

        return self

    @staticmethod
    def int_field(
        default: int = ...,
        *,
        min_value: Optional[int] = None,
        max_value: Optional[int] = None,
        title: str,
        description: str,
        **kwargs: Any
    ) -> Any:
        """
        Helper to create an integer field with validation and metadata.

        Args:
            default: Default value (use ... for required fields)
            min_value: Minimum allowed value
            max_value: Maximum allowed value
            title: Display title (required)
            description: Field description (required)
            **kwargs: Additional Pydantic Field arguments

        Returns:
            Field annotation with validation and metadata
        """
        field_kwargs: Dict[str, Any] = {
            "title": title,
            "description": description,
            **kwargs
        }

        if default is not ...:
            field_kwargs["default"] = default

        if min_value is not None:
            field_kwargs["ge"] = min_value
        if max_value is not None:
            field_kwargs["le"] = max_value

        return Field(**field_kwargs)

    @staticmethod
    def option_field(
        options: List[str],
        default: str = ...,
        *,
        title: str,
        description: str,
        **kwargs: Any
    ) -> Any:
        """
        Helper to create a string field with pre-set option values (enum/dropdown).

        Args:
            options: List of allowed string values
            default: Default value (must be one of the options, use ... for required)
            title: Display title (required)
            description: Field description (required)
            **kwargs: Additional Pydantic Field arguments

        Returns:
            Field annotation with validation and metadata

        Raises:
            ValueError: If default value is not in options list
        """
        if not options:
            raise ValueError("options list cannot be empty")

        if default is not ... and default not in options:
            raise ValueError(f"default value '{default}' must be one of the options: {options}")

        field_kwargs: Dict[str, Any] = {
            "title": title,
            "description": description,
            "json_schema_extra": {
                "enum": list(options)
            },
            **kwargs
        }

        if default is not ...:
            field_kwargs["default"] = default

        return Field(**field_kwargs)

    @classmethod
    def get_json_schema(cls) -> Dict[str, Any]:
        """
        Get JSON Schema representation of this config class.

        This can be used by the frontend to generate dynamic forms.
        """
        return cls.model_json_schema(mode='serialization')

    def to_dict(self) -> Dict[str, Any]:
        """Convert config instance to dictionary."""
        return self.model_dump()


@dataclass(slots=True, frozen=True)
class PositionSnapshot:
    """Net position as reported by the host at the start of a cycle."""

    signed_quantity: int = 0

    @property
    def is_flat(self) -> bool:
        return self.signed_quantity == 0


@dataclass(slots=True, frozen=True)
class OrderRequest:
    """Entry order with an attached target and stop, built fresh each cycle."""

    direction: Direction
    quantity: int
    order_type: OrderType = OrderType.MARKET
    time_in_force: TimeInForce = TimeInForce.GOOD_TILL_CANCELED
    attached_target_type: OrderType = OrderType.LIMIT
    attached_stop_type: OrderType = OrderType.TRAILING_STOP
    target_offset: float = 0.0
    stop_offset: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction.value,
            "quantity": self.quantity,
            "order_type": self.order_type.value,
            "time_in_force": self.time_in_force.value,
            "attached_target_type": self.attached_target_type.value,
            "attached_stop_type": self.attached_stop_type.value,
            "target_offset": self.target_offset,
            "stop_offset": self.stop_offset,
        }


@dataclass(slots=True)
class CycleResult:
    """Container for what a single strategy invocation decided and did."""

    bar_index: int
    bar_closed: bool
    crossover: Crossover = Crossover.NONE
    flattened: bool = False
    order: OrderRequest | None = None
    result_code: int = 0
    notes: Dict[str, Any] = field(default_factory=dict)

    @property
    def submitted(self) -> bool:
        return self.order is not None

    @classmethod
    def skipped(cls, bar_index: int, reason: str | None = None) -> "CycleResult":
        notes: Dict[str, Any] = {}
        if reason:
            notes["reason"] = reason
        return cls(bar_index=bar_index, bar_closed=False, notes=notes)


class MarketData(ABC):
    """Read access to the host's bar stream for the bar being updated."""

    @property
    @abstractmethod
    def bar_index(self) -> int:
        """Index of the bar currently being updated."""
        ...

    @abstractmethod
    def bar_has_closed(self) -> bool:
        """True exactly once per bar, on the update that closes it."""
        ...

    @abstractmethod
    def get_base_data(self, price_field: PriceField) -> pd.Series:
        """Base price series up to and including the current bar."""
        ...

    @abstractmethod
    def get_tick_size(self) -> float:
        ...


class PositionReader(ABC):
    """Read-only view of the host-owned position."""

    @abstractmethod
    def get_position(self) -> PositionSnapshot:
        ...


class OrderGateway(ABC):
    """Order commands the strategy issues to the host."""

    @abstractmethod
    def cancel_all_orders(self) -> int:
        ...

    @abstractmethod
    def flatten_position(self) -> int:
        ...

    @abstractmethod
    def submit_entry(self, direction: Direction, request: OrderRequest) -> int:
        """Submit a directional entry; return the host result code."""
        ...


class BaseStrategy(ABC):
    """
    Base class all strategies must inherit from.

    Strategies define a ConfigModel (schema) and implement _on_bar(). The host
    calls on_bar() once per data update, synchronously and strictly in turn.
    """

    ConfigModel: Type[StrategyConfig] = StrategyConfig

    @property
    @abstractmethod
    def name(self) -> str:  # unique strategy id
        ...

    @property
    @abstractmethod
    def lookback(self) -> int:
        """Number of bars required for the strategy to operate."""
        ...

    def __init__(self, config: Optional[Union[Dict[str, Any], StrategyConfig]] = None):
        """
        Creates a default config instance so self.config is always available.

        Args:
            config: Optional config dict or StrategyConfig instance.
        """
        if config is None:
            self.config: StrategyConfig = self.ConfigModel()
        elif isinstance(config, dict):
            self.config = self.ConfigModel(**config)
        elif isinstance(config, StrategyConfig):
            if not isinstance(config, self.ConfigModel):
                self.config = self.ConfigModel(**config.model_dump())
            else:
                self.config = config
        else:
            raise TypeError(
                f"config must be None, dict, or StrategyConfig, got {type(config)}"
            )

    @classmethod
    def get_config_schema(cls) -> Dict[str, Any]:
        """
        Get JSON Schema for this strategy's configuration.
        Used by the frontend to generate dynamic forms.
        """
        return cls.ConfigModel.get_json_schema()

    @classmethod
    def validate_config(cls, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate a configuration dictionary against this strategy's schema.

        Returns validated dictionary (with defaults applied).
        Raises ValidationError on failure.
        """
        validated = cls.ConfigModel(**config)
        return validated.model_dump()

    def on_bar(
        self,
        market: MarketData,
        positions: PositionReader,
        orders: OrderGateway,
    ) -> CycleResult:
        """Public entry point invoked by the host for every data update."""
        result = self._on_bar(market, positions, orders)
        if result.submitted:
            logger.info(
                "%s bar %d: %s entry submitted -> result %d",
                self.name, result.bar_index, result.order.direction.value, result.result_code,
            )
        return result

    @abstractmethod
    def _on_bar(
        self,
        market: MarketData,
        positions: PositionReader,
        orders: OrderGateway,
    ) -> CycleResult:
        """
        Strategy implementation. Override this method in subclasses.

        Use self.config for typed access to configuration values.
        """
