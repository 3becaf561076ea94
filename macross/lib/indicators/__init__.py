"""Moving-average computations consumed by the crossover engine."""

from .moving_average import (  # noqa: F401
    MovingAverageFn,
    MovingAverageProvider,
    exponential_moving_average,
    hull_moving_average,
    load_moving_average,
    register_moving_average,
    simple_moving_average,
    zero_lag_moving_average,
)

__all__ = [
    "MovingAverageFn",
    "MovingAverageProvider",
    "load_moving_average",
    "register_moving_average",
    "simple_moving_average",
    "exponential_moving_average",
    "hull_moving_average",
    "zero_lag_moving_average",
]
