"""Developer harnesses for the crossover strategy.

Users can import these helpers or run them via:

    python -m macross.lib.devtools replay --config ./sample.yaml --bars ./bars.csv
"""

from .replay import ReplayReport, run_replay
from .utils import configure_dev_logging, load_bars, load_config, load_moving_average_fn
from .validation import (
    validate_bar_schema,
    validate_bar_sequence,
    ValidationError,
)

__all__ = [
    "run_replay",
    "ReplayReport",
    "configure_dev_logging",
    "load_bars",
    "load_config",
    "load_moving_average_fn",
    "validate_bar_schema",
    "validate_bar_sequence",
    "ValidationError",
]
