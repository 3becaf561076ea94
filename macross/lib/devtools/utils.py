"""Shared helpers for the strategy dev harness.

These utilities are intentionally lightweight so users can read simple
config files and bar dumps without needing the engine service running.
"""

from __future__ import annotations

import json
import logging
from importlib import import_module
from pathlib import Path
from typing import Any

import pandas as pd
import yaml

from macross.lib.indicators import MovingAverageFn

from .validation import ValidationError

LOGGER = logging.getLogger(__name__)

# accepted column spellings for bar dumps
COLUMN_ALIASES = {
    "open": "o",
    "high": "h",
    "low": "l",
    "close": "c",
    "last": "c",
    "volume": "v",
    "time": "ts",
    "timestamp": "ts",
    "date": "ts",
}


def configure_dev_logging(level: int = logging.INFO) -> None:
    """Enable basic logging when running harnesses directly.

    Avoids changing application logging; only configure if nothing is set.
    """
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        )


def load_config(config: str | Path | dict[str, Any]) -> dict[str, Any]:
    """Load a configuration dict from path or return existing dict."""
    if isinstance(config, dict):
        return config
    path = Path(config)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yml", ".yaml"}:
        return yaml.safe_load(text) or {}
    return json.loads(text)


def load_bars(path: str | Path) -> list[dict[str, Any]]:
    """Read an OHLCV CSV into bar dicts keyed ``o, h, l, c, v`` (plus ``ts`` if present)."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Bars file not found: {path}")
    frame = pd.read_csv(path)
    renamed = [COLUMN_ALIASES.get(str(col).strip().lower(), str(col).strip().lower()) for col in frame.columns]
    clashes = sorted({name for name in renamed if renamed.count(name) > 1})
    if clashes:
        sources = [str(col) for col, name in zip(frame.columns, renamed) if name in clashes]
        raise ValidationError(f"Ambiguous columns in {path.name}: {sources} map to the same field(s) {clashes}")
    frame.columns = renamed
    LOGGER.debug("Loaded %d row(s) from %s", len(frame), path)
    return frame.to_dict(orient="records")


def load_moving_average_fn(identifier: str) -> MovingAverageFn:
    """Load a moving-average function from a dotted path.

    Args:
        identifier: ``package.module:function`` or ``package.module.function``.

    Raises:
        ImportError: If the module cannot be imported.
        ValueError: If the resolved object is not callable.
    """
    if ":" in identifier:
        module_path, attr = identifier.split(":", maxsplit=1)
    else:
        module_path, _, attr = identifier.rpartition(".")
    if not module_path:
        raise ValueError(f"Expected a dotted path, got {identifier!r}")
    fn = getattr(import_module(module_path), attr)
    if not callable(fn):
        raise ValueError(f"{identifier} is not callable")
    return fn
