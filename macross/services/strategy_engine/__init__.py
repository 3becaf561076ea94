from .core import StrategyEngine  # noqa: F401

__all__ = ["StrategyEngine"]
