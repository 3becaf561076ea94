"""CLI entrypoint for the strategy dev harness."""

from __future__ import annotations

import argparse
import json

from macross.lib.strategies import CrossoverStrategy

from .replay import run_replay
from .utils import configure_dev_logging


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Crossover strategy dev harness")
    subparsers = parser.add_subparsers(dest="command", required=True)

    replay = subparsers.add_parser("replay", help="Replay OHLCV bars through the strategy on a paper host")
    replay.add_argument("--config", required=True, help="Path to config JSON/YAML")
    replay.add_argument("--bars", default=None, help="Path to OHLCV CSV (overrides 'bars' in config)")
    replay.add_argument("--tick-size", type=float, default=None, help="Instrument tick size (overrides config)")
    strict_group = replay.add_mutually_exclusive_group()
    strict_group.add_argument("--strict", dest="strict", action="store_true", help="Enable strict bar validation")
    strict_group.add_argument("--no-strict", dest="strict", action="store_false", help="Disable strict bar validation")
    replay.set_defaults(strict=True)

    subparsers.add_parser("schema", help="Print the strategy configuration JSON schema")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    configure_dev_logging()
    args = _parse_args(argv)
    if args.command == "schema":
        print(json.dumps(CrossoverStrategy.get_config_schema(), indent=2))
        return

    report = run_replay(args.config, bars=args.bars, tick_size=args.tick_size, strict=args.strict)
    for action in report.actions:
        print(json.dumps(action.to_dict()))
    print(
        f"{report.strategy_name}: replayed {report.bars} bar(s), "
        f"{len(report.entries)} entr(y/ies), final position {report.final_position:+d}"
    )


if __name__ == "__main__":
    main()
