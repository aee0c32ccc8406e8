"""Command-line entry point."""

import argparse
import logging
import sys
from typing import Sequence

from bjsim.config import RunSettings, SimulationConfig, load_config, parse_config
from bjsim.errors import ConfigurationError
from bjsim.export import CsvHandLog
from bjsim.game import EventEmitter, Simulation, SimulationSummary

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="bjsim",
        description="Multi-player blackjack simulator with card counting and side bets",
    )
    source = ap.add_mutually_exclusive_group(required=True)
    source.add_argument("--config", help="Path to a JSON configuration file.")
    source.add_argument("--config-json", help="Configuration as an inline JSON string.")
    ap.add_argument("--log", default="output.csv", help="Hand log path (written as <base>_1<ext>).")
    ap.add_argument("--strategies", default=None, help="Directory holding <name>.json strategy files.")
    ap.add_argument("--gzip", action="store_true", help="Gzip the hand log.")
    ap.add_argument("--seed", type=int, default=None, help="Override the configured RNG seed.")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log every round at DEBUG level.")
    return ap


def _load(args: argparse.Namespace) -> SimulationConfig:
    if args.config:
        config = load_config(args.config)
    else:
        config = parse_config(args.config_json)

    updates = {}
    if args.seed is not None:
        updates["seed"] = args.seed
    if args.gzip:
        updates["gzip_log"] = True
    return config.model_copy(update=updates) if updates else config


def _print_summary(summary: SimulationSummary) -> None:
    print(f"Rounds played: {summary.rounds_played}")
    print(f"Shoes used:    {summary.shoes_used}")
    for player in summary.players:
        status = ""
        if player.busted_at_round is not None:
            status = f" (busted at round {player.busted_at_round})"
        elif player.retired_at_round is not None:
            status = f" (retired at round {player.retired_at_round})"
        print(
            f"Player {player.player_id} {player.owner} [{player.strategy}]: "
            f"{player.initial_balance:.2f} -> {player.final_balance:.2f}{status}"
        )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = RunSettings()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    events = EventEmitter()
    try:
        config = _load(args)
        simulation = Simulation(
            config,
            strategy_dir=args.strategies or settings.strategy_dir,
            events=events,
        )
    except ConfigurationError as exc:
        print(f"bjsim: configuration error: {exc}", file=sys.stderr)
        return 1

    hand_log = CsvHandLog(args.log, gzip_enabled=config.gzip_log, flush_every=settings.flush_every)
    hand_log.attach(events)
    with hand_log:
        summary = simulation.run()

    _print_summary(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
