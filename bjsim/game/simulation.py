"""Simulation runner: builds the table from configuration and plays rounds."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from random import Random
from typing import Mapping

from bjsim.config import SimulationConfig
from bjsim.game.engine import RoundEngine
from bjsim.game.events import EventEmitter, EventType
from bjsim.game.table import Box, Player
from bjsim.shoe import Shoe
from bjsim.strategy import Strategy, load_strategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerSummary:
    """Final state of one player."""

    player_id: int
    owner: str
    strategy: str
    initial_balance: Decimal
    final_balance: Decimal
    busted_at_round: int | None
    retired_at_round: int | None

    @property
    def net(self) -> Decimal:
        return self.final_balance - self.initial_balance


@dataclass(frozen=True)
class SimulationSummary:
    """Outcome of a run."""

    rounds_played: int
    shoes_used: int
    players: list[PlayerSummary] = field(default_factory=list)


class Simulation:
    """
    Runs a configured number of rounds at one table.

    Strategies given in ``strategies`` (by name) take precedence; every other
    strategy name is loaded from ``strategy_dir`` or the built-ins.
    """

    def __init__(
        self,
        config: SimulationConfig,
        strategies: Mapping[str, Strategy] | None = None,
        strategy_dir: str | Path = "strategies",
        rng: Random | None = None,
        events: EventEmitter | None = None,
    ) -> None:
        self.config = config
        self.rules = config.to_rules()
        self.events = events or EventEmitter()
        self.rng = rng or Random(config.seed)

        self.shoe = Shoe(
            num_decks=self.rules.num_decks,
            forced_cards=config.parsed_forced_cards(),
            rng=self.rng,
        )

        self.players: list[Player] = []
        self.boxes: list[Box] = []
        self._seat_players(strategies or {}, strategy_dir)

        self.engine = RoundEngine(
            rules=self.rules,
            shoe=self.shoe,
            boxes=self.boxes,
            players=self.players,
            events=self.events,
        )
        self.rounds_played = 0

    def _seat_players(self, strategies: Mapping[str, Strategy], strategy_dir: str | Path) -> None:
        seats: dict[int, Box] = {}
        for player_config in self.config.players:
            strategy = strategies.get(player_config.strategy)
            if strategy is None:
                strategy = load_strategy(player_config.strategy, strategy_dir, self.rules)

            player = Player(
                player_id=player_config.player_id,
                strategy=strategy,
                balance=player_config.initial_balance,
                owner=player_config.owner,
                target_balance=player_config.target_balance,
            )
            for box_config in player_config.boxes:
                if box_config.index in seats:
                    logger.warning(
                        "Box %d already taken by player %d; skipping it for player %d",
                        box_config.index,
                        seats[box_config.index].player.player_id,
                        player.player_id,
                    )
                    continue
                box = Box(
                    index=box_config.index,
                    player=player,
                    original_main_bet=box_config.main_bet,
                    original_perfect_pair_bet=box_config.perfect_pair_bet,
                    original_p21_bet=box_config.p21_bet,
                )
                seats[box.index] = box
                player.boxes.append(box)
            self.players.append(player)

        self.boxes = [seats[index] for index in sorted(seats)]

    @property
    def shoe_number(self) -> int:
        return self.engine.shoe_number

    def run(self) -> SimulationSummary:
        """Play up to ``round_count`` rounds and summarise the run."""
        logger.info(
            "Starting simulation: %d rounds, %d players, %d boxes, %d decks",
            self.config.round_count,
            len(self.players),
            len(self.boxes),
            self.rules.num_decks,
        )

        for round_number in range(1, self.config.round_count + 1):
            if not self.engine.has_active_players:
                logger.info("No active players left; stopping after %d rounds", self.rounds_played)
                break

            self.engine.play_round(round_number)
            self.rounds_played += 1

            if self.shoe.reshuffle_if_needed():
                self.engine.shoe_number += 1
                logger.info("New shoe %d after round %d", self.engine.shoe_number, round_number)
                self.events.emit_new(
                    EventType.SHOE_SHUFFLED,
                    shoe_number=self.engine.shoe_number,
                    round_number=round_number,
                )

        summary = self.summary()
        logger.info(
            "Simulation finished: %d rounds over %d shoes",
            summary.rounds_played,
            summary.shoes_used,
        )
        self.events.emit_new(EventType.SIMULATION_ENDED, summary=summary)
        return summary

    def summary(self) -> SimulationSummary:
        return SimulationSummary(
            rounds_played=self.rounds_played,
            shoes_used=self.engine.shoe_number,
            players=[
                PlayerSummary(
                    player_id=player.player_id,
                    owner=player.owner,
                    strategy=player.strategy.name,
                    initial_balance=player.initial_balance,
                    final_balance=player.balance,
                    busted_at_round=player.busted_at_round,
                    retired_at_round=player.retired_at_round,
                )
                for player in self.players
            ],
        )
