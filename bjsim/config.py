"""Simulation configuration: JSON schemas and environment-driven run settings."""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from bjsim.cards import Card
from bjsim.errors import ConfigurationError
from bjsim.rules import TableRules

PERFECT_PAIR_KEY = "perfect_pair"
P21_KEY = "21+3"

MIN_BOX_INDEX = 1
MAX_BOX_INDEX = 7


class BoxConfig(BaseModel):
    """One seat taken by a player."""

    index: int = Field(..., ge=MIN_BOX_INDEX, le=MAX_BOX_INDEX, description="Seat, left to right")
    main_bet: Decimal = Field(..., gt=0, description="Base main bet")
    sidebets: dict[str, Decimal] = Field(default_factory=dict)

    @field_validator("sidebets")
    @classmethod
    def _known_sidebets(cls, value: dict[str, Decimal]) -> dict[str, Decimal]:
        unknown = set(value) - {PERFECT_PAIR_KEY, P21_KEY}
        if unknown:
            raise ValueError(f"unknown side bets: {', '.join(sorted(unknown))}")
        if any(amount < 0 for amount in value.values()):
            raise ValueError("side bets must not be negative")
        return value

    @property
    def perfect_pair_bet(self) -> Decimal:
        return self.sidebets.get(PERFECT_PAIR_KEY, Decimal("0"))

    @property
    def p21_bet(self) -> Decimal:
        return self.sidebets.get(P21_KEY, Decimal("0"))


class PlayerConfig(BaseModel):
    """A bankroll, its strategy and the boxes it plays."""

    player_id: int
    owner: str = ""
    initial_balance: Decimal = Field(..., ge=0)
    target_balance: Decimal | None = Field(default=None, ge=0, description="0 or absent: never retire")
    strategy: str = "basic"
    boxes: list[BoxConfig] = Field(default_factory=list)


class SimulationConfig(BaseModel):
    """Complete description of a simulation run."""

    model_config = ConfigDict(extra="ignore")

    num_decks: int = Field(default=6, ge=1, le=8)
    round_count: int = Field(default=0, ge=0)

    hit_on_soft_17: bool = True
    allow_double_after_split: bool = True
    allow_surrender: bool = False
    surrender_against_ace: bool = False
    dealer_takes_hole_card: bool = True
    max_splits: int = Field(default=3, ge=0)

    min_bet: Decimal = Field(default=Decimal("10"), gt=0)
    max_bet: Decimal = Field(default=Decimal("1000"), gt=0)

    forced_cards: list[str] = Field(default_factory=list)
    gzip_log: bool = False
    seed: int | None = None

    players: list[PlayerConfig] = Field(default_factory=list)

    @field_validator("forced_cards")
    @classmethod
    def _parseable_cards(cls, value: list[str]) -> list[str]:
        for text in value:
            Card.from_string(text)
        return value

    @model_validator(mode="after")
    def _bet_limits(self) -> "SimulationConfig":
        if self.min_bet > self.max_bet:
            raise ValueError("min_bet must not exceed max_bet")
        return self

    def to_rules(self) -> TableRules:
        """Build the table rules for this run."""
        return TableRules(
            num_decks=self.num_decks,
            min_bet=self.min_bet,
            max_bet=self.max_bet,
            hit_on_soft_17=self.hit_on_soft_17,
            dealer_takes_hole_card=self.dealer_takes_hole_card,
            allow_double_after_split=self.allow_double_after_split,
            max_splits=self.max_splits,
            allow_surrender=self.allow_surrender,
            surrender_against_ace=self.surrender_against_ace,
        )

    def parsed_forced_cards(self) -> list[Card]:
        return [Card.from_string(text) for text in self.forced_cards]


def parse_config(text: str) -> SimulationConfig:
    """
    Validate a configuration given as a JSON string.

    Raises:
        ConfigurationError: If the JSON is malformed or fails validation
    """
    try:
        return SimulationConfig.model_validate_json(text)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid configuration: {exc}") from exc


def load_config(path: str | Path) -> SimulationConfig:
    """
    Load and validate a configuration file.

    Raises:
        ConfigurationError: If the file is unreadable or invalid
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"failed to read config file {path}: {exc}") from exc
    return parse_config(text)


@dataclass(frozen=True)
class RunSettings:
    """Process-level settings taken from the environment."""

    log_level: str = field(default_factory=lambda: os.getenv("BJSIM_LOG_LEVEL", "INFO").upper())
    strategy_dir: str = field(default_factory=lambda: os.getenv("BJSIM_STRATEGY_DIR", "strategies"))
    flush_every: int = field(
        default_factory=lambda: int(os.getenv("BJSIM_FLUSH_EVERY", "10000"))
    )
