"""Strategy file loading and the built-in strategies."""

import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from bjsim.errors import StrategyError
from bjsim.rules import TableRules
from bjsim.strategy.actions import Action
from bjsim.strategy.base import Strategy
from bjsim.strategy.basic import DEFAULT_BET_RAMP, basic_strategy_actions, hilo_deviations
from bjsim.strategy.counting import BetRampTier, CountingStrategy, Deviation
from bjsim.strategy.table import TableStrategy

logger = logging.getLogger(__name__)


class DeviationEntry(BaseModel):
    """Index play as stored in a strategy file."""

    threshold: float
    action: Action


class BetRampEntry(BaseModel):
    """Bet ramp tier as stored in a strategy file."""

    min_true_count: float
    multiplier: Decimal = Field(..., gt=0)


class StrategyFile(BaseModel):
    """Schema of ``<strategy_dir>/<name>.json``."""

    model_config = ConfigDict(extra="ignore")

    actions: dict[str, list[Action]] = Field(default_factory=dict)
    fallback: Action
    decide_insurance: bool = False
    counting_enabled: bool = False
    deviations: dict[str, DeviationEntry] = Field(default_factory=dict)
    bet_ramp: list[BetRampEntry] = Field(default_factory=list)

    @field_validator("actions")
    @classmethod
    def _no_empty_action_lists(cls, value: dict[str, list[Action]]) -> dict[str, list[Action]]:
        empty = [key for key, actions in value.items() if not actions]
        if empty:
            raise ValueError(f"empty action list for {', '.join(sorted(empty))}")
        return value

    @property
    def is_counting(self) -> bool:
        return self.counting_enabled or bool(self.deviations) or bool(self.bet_ramp)

    def to_strategy(self, name: str) -> Strategy:
        """Build the strategy this file describes."""
        table = TableStrategy(
            name=name,
            actions=self.actions,
            fallback=self.fallback,
            accept_insurance=self.decide_insurance,
        )
        if not self.is_counting:
            return table
        return CountingStrategy(
            base=table,
            deviations={
                key: Deviation(entry.threshold, entry.action)
                for key, entry in self.deviations.items()
            },
            bet_ramp=[
                BetRampTier(entry.min_true_count, entry.multiplier)
                for entry in self.bet_ramp
            ],
        )


def _basic(rules: TableRules) -> Strategy:
    return TableStrategy("basic", basic_strategy_actions(rules), fallback=Action.STAND)


def _hilo(rules: TableRules) -> Strategy:
    table = TableStrategy("hilo", basic_strategy_actions(rules), fallback=Action.STAND)
    return CountingStrategy(
        base=table,
        deviations=hilo_deviations(include_surrender=rules.allow_surrender),
        bet_ramp=DEFAULT_BET_RAMP,
    )


BUILTIN_STRATEGIES: dict[str, Callable[[TableRules], Strategy]] = {
    "basic": _basic,
    "hilo": _hilo,
}


def strategy_from_data(name: str, data: Mapping[str, Any]) -> Strategy:
    """
    Build a strategy from already decoded JSON data.

    Raises:
        StrategyError: If the data does not describe a valid strategy
    """
    try:
        parsed = StrategyFile.model_validate(data)
    except ValidationError as exc:
        raise StrategyError(f"invalid strategy '{name}': {exc}") from exc
    return parsed.to_strategy(name)


def load_strategy(
    name: str,
    directory: str | Path = "strategies",
    rules: TableRules | None = None,
) -> Strategy:
    """
    Load ``<directory>/<name>.json``, or a built-in strategy of that name.

    A file always takes precedence over a built-in strategy.

    Raises:
        StrategyError: If the strategy is missing, unreadable or malformed
    """
    path = Path(directory) / f"{name}.json"
    if path.is_file():
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StrategyError(f"failed to load strategy file {path}: {exc}") from exc
        try:
            parsed = StrategyFile.model_validate_json(text)
        except ValidationError as exc:
            raise StrategyError(f"failed to decode strategy {path}: {exc}") from exc
        logger.debug("Loaded strategy '%s' from %s", name, path)
        return parsed.to_strategy(name)

    if name in BUILTIN_STRATEGIES:
        logger.debug("Using built-in strategy '%s'", name)
        return BUILTIN_STRATEGIES[name](rules or TableRules())

    raise StrategyError(f"strategy '{name}' not found in {directory}")
