"""Strategies: decision tables, count-gated deviations and bet ramps."""

from bjsim.strategy.actions import Action, Decision, dealer_rank_label, lookup_key
from bjsim.strategy.base import Strategy
from bjsim.strategy.counting import BetRampTier, CountingStrategy, Deviation
from bjsim.strategy.loader import load_strategy, strategy_from_data
from bjsim.strategy.table import TableStrategy

__all__ = [
    "Action",
    "Decision",
    "dealer_rank_label",
    "lookup_key",
    "Strategy",
    "TableStrategy",
    "CountingStrategy",
    "Deviation",
    "BetRampTier",
    "load_strategy",
    "strategy_from_data",
]
