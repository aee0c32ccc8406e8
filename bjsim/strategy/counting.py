"""Count-aware strategy: deviations, bet ramp and count-based insurance."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Sequence

from bjsim.cards import Card
from bjsim.hand import Hand
from bjsim.shoe import Shoe
from bjsim.strategy.actions import Action, Decision, lookup_key
from bjsim.strategy.base import Strategy
from bjsim.strategy.table import TableStrategy

# Insurance is always taken at or above this true count.
INSURANCE_TRUE_COUNT = 3


@dataclass(frozen=True)
class Deviation:
    """Play ``action`` instead of the table when the true count reaches ``threshold``."""

    threshold: float
    action: Action

    def applies(self, true_count: int) -> bool:
        return true_count >= self.threshold


@dataclass(frozen=True)
class BetRampTier:
    """Multiply the base bet by ``multiplier`` from ``min_true_count`` upward."""

    min_true_count: float
    multiplier: Decimal


class CountingStrategy(Strategy):
    """
    Wraps a table strategy and consults the live count of a shoe.

    The shoe belongs to the engine; this strategy only reads its count. An
    unbound strategy sees a true count of zero.
    """

    def __init__(
        self,
        base: TableStrategy,
        deviations: Mapping[str, Deviation] | None = None,
        bet_ramp: Sequence[BetRampTier] = (),
        shoe: Shoe | None = None,
    ) -> None:
        super().__init__(base.name)
        self.base = base
        self.deviations = dict(deviations or {})
        self.bet_ramp = sorted(bet_ramp, key=lambda tier: tier.min_true_count, reverse=True)
        self._shoe = shoe

    def bind(self, shoe: Shoe) -> None:
        """Read counts from ``shoe`` from now on."""
        self._shoe = shoe

    @property
    def shoe(self) -> Shoe | None:
        return self._shoe

    @property
    def true_count(self) -> int:
        """Live true count, truncated for threshold comparisons."""
        if self._shoe is None:
            return 0
        return self._shoe.truncated_true_count

    def get_action(self, hand: Hand, dealer_upcard: Card) -> Decision:
        key = lookup_key(hand, dealer_upcard)
        deviation = self.deviations.get(key)
        if deviation is not None and deviation.applies(self.true_count):
            return Decision(actions=(deviation.action,), key=key, is_deviation=True)
        return self.base.lookup(key)

    def decide_insurance(self) -> bool:
        if self.true_count >= INSURANCE_TRUE_COUNT:
            return True
        return self.base.decide_insurance()

    def bet_size_for(self, base_bet: Decimal) -> Decimal:
        """Scale the base bet by the highest ramp tier the true count reaches."""
        true_count = self.true_count
        for tier in self.bet_ramp:
            if true_count >= tier.min_true_count:
                return base_bet * tier.multiplier
        return base_bet
