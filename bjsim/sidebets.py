"""Perfect Pairs and 21+3 side bet classification."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from bjsim.cards import Card, Rank

NO_WIN = "none"


@dataclass(frozen=True)
class SideBetOutcome:
    """A side bet classification and its odds (multiplier-for-1)."""

    multiplier: int
    label: str

    @property
    def is_win(self) -> bool:
        return self.multiplier > 0

    def payout(self, bet: Decimal) -> Decimal:
        """Winnings plus the returned stake, or zero on a loss."""
        if not self.is_win:
            return Decimal("0")
        return (self.multiplier + 1) * bet


PERFECT_PAIR = SideBetOutcome(25, "Perfect Pair")
COLORED_PAIR = SideBetOutcome(12, "Colored Pair")
MIXED_PAIR = SideBetOutcome(6, "Mixed Pair")

SUITED_TRIPS = SideBetOutcome(100, "Suited Trips")
STRAIGHT_FLUSH = SideBetOutcome(40, "Straight Flush")
THREE_OF_A_KIND = SideBetOutcome(30, "Three of a Kind")
STRAIGHT = SideBetOutcome(10, "Straight")
FLUSH = SideBetOutcome(5, "Flush")

NO_OUTCOME = SideBetOutcome(0, NO_WIN)


def perfect_pairs(first: Card, second: Card) -> SideBetOutcome:
    """Classify a box's first two cards for Perfect Pairs."""
    if first.rank != second.rank:
        return NO_OUTCOME
    if first.suit == second.suit:
        return PERFECT_PAIR
    if first.suit.is_red == second.suit.is_red:
        return COLORED_PAIR
    return MIXED_PAIR


def _is_straight(ranks: Sequence[Rank]) -> bool:
    """Three consecutive ranks; the ace plays high (Q-K-A) or low (A-2-3)."""
    high = sorted(rank.value for rank in ranks)
    low = sorted(1 if rank.is_ace else rank.value for rank in ranks)
    return any(
        values[0] + 1 == values[1] and values[1] + 1 == values[2]
        for values in (high, low)
    )


def twenty_one_plus_three(cards: Sequence[Card]) -> SideBetOutcome:
    """
    Classify the two player cards plus the dealer upcard for 21+3.

    The most specific classification wins: suited trips, straight flush,
    three of a kind, straight, flush.
    """
    if len(cards) != 3:
        return NO_OUTCOME

    ranks = [card.rank for card in cards]
    same_suit = len({card.suit for card in cards}) == 1
    same_rank = len(set(ranks)) == 1
    straight = _is_straight(ranks)

    if same_suit and same_rank:
        return SUITED_TRIPS
    if same_suit and straight:
        return STRAIGHT_FLUSH
    if same_rank:
        return THREE_OF_A_KIND
    if straight:
        return STRAIGHT
    if same_suit:
        return FLUSH
    return NO_OUTCOME
