"""Player actions, strategy decisions and lookup keys."""

from dataclasses import dataclass
from enum import Enum

from bjsim.cards import Card
from bjsim.hand import Hand


class Action(Enum):
    """Possible player actions."""

    HIT = "hit"
    STAND = "stand"
    DOUBLE = "double"
    SPLIT = "split"
    SURRENDER = "surrender"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Decision:
    """
    A strategy answer for one decision point.

    ``actions`` are candidates in order of preference; the engine applies the
    first one that is legal and affordable.
    """

    actions: tuple[Action, ...]
    key: str
    is_fallback: bool = False
    is_deviation: bool = False

    @property
    def action_names(self) -> tuple[str, ...]:
        return tuple(action.value for action in self.actions)


def dealer_rank_label(card: Card) -> str:
    """Dealer upcard as used in keys: J, Q and K collapse to '10'."""
    if card.rank.is_face:
        return "10"
    return str(card.rank)


def lookup_key(hand: Hand, dealer_upcard: Card) -> str:
    """
    Build the table key for a hand against a dealer upcard.

    Pairs are ``pair_<rank>_vs_<dealer>``, two-card hands holding one ace are
    ``soft_<value>_vs_<dealer>`` and everything else is
    ``hard_<value>_vs_<dealer>``.
    """
    dealer = dealer_rank_label(dealer_upcard)
    if hand.is_pair:
        return f"pair_{hand.cards[0].rank}_vs_{dealer}"
    if len(hand.cards) == 2 and sum(card.is_ace for card in hand.cards) == 1:
        return f"soft_{hand.value}_vs_{dealer}"
    return f"hard_{hand.value}_vs_{dealer}"
