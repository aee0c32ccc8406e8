"""Hand evaluation, decision trace and settlement for blackjack."""

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from bjsim.cards import Card


class HandResult(Enum):
    """Settled outcome of a hand."""

    WIN = "win"
    LOSE = "lose"
    PUSH = "push"
    BLACKJACK = "blackjack"
    SURRENDER = "surrender"

    def __str__(self) -> str:
        return self.value


# Amount returned per unit staked, stake included.
PAYOUT_MULTIPLIERS: dict[HandResult, Decimal] = {
    HandResult.WIN: Decimal("2"),
    HandResult.BLACKJACK: Decimal("2.5"),
    HandResult.PUSH: Decimal("1"),
    HandResult.SURRENDER: Decimal("0.5"),
    HandResult.LOSE: Decimal("0"),
}


@dataclass(frozen=True)
class DecisionRecord:
    """One decision point: the lookup key, what was suggested and what was done."""

    key: str
    actions: tuple[str, ...]
    final_action: str
    is_deviation: bool = False
    is_fallback: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["actions"] = list(self.actions)
        return data


@dataclass
class Hand:
    """A blackjack hand with value calculation and its decision trace."""

    cards: list[Card] = field(default_factory=list)
    bet: Decimal = Decimal("0")
    hand_id: str = ""
    payout: Decimal = Decimal("0")
    result: HandResult | None = None
    is_doubled: bool = False
    is_split_child: bool = False
    decision_trace: list[DecisionRecord] = field(default_factory=list)

    @classmethod
    def split_from(cls, parent: "Hand", card: Card, hand_id: str) -> "Hand":
        """
        Create one child of a split.

        The child keeps the parent's bet and a copy of its decision trace up
        to the split; later decisions on either hand do not affect the other.
        """
        return cls(
            cards=[card],
            bet=parent.bet,
            hand_id=hand_id,
            is_split_child=True,
            decision_trace=list(parent.decision_trace),
        )

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    def record_decision(
        self,
        key: str,
        actions: list[str] | tuple[str, ...],
        final_action: str,
        is_deviation: bool = False,
        is_fallback: bool = False,
    ) -> DecisionRecord:
        """Append a decision to the trace."""
        record = DecisionRecord(
            key=key,
            actions=tuple(actions),
            final_action=final_action,
            is_deviation=is_deviation,
            is_fallback=is_fallback,
        )
        self.decision_trace.append(record)
        return record

    def double_down(self) -> None:
        """Double the stake on this hand."""
        self.is_doubled = True
        self.bet *= 2

    @property
    def value(self) -> int:
        """
        Best total for the hand.

        Aces count 11 and drop to 1 one at a time while the total is over 21.
        """
        total = sum(card.value for card in self.cards)
        high_aces = sum(1 for card in self.cards if card.is_ace)
        while total > 21 and high_aces:
            total -= 10
            high_aces -= 1
        return total

    @property
    def is_soft(self) -> bool:
        """An ace still counts 11."""
        hard_total = sum(1 if card.is_ace else card.value for card in self.cards)
        has_ace = any(card.is_ace for card in self.cards)
        return has_ace and hard_total + 10 <= 21

    @property
    def is_blackjack(self) -> bool:
        """Check if the hand is a natural blackjack (21 with 2 cards, not split)."""
        return (
            len(self.cards) == 2
            and self.value == 21
            and not self.is_split_child
        )

    @property
    def is_busted(self) -> bool:
        """Check if the hand has busted (value > 21)."""
        return self.value > 21

    @property
    def is_pair(self) -> bool:
        """Check if the hand is two cards of the same rank."""
        return (
            len(self.cards) == 2
            and self.cards[0].rank == self.cards[1].rank
        )

    @property
    def is_live(self) -> bool:
        """A hand the dealer still has to beat."""
        return not self.is_busted and not self.is_blackjack

    @property
    def draws(self) -> list[Card]:
        """Cards received after the first two."""
        return self.cards[2:]

    def __len__(self) -> int:
        return len(self.cards)

    def __str__(self) -> str:
        return ";".join(str(card) for card in self.cards)

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value})"


def settle_hand(player_hand: Hand, dealer_hand: Hand) -> HandResult:
    """Compare a player hand with the dealer's final hand."""
    if player_hand.is_blackjack and not dealer_hand.is_blackjack:
        return HandResult.BLACKJACK
    if player_hand.is_busted:
        return HandResult.LOSE
    if dealer_hand.is_busted:
        return HandResult.WIN

    player_value = player_hand.value
    dealer_value = dealer_hand.value
    if player_value > dealer_value:
        return HandResult.WIN
    if player_value < dealer_value:
        return HandResult.LOSE
    return HandResult.PUSH


def payout_for(result: HandResult, bet: Decimal) -> Decimal:
    """Return the amount paid back on a settled hand."""
    return bet * PAYOUT_MULTIPLIERS[result]
