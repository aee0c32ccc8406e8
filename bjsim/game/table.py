"""Players, boxes and the dealer."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal

from bjsim.cards import Card
from bjsim.hand import Hand
from bjsim.shoe import Shoe
from bjsim.sidebets import NO_WIN
from bjsim.strategy import Strategy

InsuranceResult = Literal["none", "win", "lose"]

ZERO = Decimal("0")


@dataclass(eq=False)
class Player:
    """
    A bankroll owner playing one or more boxes with a single strategy.

    Every debit goes through ``place_bet``, which refuses amounts the
    balance cannot cover, so the balance never goes negative.
    """

    player_id: int
    strategy: Strategy
    balance: Decimal
    owner: str = ""
    target_balance: Decimal | None = None
    initial_balance: Decimal = field(init=False)
    boxes: list["Box"] = field(default_factory=list, repr=False)
    round_start_balance: Decimal = field(init=False)
    total_spent: Decimal = ZERO
    total_earned: Decimal = ZERO
    is_busted: bool = False
    is_retired: bool = False
    busted_at_round: int | None = None
    retired_at_round: int | None = None

    def __post_init__(self) -> None:
        self.initial_balance = self.balance
        self.round_start_balance = self.balance

    @property
    def is_active(self) -> bool:
        """Busted and retired players take no further part."""
        return not self.is_busted and not self.is_retired

    def can_afford(self, amount: Decimal) -> bool:
        return self.balance >= amount

    def place_bet(self, amount: Decimal) -> bool:
        """Debit ``amount`` if affordable; return whether it was debited."""
        if not self.can_afford(amount):
            return False
        self.balance -= amount
        self.total_spent += amount
        return True

    def receive_payout(self, amount: Decimal) -> None:
        self.balance += amount
        self.total_earned += amount

    def start_round(self) -> None:
        """Snapshot the balance once, before any of the player's boxes bet."""
        self.round_start_balance = self.balance
        self.total_spent = ZERO
        self.total_earned = ZERO

    def check_status(self, min_bet: Decimal, round_number: int) -> None:
        """Mark the player busted or retired after settlement."""
        if not self.is_active:
            return
        if self.balance < min_bet:
            self.is_busted = True
            self.busted_at_round = round_number
        elif self.target_balance and self.balance >= self.target_balance:
            self.is_retired = True
            self.retired_at_round = round_number


@dataclass(eq=False)
class Box:
    """
    A seat at the table.

    The configured bets are kept as originals and restored at every reset.
    A box whose player busts is vacated for good.
    """

    index: int
    player: Player | None = None
    original_main_bet: Decimal = ZERO
    original_perfect_pair_bet: Decimal = ZERO
    original_p21_bet: Decimal = ZERO
    hands: list[Hand] = field(default_factory=list)
    main_bet: Decimal = ZERO
    recommended_bet: Decimal = ZERO
    perfect_pair_bet: Decimal = ZERO
    perfect_pair_win: Decimal = ZERO
    perfect_pair_type: str = NO_WIN
    p21_bet: Decimal = ZERO
    p21_win: Decimal = ZERO
    p21_type: str = NO_WIN
    insurance_taken: bool = False
    insurance_bet: Decimal = ZERO
    insurance_result: InsuranceResult = "none"
    insurance_payout: Decimal = ZERO
    total_payout: Decimal = ZERO
    split_count: int = 0
    _next_hand_id: int = field(default=1, init=False, repr=False)

    def __post_init__(self) -> None:
        self.reset()

    @property
    def box_id(self) -> str:
        return f"B{self.index}"

    @property
    def is_occupied(self) -> bool:
        return self.player is not None

    @property
    def is_active(self) -> bool:
        """Occupied by a player who is still betting."""
        return self.player is not None and self.player.is_active

    @property
    def in_play(self) -> bool:
        """Holds hands this round."""
        return self.player is not None and bool(self.hands)

    def reset(self) -> None:
        """Clear the round and restore the configured bets."""
        self.hands = []
        self.main_bet = self.original_main_bet
        self.recommended_bet = self.original_main_bet
        self.perfect_pair_bet = self.original_perfect_pair_bet
        self.perfect_pair_win = ZERO
        self.perfect_pair_type = NO_WIN
        self.p21_bet = self.original_p21_bet
        self.p21_win = ZERO
        self.p21_type = NO_WIN
        self.insurance_taken = False
        self.insurance_bet = ZERO
        self.insurance_result = "none"
        self.insurance_payout = ZERO
        self.total_payout = ZERO
        self.split_count = 0
        self._next_hand_id = 1

    def vacate(self) -> None:
        """Drop the player and hands; the box stays empty for the rest of the run."""
        self.player = None
        self.hands = []

    def next_hand_id(self) -> str:
        hand_id = f"{self.box_id}-{self._next_hand_id}"
        self._next_hand_id += 1
        return hand_id

    def open_hand(self) -> Hand:
        """Create the round's first hand with the committed main bet."""
        hand = Hand(bet=self.main_bet, hand_id=self.next_hand_id())
        self.hands = [hand]
        return hand

    def split_hand(self, position: int, shoe: Shoe) -> tuple[Hand, Hand]:
        """
        Replace the pair at ``position`` with two split children.

        Each child keeps one card of the pair and receives one fresh card;
        the second child is inserted right after the first.
        """
        parent = self.hands[position]
        first_card, second_card = parent.cards
        first = Hand.split_from(parent, first_card, self.next_hand_id())
        first.add_card(shoe.deal())
        second = Hand.split_from(parent, second_card, self.next_hand_id())
        second.add_card(shoe.deal())
        self.hands[position : position + 1] = [first, second]
        self.split_count += 1
        return first, second

    def resolve_insurance(self, dealer_blackjack: bool) -> None:
        """Settle insurance once the dealer's second card is known."""
        if dealer_blackjack:
            if self.insurance_taken:
                self.insurance_result = "win"
                self.insurance_payout = self.insurance_bet * 2
            else:
                self.insurance_result = "lose"
                self.insurance_payout = ZERO
        elif self.insurance_taken:
            self.insurance_result = "lose"
            self.insurance_payout = ZERO

    @property
    def total_invested(self) -> Decimal:
        """Hand stakes, side bets and insurance committed this round."""
        return (
            sum((hand.bet for hand in self.hands), ZERO)
            + self.perfect_pair_bet
            + self.p21_bet
            + self.insurance_bet
        )


class Dealer:
    """The dealer's single hand and drawing rule."""

    def __init__(self) -> None:
        self.hand = Hand(hand_id="dealer")

    def reset(self) -> None:
        self.hand = Hand(hand_id="dealer")

    @property
    def upcard(self) -> Card:
        return self.hand.cards[0]

    @property
    def has_hole_card(self) -> bool:
        return len(self.hand.cards) >= 2

    def should_hit(self, hit_on_soft_17: bool) -> bool:
        """Hit below 17, and on soft 17 when the table says so."""
        value = self.hand.value
        if value < 17:
            return True
        return value == 17 and self.hand.is_soft and hit_on_soft_17

    def play(self, shoe: Shoe, hit_on_soft_17: bool) -> None:
        """Draw until the drawing rule says stand."""
        while self.should_hit(hit_on_soft_17):
            self.hand.add_card(shoe.deal())
