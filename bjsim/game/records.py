"""Settled hand records."""

from dataclasses import asdict, dataclass, fields
from decimal import Decimal
from typing import Any

from bjsim.game.table import Box, Dealer, Player
from bjsim.hand import DecisionRecord, Hand
from bjsim.shoe import Shoe


@dataclass(frozen=True)
class HandRecord:
    """Complete record of one settled hand, with its box and table context."""

    # Round and shoe
    round_number: int
    shoe_number: int
    running_count: int
    true_count: int
    real_count_till_cut_card: int

    # Identity
    box_id: str
    player_id: int
    hand_id: str
    owner: str
    strategy: str

    # Main bet and payout
    configured_bet: Decimal
    recommended_bet: Decimal
    hand_bet: Decimal
    hand_payout: Decimal
    box_payout: Decimal

    # Side bets
    perfect_pair_bet: Decimal
    perfect_pair_win: Decimal
    perfect_pair_type: str
    p21_bet: Decimal
    p21_win: Decimal
    p21_type: str

    # Insurance
    insurance_taken: bool
    insurance_bet: Decimal
    insurance_payout: Decimal
    insurance_result: str

    # Bankroll
    initial_balance: Decimal
    round_start_balance: Decimal
    player_balance: Decimal

    # Hand
    hand: str
    result: str
    is_blackjack: bool
    is_doubled: bool
    is_split_child: bool
    split_count: int
    player_bust: bool
    player_draws: str

    # Dealer
    dealer_upcard: str
    dealer_final_hand: str
    dealer_blackjack: bool
    dealer_bust: bool

    # Player status
    player_is_busted: bool
    player_is_retired: bool

    # Shoe state
    num_decks: int
    cut_card_position: int
    cards_drawn_shoe: int
    cards_drawn_round: int
    cards_left: int

    decision_trace: tuple[DecisionRecord, ...]

    # Only on the last hand of a box
    box_total_invested: Decimal | None = None
    box_total_earned: Decimal | None = None

    @classmethod
    def columns(cls) -> list[str]:
        """Field names in record order."""
        return [f.name for f in fields(cls)]

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["decision_trace"] = [entry.to_dict() for entry in self.decision_trace]
        return data


def _hand_record(
    round_number: int,
    shoe_number: int,
    box: Box,
    player: Player,
    hand: Hand,
    shoe: Shoe,
    dealer: Dealer,
    closes_box: bool,
) -> HandRecord:
    dealer_hand = dealer.hand
    return HandRecord(
        round_number=round_number,
        shoe_number=shoe_number,
        running_count=shoe.running_count,
        true_count=shoe.truncated_true_count,
        real_count_till_cut_card=shoe.real_count_till_cut_card,
        box_id=box.box_id,
        player_id=player.player_id,
        hand_id=hand.hand_id,
        owner=player.owner,
        strategy=player.strategy.name,
        configured_bet=box.original_main_bet,
        recommended_bet=box.recommended_bet,
        hand_bet=hand.bet,
        hand_payout=hand.payout,
        box_payout=box.total_payout,
        perfect_pair_bet=box.perfect_pair_bet,
        perfect_pair_win=box.perfect_pair_win,
        perfect_pair_type=box.perfect_pair_type,
        p21_bet=box.p21_bet,
        p21_win=box.p21_win,
        p21_type=box.p21_type,
        insurance_taken=box.insurance_taken,
        insurance_bet=box.insurance_bet,
        insurance_payout=box.insurance_payout,
        insurance_result=box.insurance_result,
        initial_balance=player.initial_balance,
        round_start_balance=player.round_start_balance,
        player_balance=player.balance,
        hand=str(hand),
        result=str(hand.result) if hand.result else "",
        is_blackjack=hand.is_blackjack,
        is_doubled=hand.is_doubled,
        is_split_child=hand.is_split_child,
        split_count=box.split_count,
        player_bust=hand.is_busted,
        player_draws=";".join(str(card) for card in hand.draws),
        dealer_upcard=str(dealer.upcard) if dealer_hand.cards else "?",
        dealer_final_hand=str(dealer_hand),
        dealer_blackjack=dealer_hand.is_blackjack,
        dealer_bust=dealer_hand.is_busted,
        player_is_busted=player.is_busted,
        player_is_retired=player.is_retired,
        num_decks=shoe.num_decks,
        cut_card_position=shoe.cut_card_position,
        cards_drawn_shoe=shoe.drawn_this_shoe,
        cards_drawn_round=shoe.drawn_this_round,
        cards_left=shoe.cards_remaining,
        decision_trace=tuple(hand.decision_trace),
        box_total_invested=box.total_invested if closes_box else None,
        box_total_earned=box.total_payout if closes_box else None,
    )


def build_hand_records(
    round_number: int,
    shoe_number: int,
    box: Box,
    shoe: Shoe,
    dealer: Dealer,
) -> list[HandRecord]:
    """
    Build one record per hand of a settled box.

    Box totals are filled in on the last hand only.
    """
    if box.player is None:
        return []
    last = len(box.hands) - 1
    return [
        _hand_record(
            round_number,
            shoe_number,
            box,
            box.player,
            hand,
            shoe,
            dealer,
            closes_box=(i == last),
        )
        for i, hand in enumerate(box.hands)
    ]
