"""Pytest fixtures for simulator tests."""

from decimal import Decimal
from random import Random

import pytest
from hypothesis import strategies as st

from bjsim.cards import Card, Rank, Suit
from bjsim.counting import HiLoSystem
from bjsim.game import Box, EventEmitter, Player, RoundEngine
from bjsim.hand import Hand
from bjsim.rules import TableRules
from bjsim.shoe import Shoe
from bjsim.strategy import Action, TableStrategy, load_strategy


def make_hand(*cards: str, bet: str = "10") -> Hand:
    """Build a hand from card strings like 'AS' or '10♥'."""
    hand = Hand(bet=Decimal(bet))
    for text in cards:
        hand.add_card(Card.from_string(text))
    return hand


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def shoe(rng):
    """A shuffled 6-deck shoe."""
    return Shoe(num_decks=6, rng=rng)


@pytest.fixture
def empty_hand():
    """An empty player hand."""
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return make_hand("AS", "KH")


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return make_hand("AS", "6H")


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return make_hand("10S", "6H")


@pytest.fixture
def pair_8s_hand():
    """A pair of 8s hand."""
    return make_hand("8S", "8H")


@pytest.fixture
def bust_hand():
    """A busted hand."""
    return make_hand("10S", "6H", "KC")


@pytest.fixture
def hilo():
    """Hi-Lo counting system."""
    return HiLoSystem()


@pytest.fixture
def rules():
    """Default table rules."""
    return TableRules()


@pytest.fixture
def surrender_rules():
    """Rules allowing surrender, including against an ace."""
    return TableRules(allow_surrender=True, surrender_against_ace=True)


@pytest.fixture
def basic_strategy(rules):
    """Built-in basic strategy for default rules."""
    return load_strategy("basic", directory="/nonexistent", rules=rules)


@pytest.fixture
def hilo_strategy(rules):
    """Built-in Hi-Lo counting strategy for default rules."""
    return load_strategy("hilo", directory="/nonexistent", rules=rules)


@pytest.fixture
def stand_strategy():
    """A strategy that always stands."""
    return TableStrategy("stand", {}, fallback=Action.STAND)


@pytest.fixture
def make_table(rules, stand_strategy):
    """
    Factory for a one-player table dealing forced cards first.

    With one box the deal order is: box, dealer upcard, box, dealer hole
    card, then any draws.
    """

    def _make(
        cards=(),
        strategy=None,
        rules=rules,
        balance="1000",
        main_bet="10",
        perfect_pair="0",
        p21="0",
        box_indexes=(1,),
        target_balance=None,
        events=None,
    ) -> RoundEngine:
        player = Player(
            player_id=1,
            strategy=strategy or stand_strategy,
            balance=Decimal(balance),
            owner="tester",
            target_balance=Decimal(target_balance) if target_balance else None,
        )
        boxes = []
        for index in box_indexes:
            box = Box(
                index=index,
                player=player,
                original_main_bet=Decimal(main_bet),
                original_perfect_pair_bet=Decimal(perfect_pair),
                original_p21_bet=Decimal(p21),
            )
            player.boxes.append(box)
            boxes.append(box)
        shoe = Shoe(
            num_decks=rules.num_decks,
            forced_cards=[Card.from_string(text) for text in cards],
            rng=Random(7),
        )
        return RoundEngine(rules, shoe, boxes, [player], events=events or EventEmitter(keep_history=True))

    return _make


# Hypothesis strategies for property-based testing
@st.composite
def card_strategy(draw):
    """Generate a random card."""
    rank = draw(st.sampled_from(list(Rank)))
    suit = draw(st.sampled_from(list(Suit)))
    return Card(rank, suit)


@st.composite
def hand_strategy(draw, min_cards=2, max_cards=5):
    """Generate a random hand."""
    cards = draw(st.lists(card_strategy(), min_size=min_cards, max_size=max_cards))
    hand = Hand()
    for card in cards:
        hand.add_card(card)
    return hand
