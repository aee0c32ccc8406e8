"""The dealing shoe with cut card and Hi-Lo count."""

import logging
from collections import Counter, deque
from random import Random
from typing import Iterator, Sequence

from bjsim.cards import Card, full_deck
from bjsim.counting import CountingSystem, HiLoSystem
from bjsim.errors import EmptyShoeError, ForcedCardError

logger = logging.getLogger(__name__)

# Cut card depth range, as fractions of the shoe length [min, max).
CUT_CARD_MIN = 0.5
CUT_CARD_MAX = 0.6


class Shoe:
    """
    A multi-deck shoe dealt from the front.

    The shoe counts every card as it leaves (Hi-Lo) and marks itself for a
    new deck once the cut card is reached. The rebuild happens only when
    ``reshuffle_if_needed`` is called at a round boundary.
    """

    def __init__(
        self,
        num_decks: int = 6,
        forced_cards: Sequence[Card] = (),
        rng: Random | None = None,
        counter: CountingSystem | None = None,
    ) -> None:
        """
        Build and shuffle a shoe.

        Args:
            num_decks: Number of 52-card decks in the shoe
            forced_cards: Cards placed, in order, at the front of every new shoe
            rng: Random number generator for shuffling and cut-card placement
            counter: Counting system updated on every deal (Hi-Lo if None)

        Raises:
            ForcedCardError: If a forced card is requested more times than
                the shoe contains it
        """
        if num_decks < 1:
            raise ValueError("Shoe must have at least 1 deck")

        self._num_decks = num_decks
        self._forced_cards = tuple(forced_cards)
        self._rng = rng or Random()
        self._counter = counter or HiLoSystem()
        self._cards: deque[Card] = deque()
        self._cut_card_position = 0
        self._needs_new_deck = False
        self._real_count_till_cut_card = 0
        self._drawn_this_shoe = 0
        self._drawn_this_round = 0
        self.build()

    def build(self) -> None:
        """Replace the shoe with freshly shuffled decks and reset the count."""
        cards = [card for _ in range(self._num_decks) for card in full_deck()]
        self._rng.shuffle(cards)

        if self._forced_cards:
            available = Counter(cards)
            requested = Counter(self._forced_cards)
            for card, count in requested.items():
                if count > available[card]:
                    raise ForcedCardError(
                        f"forced card '{card.long_name}' exceeds available copies "
                        f"in shoe ({count} > {available[card]})"
                    )

            remaining = []
            for card in cards:
                if requested[card] > 0:
                    requested[card] -= 1
                else:
                    remaining.append(card)
            self._rng.shuffle(remaining)
            cards = list(self._forced_cards) + remaining

        min_cut = int(len(cards) * CUT_CARD_MIN)
        max_cut = int(len(cards) * CUT_CARD_MAX)
        self._cut_card_position = self._rng.randrange(min_cut, max_cut)
        self._real_count_till_cut_card = self._counter.sum_tags(
            cards[: self._cut_card_position]
        )

        self._cards = deque(cards)
        self._needs_new_deck = False
        self._drawn_this_shoe = 0
        self._counter.reset()

    def deal(self) -> Card:
        """
        Remove and return the front card.

        Raises:
            EmptyShoeError: If no cards remain
        """
        if not self._cards:
            raise EmptyShoeError("Cannot deal from an empty shoe")
        card = self._cards.popleft()
        self._counter.count_card(card)
        self._drawn_this_round += 1
        self._drawn_this_shoe += 1
        if len(self._cards) <= self._cut_card_position:
            self._needs_new_deck = True
        return card

    def reshuffle_if_needed(self) -> bool:
        """
        Rebuild the shoe if the cut card has been reached.

        Returns:
            True if a new shoe was built
        """
        if not self._needs_new_deck:
            return False
        logger.debug(
            "Cut card reached after %d cards (running count %d), building new shoe",
            self._drawn_this_shoe,
            self.running_count,
        )
        self.build()
        return True

    def reset_round_counter(self) -> None:
        """Start counting cards drawn for a new round."""
        self._drawn_this_round = 0

    @property
    def running_count(self) -> int:
        """Hi-Lo sum of every card dealt since the last shuffle."""
        return self._counter.running_count

    @property
    def true_count(self) -> float:
        """Running count divided by decks remaining."""
        return self._counter.true_count(len(self._cards))

    @property
    def truncated_true_count(self) -> int:
        """True count truncated toward zero, as used for thresholds."""
        return int(self.true_count)

    @property
    def needs_new_deck(self) -> bool:
        """Check if the cut card has been reached."""
        return self._needs_new_deck

    @property
    def cut_card_position(self) -> int:
        """Return the cut card position chosen at the last shuffle."""
        return self._cut_card_position

    @property
    def real_count_till_cut_card(self) -> int:
        """Hi-Lo sum of the cards in front of the cut card at shuffle time."""
        return self._real_count_till_cut_card

    @property
    def drawn_this_shoe(self) -> int:
        return self._drawn_this_shoe

    @property
    def drawn_this_round(self) -> int:
        return self._drawn_this_round

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards remaining."""
        return len(self._cards)

    @property
    def total_cards(self) -> int:
        """Return the total number of cards in a full shoe."""
        return self._num_decks * 52

    @property
    def num_decks(self) -> int:
        """Return the number of decks in the shoe."""
        return self._num_decks

    @property
    def decks_remaining(self) -> float:
        """Return the number of decks remaining."""
        return len(self._cards) / 52

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)
