"""Abstract base class for card counting systems."""

from abc import ABC, abstractmethod
from typing import Iterable, Mapping

from bjsim.cards import Card, Rank


class CountingSystem(ABC):
    """
    Tracks a running count over the cards dealt since the last shuffle.

    The true count is derived on demand from the number of cards still in
    the shoe.
    """

    def __init__(self) -> None:
        self._running_count = 0
        self._cards_seen = 0

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of the counting system."""
        ...

    @property
    @abstractmethod
    def tag_values(self) -> Mapping[Rank, int]:
        """Map each rank to its count value."""
        ...

    @property
    def full_deck_sum(self) -> int:
        """Sum of tag values over one 52-card deck (0 for balanced systems)."""
        return sum(self.tag_values[rank] * 4 for rank in Rank)

    def tag(self, card: Card) -> int:
        """Return the tag value of a card without counting it."""
        return self.tag_values[card.rank]

    def sum_tags(self, cards: Iterable[Card]) -> int:
        """Return the summed tag value of several cards without counting them."""
        return sum(self.tag(card) for card in cards)

    def count_card(self, card: Card) -> int:
        """
        Count a single card and update the running count.

        Returns:
            The tag value of the card
        """
        tag_value = self.tag(card)
        self._running_count += tag_value
        self._cards_seen += 1
        return tag_value

    @property
    def running_count(self) -> int:
        """Return the current running count."""
        return self._running_count

    @property
    def cards_seen(self) -> int:
        """Return the number of cards counted since the last reset."""
        return self._cards_seen

    def true_count(self, cards_remaining: int) -> float:
        """
        Calculate the true count.

        Args:
            cards_remaining: Number of undealt cards left in the shoe

        Returns:
            Running count divided by decks remaining (0.0 for an empty shoe)
        """
        if cards_remaining <= 0:
            return 0.0
        return self._running_count / (cards_remaining / 52)

    def reset(self) -> None:
        """Reset the count to zero."""
        self._running_count = 0
        self._cards_seen = 0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(running_count={self._running_count})"
