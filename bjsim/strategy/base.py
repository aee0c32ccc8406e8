"""Strategy interface."""

from abc import ABC, abstractmethod
from decimal import Decimal

from bjsim.cards import Card
from bjsim.hand import Hand
from bjsim.strategy.actions import Decision


class Strategy(ABC):
    """Decides actions, insurance and bet size for a player."""

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    def get_action(self, hand: Hand, dealer_upcard: Card) -> Decision:
        """Return the ordered candidate actions for a hand."""
        ...

    @abstractmethod
    def decide_insurance(self) -> bool:
        """Return whether to take insurance against a dealer ace."""
        ...

    def bet_size_for(self, base_bet: Decimal) -> Decimal:
        """Return the stake to place given the configured base bet."""
        return base_bet

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"
