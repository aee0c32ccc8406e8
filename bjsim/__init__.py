"""Multi-player blackjack simulator with card counting and side bets."""

from bjsim.cards import Card, Rank, Suit
from bjsim.hand import Hand, HandResult
from bjsim.rules import TableRules
from bjsim.shoe import Shoe

__version__ = "0.1.0"

__all__ = [
    "Card",
    "Rank",
    "Suit",
    "Hand",
    "HandResult",
    "TableRules",
    "Shoe",
]
