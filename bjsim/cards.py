"""Card representations - immutable ranks, suits and cards."""

from dataclasses import dataclass
from enum import Enum, auto


class Suit(Enum):
    """Card suits."""

    HEARTS = auto()
    DIAMONDS = auto()
    CLUBS = auto()
    SPADES = auto()

    def __str__(self) -> str:
        symbols = {
            Suit.CLUBS: "♣",
            Suit.DIAMONDS: "♦",
            Suit.HEARTS: "♥",
            Suit.SPADES: "♠",
        }
        return symbols[self]

    @property
    def is_red(self) -> bool:
        """Hearts and diamonds are red."""
        return self in (Suit.HEARTS, Suit.DIAMONDS)


class Rank(Enum):
    """Card ranks with blackjack values."""

    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14

    def __str__(self) -> str:
        if self.value <= 10:
            return str(self.value)
        return {
            Rank.JACK: "J",
            Rank.QUEEN: "Q",
            Rank.KING: "K",
            Rank.ACE: "A",
        }[self]

    @property
    def blackjack_value(self) -> int:
        """Return the blackjack point value (Ace = 11, face cards = 10)."""
        if self.value <= 10:
            return self.value
        if self == Rank.ACE:
            return 11
        return 10  # Face cards

    @property
    def is_ace(self) -> bool:
        """Check if this rank is an Ace."""
        return self == Rank.ACE

    @property
    def is_face(self) -> bool:
        """Check if this rank is a jack, queen or king."""
        return self in (Rank.JACK, Rank.QUEEN, Rank.KING)


_RANKS = {
    "2": Rank.TWO,
    "3": Rank.THREE,
    "4": Rank.FOUR,
    "5": Rank.FIVE,
    "6": Rank.SIX,
    "7": Rank.SEVEN,
    "8": Rank.EIGHT,
    "9": Rank.NINE,
    "10": Rank.TEN,
    "T": Rank.TEN,
    "J": Rank.JACK,
    "Q": Rank.QUEEN,
    "K": Rank.KING,
    "A": Rank.ACE,
}

_SUITS = {
    "C": Suit.CLUBS,
    "♣": Suit.CLUBS,
    "CLUBS": Suit.CLUBS,
    "D": Suit.DIAMONDS,
    "♦": Suit.DIAMONDS,
    "DIAMONDS": Suit.DIAMONDS,
    "H": Suit.HEARTS,
    "♥": Suit.HEARTS,
    "HEARTS": Suit.HEARTS,
    "S": Suit.SPADES,
    "♠": Suit.SPADES,
    "SPADES": Suit.SPADES,
}


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def value(self) -> int:
        """Return the blackjack point value before soft adjustment."""
        return self.rank.blackjack_value

    @property
    def is_ace(self) -> bool:
        """Check if this card is an Ace."""
        return self.rank.is_ace

    @property
    def long_name(self) -> str:
        """Return the card as 'A of Spades'."""
        return f"{self.rank} of {self.suit.name.title()}"

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like '2♣', 'AS', 'Kh' or 'A of Spades'."""
        s = s.strip().upper()
        if " OF " in s:
            rank_str, _, suit_str = s.partition(" OF ")
            rank_str, suit_str = rank_str.strip(), suit_str.strip()
        else:
            if len(s) < 2:
                raise ValueError(f"Invalid card string: {s}")
            rank_str, suit_str = s[:-1], s[-1]

        if rank_str not in _RANKS:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in _SUITS:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(_RANKS[rank_str], _SUITS[suit_str])


def full_deck() -> list[Card]:
    """Return the 52 cards of one deck in a fixed order."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]
