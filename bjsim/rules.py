"""Table rule configuration."""

from dataclasses import dataclass
from decimal import Decimal

# Side bet limits are the main bet limits divided by this.
SIDE_BET_DIVISOR = 5


@dataclass(frozen=True)
class TableRules:
    """
    Table rules that drive dealing, legality checks and bet limits.
    """

    # Deck configuration
    num_decks: int = 6

    # Betting limits
    min_bet: Decimal = Decimal("10")
    max_bet: Decimal = Decimal("1000")

    # Dealer rules
    hit_on_soft_17: bool = True  # H17 vs S17
    dealer_takes_hole_card: bool = True  # False = European no-hole-card

    # Double down rules
    allow_double_after_split: bool = True  # DAS

    # Split rules
    max_splits: int = 3  # Extra hands a box may create by splitting

    # Surrender rules
    allow_surrender: bool = False
    surrender_against_ace: bool = False

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if self.num_decks < 1 or self.num_decks > 8:
            raise ValueError("num_decks must be between 1 and 8")
        if self.min_bet <= 0:
            raise ValueError("min_bet must be positive")
        if self.max_bet < self.min_bet:
            raise ValueError("max_bet must not be below min_bet")
        if self.max_splits < 0:
            raise ValueError("max_splits must not be negative")

    @property
    def min_side_bet(self) -> Decimal:
        return self.min_bet / SIDE_BET_DIVISOR

    @property
    def max_side_bet(self) -> Decimal:
        return self.max_bet / SIDE_BET_DIVISOR

    def clamp_main_bet(self, amount: Decimal) -> Decimal:
        """Bring a main bet inside the table limits."""
        return min(max(amount, self.min_bet), self.max_bet)

    def clamp_side_bet(self, amount: Decimal) -> Decimal:
        """Bring a positive side bet inside the side bet limits; zero stays zero."""
        if amount <= 0:
            return Decimal("0")
        return min(max(amount, self.min_side_bet), self.max_side_bet)

    @classmethod
    def vegas_strip(cls) -> "TableRules":
        """Standard Vegas Strip rules."""
        return cls(
            num_decks=6,
            hit_on_soft_17=False,
            allow_double_after_split=True,
            allow_surrender=True,
        )

    @classmethod
    def european(cls) -> "TableRules":
        """No-hole-card rules: the dealer draws the second card after the players."""
        return cls(
            num_decks=6,
            hit_on_soft_17=False,
            dealer_takes_hole_card=False,
            allow_double_after_split=True,
            allow_surrender=False,
        )
