"""Hi-Lo tags used for the shoe's running count."""

from typing import Mapping

from bjsim.cards import Rank
from bjsim.counting.base import CountingSystem


class HiLoSystem(CountingSystem):
    """
    Hi-Lo, the count every shoe keeps and counting strategies read.

    Low cards (2 to 6) add one, 7 to 9 are neutral, tens and aces
    subtract one. A full deck sums to zero, so the running count is back
    at zero when a shoe runs out and the true count is just running count
    over decks left.
    """

    _TAG_VALUES: Mapping[Rank, int] = {
        rank: 1 if rank.value <= 6 else 0 if rank.value <= 9 else -1 for rank in Rank
    }

    @property
    def name(self) -> str:
        return "Hi-Lo"

    @property
    def tag_values(self) -> Mapping[Rank, int]:
        return self._TAG_VALUES
